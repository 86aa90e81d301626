"""
Lumia aggregation tests.

Fragments sharing a name merge into one item; field precedence follows
entry order.
"""

from lumiverse.contracts.packs import GenderIdentity
from lumiverse.ingestion.aggregator import LumiaAggregator
from lumiverse.ingestion.classifier import FragmentType, LumiaFragment


def _definition(name, content):
    return LumiaFragment(name=name, fragment_type=FragmentType.DEFINITION, raw_content=content)


def _behavior(name, content):
    return LumiaFragment(name=name, fragment_type=FragmentType.BEHAVIOR, raw_content=content)


def _personality(name, content):
    return LumiaFragment(name=name, fragment_type=FragmentType.PERSONALITY, raw_content=content)


class TestMerging:

    def test_three_fragments_make_one_item(self):
        aggregator = LumiaAggregator()
        aggregator.add_all([
            _definition("Aria", "A quiet librarian. [lumia_img=http://x/img.png][lumia_author=Bob]"),
            _behavior("Aria", "  Speaks softly.  "),
            _personality("Aria", "Patient and kind."),
        ])

        items = aggregator.items()
        assert len(items) == 1
        item = items[0]
        assert item.lumia_name == "Aria"
        assert item.lumia_definition == "A quiet librarian."
        assert item.avatar_url == "http://x/img.png"
        assert item.author_name == "Bob"
        assert item.lumia_behavior == "Speaks softly."
        assert item.lumia_personality == "Patient and kind."
        assert item.gender_identity == GenderIdentity.SHE_HER
        assert item.version == 1

    def test_first_seen_order(self):
        aggregator = LumiaAggregator()
        aggregator.add_all([
            _behavior("Zed", "z"),
            _behavior("Aria", "a"),
            _definition("Zed", "z def"),
        ])

        assert [i.lumia_name for i in aggregator.items()] == ["Zed", "Aria"]
        assert len(aggregator) == 2

    def test_missing_fields_stay_unset(self):
        aggregator = LumiaAggregator()
        aggregator.add(_behavior("Solo", "Hums."))

        item = aggregator.items()[0]
        assert item.lumia_definition is None
        assert item.lumia_personality is None
        assert item.avatar_url is None

    def test_aggregators_do_not_share_state(self):
        first = LumiaAggregator()
        first.add(_behavior("Aria", "x"))

        assert LumiaAggregator().items() == []


class TestFieldPrecedence:

    def test_later_definition_replaces_text_but_keeps_avatar(self):
        aggregator = LumiaAggregator()
        aggregator.add_all([
            _definition("Aria", "Old. [lumia_img=http://x/a.png]"),
            _definition("Aria", "New."),
        ])

        item = aggregator.items()[0]
        assert item.lumia_definition == "New."
        assert item.avatar_url == "http://x/a.png"

    def test_definition_without_tags_is_not_trimmed(self):
        aggregator = LumiaAggregator()
        aggregator.add(_definition("Aria", "  padded  "))

        assert aggregator.items()[0].lumia_definition == "  padded  "

    def test_later_behavior_wins(self):
        aggregator = LumiaAggregator()
        aggregator.add_all([_behavior("Aria", "First."), _behavior("Aria", "Second.")])

        assert aggregator.items()[0].lumia_behavior == "Second."

    def test_plain_personality_keeps_raw_text(self):
        aggregator = LumiaAggregator()
        aggregator.add(_personality("Aria", "  Calm.  "))

        assert aggregator.items()[0].lumia_personality == "  Calm.  "


class TestPersonalityMarkers:

    def test_behavior_marker_fills_missing_behavior(self):
        aggregator = LumiaAggregator()
        aggregator.add(_personality("Aria", "{{setvar::lumia_behavior_aria::Be brave}}"))

        item = aggregator.items()[0]
        assert item.lumia_behavior == "Be brave"
        assert item.lumia_personality == "{{setvar::lumia_behavior_aria::Be brave}}"

    def test_both_markers(self):
        content = (
            "{{setvar::lumia_behavior_aria:: Be brave }}\n"
            "{{setglobalvar::lumia_personality_aria:: Warm and loyal }}"
        )
        aggregator = LumiaAggregator()
        aggregator.add(_personality("Aria", content))

        item = aggregator.items()[0]
        assert item.lumia_behavior == "Be brave"
        assert item.lumia_personality == "Warm and loyal"

    def test_marker_does_not_replace_existing_behavior(self):
        aggregator = LumiaAggregator()
        aggregator.add_all([
            _behavior("Aria", "Speaks softly."),
            _personality("Aria", "{{setvar::lumia_behavior_aria::Be brave}}"),
        ])

        assert aggregator.items()[0].lumia_behavior == "Speaks softly."

    def test_behavior_entry_after_marker_overrides(self):
        aggregator = LumiaAggregator()
        aggregator.add_all([
            _personality("Aria", "{{setvar::lumia_behavior_aria::Be brave}}"),
            _behavior("Aria", "Speaks softly."),
        ])

        assert aggregator.items()[0].lumia_behavior == "Speaks softly."

    def test_multiline_marker_content(self):
        aggregator = LumiaAggregator()
        aggregator.add(_personality("Aria", "{{setglobalvar::lumia_personality_a::Line one\nLine two}}"))

        assert aggregator.items()[0].lumia_personality == "Line one\nLine two"
