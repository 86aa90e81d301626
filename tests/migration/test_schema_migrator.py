"""
Settings migration tests.

Older flat-library settings become one synthetic legacy pack; numeric
selections become name-based references; the pass never runs twice.
"""

import copy

import pytest

from lumiverse.config import EngineConfig
from lumiverse.contracts.packs import GenderIdentity, LumiaItem, SelectionRef
from lumiverse.migration import DanglingIndex, LEGACY_KEYS, SchemaMigrator
from lumiverse.observability import AuditLog
from lumiverse.settings.state import CURRENT_SCHEMA_VERSION

from tests.fixtures import WORLD_BOOK, LEGACY_PACK, CANONICAL_PACK, legacy_settings


LEGACY = "Default (Legacy)"


@pytest.fixture
def migrator():
    return SchemaMigrator()


def _ref(name):
    return SelectionRef(pack_name=LEGACY, item_name=name)


# =============================================================================
# FLAT LIBRARY MIGRATION
# =============================================================================

class TestLibraryMigration:

    def test_builds_legacy_pack(self, migrator):
        result = migrator.migrate(legacy_settings())
        pack = result.state.packs[LEGACY]

        assert list(result.state.packs) == [LEGACY]
        assert [i.lumia_name for i in pack.lumia_items] == ["Aria", "Bram", "Cora", "Eve"]
        assert pack.source_url == "https://example.com/books/lumia.json"
        assert pack.find_lumia("Aria").author_name == "Bob"
        assert pack.find_lumia("Aria").avatar_url == "http://x/aria.png"

    def test_selections_become_references(self, migrator):
        state = migrator.migrate(legacy_settings()).state

        assert state.selected_definition == _ref("Cora")
        assert state.selected_behaviors == [_ref("Aria"), _ref("Bram")]
        assert state.selected_personalities == [_ref("Eve")]

    def test_report(self, migrator):
        report = migrator.migrate(legacy_settings()).report

        assert report.migrated
        assert report.legacy_item_count == 4
        assert report.migrated_selection_count == 4
        assert report.dangling_indices == []
        assert report.discarded_keys == []
        assert report.changed

    def test_legacy_keys_are_deleted(self, migrator):
        persisted = migrator.migrate(legacy_settings()).state.to_dict()

        for key in LEGACY_KEYS:
            assert key not in persisted
        assert persisted['schemaVersion'] == CURRENT_SCHEMA_VERSION
        assert persisted['lumiaOOCInterval'] == 10

    def test_missing_url_uses_marker(self, migrator):
        settings = legacy_settings()
        del settings['worldBookUrl']

        pack = migrator.migrate(settings).state.packs[LEGACY]

        assert pack.source_url == "Legacy"

    def test_input_is_not_modified(self, migrator):
        settings = legacy_settings()
        before = copy.deepcopy(settings)

        migrator.migrate(settings)

        assert settings == before

    def test_custom_legacy_label(self):
        migrator = SchemaMigrator(config=EngineConfig(legacy_pack_label="Old Library"))

        state = migrator.migrate(legacy_settings()).state

        assert list(state.packs) == ["Old Library"]
        assert state.selected_definition.pack_name == "Old Library"

    def test_duplicate_names_keep_first(self, migrator):
        library = [
            {"lumiaDefName": "Aria", "lumiaDef": "first"},
            {"lumiaDefName": "Aria", "lumiaDef": "second"},
        ]

        pack = migrator.migrate(legacy_settings(lumiaLibrary=library)).state.packs[LEGACY]

        assert len(pack.lumia_items) == 1
        assert pack.lumia_items[0].lumia_definition == "first"

    def test_unrecognized_gender_does_not_abort(self, migrator):
        settings = {
            "lumiaLibrary": [{"lumiaDefName": "A", "genderIdentity": 7}],
            "selectedDefinition": 0,
        }

        result = migrator.migrate(settings)

        assert result.migrated
        assert result.state.packs[LEGACY].find_lumia("A").gender_identity == GenderIdentity.SHE_HER
        assert result.state.selected_definition == _ref("A")


class TestDanglingIndices:

    def test_out_of_range_definition_becomes_none(self, migrator):
        result = migrator.migrate(legacy_settings(selectedDefinition=99))

        assert result.state.selected_definition is None
        assert result.report.dangling_indices == [DanglingIndex('selectedDefinition', 99)]

    def test_unresolvable_multi_selections_are_omitted(self, migrator):
        result = migrator.migrate(legacy_settings(selectedBehaviors=[0, 3, 99, -1, True]))

        assert result.state.selected_behaviors == [_ref("Aria")]
        assert [d.index for d in result.report.dangling_indices] == [3, 99, -1]

    def test_non_list_multi_selection_is_reset(self, migrator):
        state = migrator.migrate(legacy_settings(selectedPersonalities="oops")).state

        assert state.selected_personalities == []

    def test_name_references_are_preserved(self, migrator):
        existing = {"packName": "Other", "itemName": "Zed"}

        state = migrator.migrate(legacy_settings(selectedBehaviors=[0, existing])).state

        assert state.selected_behaviors == [_ref("Aria"), SelectionRef("Other", "Zed")]

    def test_dangling_index_is_audited(self):
        audit_log = AuditLog()
        SchemaMigrator(audit_log=audit_log).migrate(legacy_settings(selectedDefinition=99))

        assert len(audit_log.get_entries(action="dangling_index")) == 1


class TestResolveIndex:

    ITEMS = [LumiaItem(lumia_name="Aria"), None, LumiaItem(lumia_name=None)]

    def test_valid_index(self, migrator):
        assert migrator.resolve_index(0, self.ITEMS) == _ref("Aria")

    @pytest.mark.parametrize("index", [1, 2, 3, -1, True, "0", 0.0, None])
    def test_unresolvable(self, migrator, index):
        assert migrator.resolve_index(index, self.ITEMS) is None


# =============================================================================
# RAW PAYLOAD MIGRATION
# =============================================================================

class TestWorldBookDataMigration:

    def test_payload_goes_through_ingestion(self, migrator):
        settings = legacy_settings(
            lumiaLibrary=None,
            worldBookData=WORLD_BOOK,
            selectedDefinition=1,
            selectedPersonalities=[],
        )

        result = migrator.migrate(settings)
        pack = result.state.packs[LEGACY]

        assert [i.lumia_name for i in pack.lumia_items] == ["Aria", "Bram"]
        assert [i.loom_name for i in pack.loom_items] == ["Gothic", "Dice Roller", "Fixer"]
        assert result.state.selected_definition == _ref("Bram")
        assert result.report.legacy_item_count == 5
        assert 'worldBookData' not in result.state.to_dict()

    def test_library_takes_precedence(self, migrator):
        result = migrator.migrate(legacy_settings(worldBookData=WORLD_BOOK))

        assert result.state.packs[LEGACY].loom_items == ()
        assert result.report.legacy_item_count == 4


# =============================================================================
# ONE-SHOT GUARD
# =============================================================================

class TestOneShotGuard:

    def test_existing_packs_block_migration(self, migrator):
        settings = legacy_settings(packs={"Canon": copy.deepcopy(CANONICAL_PACK)})

        result = migrator.migrate(settings)

        assert not result.migrated
        assert list(result.state.packs) == ["Canon"]
        assert result.report.discarded_keys == ['lumiaLibrary', 'worldBookUrl']
        assert 'lumiaLibrary' not in result.state.to_dict()

    def test_schema_version_blocks_migration(self, migrator):
        settings = legacy_settings(schemaVersion=CURRENT_SCHEMA_VERSION)

        result = migrator.migrate(settings)

        assert not result.migrated
        assert result.state.packs == {}
        assert not result.report.flag_stamped

    def test_emptied_packs_do_not_remigrate(self, migrator):
        persisted = migrator.migrate(legacy_settings()).state.to_dict()
        persisted['packs'] = {}

        result = migrator.migrate(persisted)

        assert not result.migrated
        assert result.state.packs == {}
        assert not result.report.changed

    def test_empty_library_still_deletes_keys(self, migrator):
        result = migrator.migrate(legacy_settings(lumiaLibrary=[]))

        assert result.migrated
        assert result.state.packs == {}
        assert result.state.selected_definition is None
        assert 'lumiaLibrary' not in result.state.to_dict()

    def test_fresh_settings_get_flag(self, migrator):
        result = migrator.migrate(None)

        assert result.state.packs == {}
        assert result.state.ooc_style == "social"
        assert result.report.flag_stamped
        assert result.state.to_dict()['schemaVersion'] == CURRENT_SCHEMA_VERSION

    @pytest.mark.parametrize("data,expected", [
        ({'lumiaLibrary': []}, True),
        ({'worldBookData': {}}, True),
        ({'lumiaLibrary': None}, False),
        ({'lumiaLibrary': [], 'packs': {'A': {}}}, False),
        ({'lumiaLibrary': [], 'schemaVersion': 2}, False),
        ({}, False),
    ])
    def test_needs_migration(self, migrator, data, expected):
        assert migrator.needs_migration(data) is expected


# =============================================================================
# STORED PACK NORMALIZATION
# =============================================================================

class TestStoredPacks:

    def test_older_pack_shape_is_normalized(self, migrator):
        settings = {"packs": {"Old": copy.deepcopy(LEGACY_PACK)}, "schemaVersion": 2}

        result = migrator.migrate(settings)
        pack = result.state.packs["Old"]

        assert pack.pack_name == "Old"
        assert [i.lumia_name for i in pack.lumia_items] == ["Aria", "Bram"]
        assert result.report.normalized_packs == ["Old"]
        assert result.report.changed

    def test_canonical_pack_is_untouched(self, migrator):
        settings = {"packs": {"Canon": copy.deepcopy(CANONICAL_PACK)}, "schemaVersion": 2}

        result = migrator.migrate(settings)

        assert result.state.packs["Canon"].to_dict() == CANONICAL_PACK
        assert not result.report.changed

    def test_unreadable_pack_is_dropped(self, migrator):
        settings = {
            "packs": {"Bad": {"foo": 1}, "Canon": copy.deepcopy(CANONICAL_PACK)},
            "schemaVersion": 2,
        }

        result = migrator.migrate(settings)

        assert list(result.state.packs) == ["Canon"]
        assert result.report.dropped_packs == ["Bad"]

    def test_pack_with_newer_fields_is_kept(self, migrator):
        stored = copy.deepcopy(CANONICAL_PACK)
        stored["isCustom"] = True
        stored["loomItems"][0]["loomCategory"] = "Summaries"
        settings = {
            "packs": {"Canon": stored},
            "selectedDefinition": {"packName": "Canon", "itemName": "Aria"},
            "schemaVersion": 2,
        }

        result = migrator.migrate(settings)

        assert result.state.packs["Canon"].to_dict() == stored
        assert result.state.selected_definition == SelectionRef(pack_name="Canon", item_name="Aria")
        assert not result.report.dropped_packs
        assert not result.report.changed

    def test_partly_unusable_pack_is_normalized(self, migrator):
        stored = copy.deepcopy(CANONICAL_PACK)
        stored["lumiaItems"].append("not an object")
        settings = {"packs": {"Canon": stored}, "schemaVersion": 2}

        result = migrator.migrate(settings)

        assert result.state.packs["Canon"].to_dict() == CANONICAL_PACK
        assert result.report.normalized_packs == ["Canon"]
