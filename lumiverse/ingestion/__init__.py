"""
Ingestion Layer

RESPONSIBILITY: Turn already-parsed external payloads into canonical Packs
ALLOWED INPUTS: World Book entry collections, older internal packs,
                canonical packs
OUTPUTS: AssemblyResult (Pack + ConversionReport)

WHAT THIS LAYER MUST NOT DO:
============================
- Fetch anything over the network
- Read or write settings
- Deduplicate across packs
- Judge the narrative quality of entry text
"""

from .metadata import ExtractedMetadata, extract_metadata
from .classifier import (
    EntryClassifier, Classification, EntryKind, FragmentType,
    LoomFragment, LumiaFragment, TYPE_RULES, iter_entries,
)
from .aggregator import LumiaAggregator
from .assembler import (
    PackAssembler, AssemblyResult, ConversionReport, EntryBatch,
    PayloadFormat, SkippedEntry, detect_format,
)

__all__ = [
    "ExtractedMetadata", "extract_metadata",
    "EntryClassifier", "Classification", "EntryKind", "FragmentType",
    "LoomFragment", "LumiaFragment", "TYPE_RULES", "iter_entries",
    "LumiaAggregator",
    "PackAssembler", "AssemblyResult", "ConversionReport", "EntryBatch",
    "PayloadFormat", "SkippedEntry", "detect_format",
]
