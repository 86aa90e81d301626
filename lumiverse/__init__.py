"""
Lumiverse Pack Engine

This package converts heterogeneous pack sources into one canonical,
versioned structure of typed content items, and reconciles selections made
under older settings schemas. Each layer communicates only through explicit
contracts.

LAYER STRUCTURE:
================

1. CONTRACTS (contracts/)
   - Canonical types: LumiaItem, LoomItem, Pack, SelectionRef
   - Explicit error codes and audit event records
   - MUST NOT: Contain classification or migration logic

2. INGESTION LAYER (ingestion/)
   - Responsibility: Tag stripping, entry classification, Lumia
     aggregation, payload shape detection and pack assembly
   - Allowed inputs: Already-parsed JSON payloads (never raw bytes)
   - Outputs: Fully assembled Pack + ConversionReport
   - MUST NOT: Touch settings or persist anything

3. MIGRATION LAYER (migration/)
   - Responsibility: One-shot upgrade of legacy settings shapes
   - Allowed inputs: The raw persisted settings mapping
   - Outputs: Canonical SettingsState + MigrationReport

4. SETTINGS (settings/)
   - Responsibility: The process-wide settings container, its mutations,
     and the load/save port to the host's persistence collaborator

5. QUERY (query/)
   - Responsibility: Read-only selection resolution and content rendering
   - MUST NOT: Prune or mutate stored selections

6. OBSERVABILITY (observability/)
   - Responsibility: Append-only audit log of conversion decisions

CONSTRAINTS ENFORCED:
=====================
- Entry-level problems are recovered locally (entry dropped, recorded)
- Whole-payload shape problems are fatal (no partial pack)
- A pack is fully assembled before it becomes visible in settings
- Selection resolution never raises
"""

__version__ = "2.0.0"
