"""
Pack Format Converter CLI
=========================

Converts older Lumiverse packs or World Books into the canonical pack
format.

SUPPORTED INPUT:
- World Book (has an `entries` object)
- Raw entries array
- Older internal pack (has an `items` array)
- Canonical pack (written back unchanged)

USAGE:
    python -m lumiverse.convert <input.json> [output.json]

If no output file is given, writes to <input>.converted.json.
Exit code 0 on success, 1 on any failure.
"""
import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .config import CONVERTED_SUFFIX, EngineConfig
from .contracts.base import LumiverseError
from .ingestion.assembler import PackAssembler
from .serialization import dumps_pretty


def default_output_path(input_path: Path, suffix: str = CONVERTED_SUFFIX) -> Path:
    """`pack.json` -> `pack.converted.json`; other names get the suffix appended."""
    if input_path.suffix.lower() == '.json':
        return input_path.with_name(input_path.stem + suffix)
    return input_path.with_name(input_path.name + suffix)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lumiverse-convert",
        description="Convert World Books and older packs to the canonical pack format",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Supported input formats:\n"
            "  - World Book (has entries object)\n"
            "  - Legacy pack format (has items array)\n"
            "  - Raw entries array"
        )
    )
    parser.add_argument("input", nargs="?", help="Input JSON file")
    parser.add_argument("output", nargs="?", help="Output JSON file (default: <input>.converted.json)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.input:
        parser.print_help()
        return 1

    config = EngineConfig.from_env()
    input_path = Path(args.input).resolve()
    if args.output:
        output_path = Path(args.output).resolve()
    else:
        output_path = default_output_path(input_path, config.converted_suffix)

    if not input_path.is_file():
        print(f"Error: Input file not found: {input_path}", file=sys.stderr)
        return 1

    print(f"Reading: {input_path}")
    try:
        with open(input_path, 'r', encoding='utf-8') as f:
            payload = json.load(f)
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON: {e}", file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: Could not read input: {e}", file=sys.stderr)
        return 1

    print("Converting...")
    try:
        result = PackAssembler().assemble(input_path.stem or config.default_source_name, payload)
    except LumiverseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    pack = result.pack
    print(result.report.summary())

    print(f"Writing: {output_path}")
    try:
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(dumps_pretty(pack))
    except OSError as e:
        print(f"Error: Could not write output: {e}", file=sys.stderr)
        return 1

    print("")
    print("Conversion complete!")
    print("")
    print("Summary:")
    print(f"  Pack Name: {pack.pack_name}")
    print(f"  Lumia Items: {len(pack.lumia_items)}")
    print(f"  Loom Items: {len(pack.loom_items)}")
    if pack.loom_items:
        categories = ", ".join(pack.loom_category_labels())
        print(f"  Loom Categories: {categories}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
