#!/usr/bin/env python3
"""
Load a reference file with an ad-hoc field layout and report what was loaded.

**Purpose**: Check a reference file against a record layout without writing
any Python: declare the fields on the command line, load the file with the
same loaders the library uses, print a summary, and optionally export the
records to CSV for a closer look in a spreadsheet or pandas.

**Usage**:
    From project root:
    ```bash
    # Fixed records: code|name|grade
    python actions/load_reference_file.py branches.txt \\
        --fields code:int32,name:string,grade:char

    # Variable tail: 4 leading fields, control token at index 4,
    # tail groups of (qty:uint32, price:uint64)
    python actions/load_reference_file.py orders.txt \\
        --fields a:string,b:string,c:string,d:string \\
        --control-index 4 --tail-name lines --tail-fields qty:uint32,price:uint64 \\
        --output data/results/orders.csv --explode-tail
    ```

Relative file names that do not exist in the current directory are resolved
against REFLOAD_DATA_DIR (default data/ref). The separator defaults to
REFLOAD_SEPARATOR ("|").

**Exit codes**:
  - 0: every line loaded
  - 1: bad arguments or the load stopped on an error
"""

import argparse
import sys
from pathlib import Path

# Ensure project root is on path for imports
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from refload.config.settings import get_settings
from refload.data.errors import ArgumentShapeError
from refload.data.io import records_to_frame, write_records_csv
from refload.data.loaders import load_records, load_records_var_tail
from refload.data.schemas import FieldSpec, RecordSchema, TailSpec
from refload.utils.logging_setup import configure_logging


def parse_field_list(text: str) -> list[FieldSpec]:
    """
    Parse ``"name:type,name:type"`` into FieldSpecs.

    A field without ``:type`` is a string field.

    Raises:
        ValueError: If a name is empty.
    """
    fields = []
    for item in text.split(","):
        item = item.strip()
        if not item:
            continue
        name, _, type_tag = item.partition(":")
        name = name.strip()
        if not name:
            raise ValueError(f"field without a name in {text!r}")
        fields.append(FieldSpec(name, type_tag.strip() or "string"))
    return fields


def build_schema(args: argparse.Namespace) -> RecordSchema:
    """Build the record schema described by the command-line arguments."""
    fields = parse_field_list(args.fields)
    if args.tail_fields is None:
        if args.control_index is not None:
            raise ValueError("--control-index requires --tail-fields")
        return RecordSchema(name="record", fields=fields)

    if args.control_index is None:
        raise ValueError("--tail-fields requires --control-index")
    tail_schema = RecordSchema(name=args.tail_name, fields=parse_field_list(args.tail_fields))
    return RecordSchema(name="record", fields=[*fields, TailSpec(args.tail_name, tail_schema)])


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Load a delimited reference file into typed records.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("path", help="Reference file to load")
    parser.add_argument(
        "--fields",
        required=True,
        help="Comma-separated name:type list for the line (or leading) fields. "
             "Types: int, int8..int64, uint, uint8..uint64, char, string",
    )
    parser.add_argument("--separator", default=None, help="Field separator (default: REFLOAD_SEPARATOR)")
    parser.add_argument("--control-index", type=int, default=None, help="Zero-based control field index")
    parser.add_argument("--tail-name", default="tail", help="Name of the tail field (default: tail)")
    parser.add_argument("--tail-fields", default=None, help="name:type list of one tail group")
    parser.add_argument("--output", default=None, help="Write the loaded records to this CSV file")
    parser.add_argument("--explode-tail", action="store_true", help="One CSV row per tail group")
    parser.add_argument("--encoding", default=None, help="File encoding (default: REFLOAD_ENCODING)")
    parser.add_argument("--log-level", default=None, help="Logging level (default: REFLOAD_LOG_LEVEL)")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """
    Parse arguments, load the file, print a summary, and export if asked.

    Returns:
        Process exit code (0 on a complete load, 1 otherwise).
    """
    args = parse_args(argv)

    try:
        configure_logging(args.log_level)
        settings = get_settings().loader
        schema = build_schema(args)
    except (ValueError, ArgumentShapeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    path = settings.resolve(args.path)
    separator = args.separator or settings.separator
    records: list = []

    print(f"Loading {path} (separator {separator!r}, {schema.field_count} fields)...")
    if schema.is_fixed:
        result = load_records(path, separator, schema, records, encoding=args.encoding)
    else:
        result = load_records_var_tail(
            path, separator, args.control_index, schema, records, encoding=args.encoding
        )

    if not result.ok:
        print(f"Error: {result.error}", file=sys.stderr)
        print(f"  {result.count} record(s) assembled before the failure", file=sys.stderr)
        return 1

    print(f"  ✓ Loaded {result.count} record(s)")
    if schema.tail is not None:
        groups = sum(len(r[schema.tail.name]) for r in records)
        print(f"  ✓ {groups} tail group(s) in field {schema.tail.name!r}")

    if args.output:
        out_path = write_records_csv(records, schema, Path(args.output), explode_tail=args.explode_tail)
        print(f"  ✓ Saved to {out_path}")
    else:
        print(records_to_frame(records, schema).head(10).to_string(index=False))

    return 0


if __name__ == "__main__":
    sys.exit(main())
