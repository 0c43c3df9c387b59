"""
File plumbing around the loaders, plus DataFrame / CSV export of loaded records.

**Conceptual**: The loaders own the interesting logic (conversion, record
assembly). Everything that touches bytes on disk lives here:
  - Counting lines up front so the destination can be pre-sized.
  - Iterating lines as decoded, trimmed text with their 1-based numbers.
  - Turning a list of loaded records into a pandas DataFrame (or CSV) for
    inspection and downstream analysis.

**Line counting quirk**: ``count_lines`` counts newline bytes. A final line
with no trailing newline is therefore not counted. The loaders accept that
line anyway; the count only drives pre-sizing and the blank-line policy.
"""

import logging
from pathlib import Path
from typing import Any, BinaryIO, Iterator

import pandas as pd

from refload.data.schemas import FieldSpec, FieldType, RecordSchema, TailSpec


logger = logging.getLogger(__name__)

# Read size for the line-counting pass
LINE_COUNT_CHUNK_SIZE = 32 * 1024


def count_lines(fh: BinaryIO) -> int:
    """
    Count newline bytes from the current position to EOF.

    Args:
        fh: File object opened in binary mode.

    Returns:
        Number of ``\\n`` bytes read.
    """
    count = 0
    while True:
        chunk = fh.read(LINE_COUNT_CHUNK_SIZE)
        if not chunk:
            return count
        count += chunk.count(b"\n")


def iter_trimmed_lines(fh: BinaryIO, encoding: str) -> Iterator[tuple[int, str]]:
    """
    Yield ``(line_number, trimmed_text)`` for every line of a binary file.

    Line numbers are 1-based physical line numbers. Surrounding whitespace,
    including a ``\\r`` left by CRLF endings, is removed.

    Raises:
        UnicodeDecodeError: If a line is not valid in ``encoding``.
    """
    for line_number, raw in enumerate(fh, start=1):
        yield line_number, raw.decode(encoding).strip()


def _record_value(record: Any, name: str) -> Any:
    if isinstance(record, dict):
        return record[name]
    return getattr(record, name)


def _column(values: list, field: FieldSpec) -> pd.Series:
    dtype = field.field_type.numpy_dtype if isinstance(field.field_type, FieldType) else object
    return pd.Series(values, dtype=dtype, name=field.name)


def records_to_frame(
    records: list,
    schema: RecordSchema,
    explode_tail: bool = False,
) -> pd.DataFrame:
    """
    Convert loaded records into a DataFrame, one column per field.

    **Functionally**:
      - Integer fields keep their declared width (int8 column for Int8, ...).
      - Char and string fields become object columns.
      - The tail field (if any) becomes a column of lists of records, unless
        ``explode_tail`` is set: then each tail group becomes its own row,
        leading fields are repeated, and nested columns are named
        ``<tail>.<field>``. Records with an empty tail produce no rows.

    Args:
        records: Records produced by a loader for ``schema``.
        schema: The schema the records were loaded with.
        explode_tail: Flatten the variable tail into rows.

    Returns:
        DataFrame with columns in schema order.

    Example:
        >>> df = records_to_frame(rows, BRANCH_SCHEMA)
        >>> df.dtypes["code"]
        dtype('int32')
    """
    tail = schema.tail
    if tail is None or not explode_tail:
        columns = {}
        for field in schema.fields:
            values = [_record_value(r, field.name) for r in records]
            if isinstance(field, TailSpec):
                columns[field.name] = pd.Series(values, dtype=object, name=field.name)
            else:
                columns[field.name] = _column(values, field)
        return pd.DataFrame(columns, columns=schema.field_names)

    leading = [f for f in schema.fields if isinstance(f, FieldSpec)]
    nested = tail.schema.fields
    rows: dict[str, list] = {f.name: [] for f in leading}
    for f in nested:
        rows[f"{tail.name}.{f.name}"] = []

    for record in records:
        for group in _record_value(record, tail.name):
            for f in leading:
                rows[f.name].append(_record_value(record, f.name))
            for f in nested:
                rows[f"{tail.name}.{f.name}"].append(_record_value(group, f.name))

    columns = {f.name: _column(rows[f.name], f) for f in leading}
    for f in nested:
        key = f"{tail.name}.{f.name}"
        columns[key] = _column(rows[key], f)
    return pd.DataFrame(columns, columns=list(rows))


def write_records_csv(
    records: list,
    schema: RecordSchema,
    path: Path,
    explode_tail: bool = False,
    separator: str = ",",
) -> Path:
    """
    Write loaded records to a CSV file via ``records_to_frame``.

    Char fields are written as their decoded single character (NUL for an
    empty source token). Parent directories are created if needed.

    Returns:
        The path written.
    """
    path = Path(path)
    df = records_to_frame(records, schema, explode_tail=explode_tail)
    for column in df.columns:
        if df[column].map(lambda v: isinstance(v, bytes)).any():
            df[column] = df[column].map(
                lambda v: v.decode("latin-1") if isinstance(v, bytes) else v
            )
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False, sep=separator)
    logger.debug("wrote %d rows to %s", len(df), path)
    return path

