"""
Reference-file loaders: fixed records and variable-tail records.

**Conceptual**: A reference file is a plain-text table with no header. Each
line is one record; fields are separated by a caller-supplied string (``|``
in most files). The caller declares the record shape once (a RecordSchema or
a dataclass) and the loaders turn every line into one record, converting each
token with the Field Converter (convert.py).

**Two shapes**:
  - ``load_records``: every line has exactly N tokens, N = schema width.
  - ``load_records_var_tail``: K leading tokens, one control token, then a
    run of tokens grouped into nested tail records of M fields each.

**Return contract**: both loaders return ``LoadResult(count, error)``.
``count`` is the number of records assembled before the load stopped and
``error`` is None or a LoadError describing why it stopped. A load never
skips a bad line: the first failure ends it. The destination list is
replaced at the start of the call and truncated to ``count`` on every exit.

**Kept-as-is behaviors** (callers depend on them, see DESIGN.md):
  - Blank lines are skipped only while ``records_so_far < line_count - 1``,
    where ``line_count`` is the number of newline bytes in the file. A blank
    final line is therefore tokenized and fails the field-count check.
  - The tail-group count is derived from the number of remaining tokens by
    integer division; the control token is only cross-checked and logged.

**Usage**:
    >>> branches = []
    >>> count, err = load_records("data/ref/branches.txt", "|", Branch, branches)
    >>> if err is not None:
    ...     print(f"stopped after {count} records: {err}")
"""

import codecs
import logging
from collections.abc import MutableSequence
from typing import Any, Callable, NamedTuple, Optional

from refload.config.settings import get_settings
from refload.data.convert import convert_token
from refload.data.errors import (
    ArgumentShapeError,
    ConversionError,
    FieldCountError,
    LoadError,
    ReferenceFileIOError,
)
from refload.data.io import count_lines, iter_trimmed_lines
from refload.data.schemas import FieldSpec, FieldType, RecordSchema, TailSpec, resolve_schema
from refload.data.tokenize import split_line


logger = logging.getLogger(__name__)


class LoadResult(NamedTuple):
    """
    Outcome of one load: how far it got and why it stopped.

    Unpacks like a pair: ``count, error = load_records(...)``.

    Attributes:
        count: Records assembled before the load ended. On error this is
               "records before the failing line", not "all good records".
        error: None on full success, otherwise the LoadError that ended it.
    """
    count: int
    error: Optional[LoadError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> int:
        """Raise the stored error, if any; return ``count`` otherwise."""
        if self.error is not None:
            raise self.error
        return self.count


def load_records(
    path,
    separator: str,
    schema: Any,
    out: MutableSequence,
    *,
    encoding: Optional[str] = None,
) -> LoadResult:
    """
    Load a file of fixed-width records into ``out``.

    **Functionally**:
      1. Check arguments (no I/O if they are wrong).
      2. Count newline bytes; resize ``out`` to that many slots.
      3. Scan line by line: skip blank lines per the blank-line policy, split
         the trimmed line on ``separator``, require exactly N tokens, convert
         each token into its field, store the record at the next index.
      4. Truncate ``out`` to the number of records assembled.

    Args:
        path: Reference file path.
        separator: Field separator string (e.g. "|").
        schema: RecordSchema or dataclass type describing one line. Must not
                contain a variable tail.
        out: Destination list; previous contents are discarded.
        encoding: Text encoding of the file. Defaults to the configured
                  ``REFLOAD_ENCODING`` (utf-8).

    Returns:
        LoadResult(count, error). ``error`` is one of ArgumentShapeError,
        ReferenceFileIOError, FieldCountError, ConversionError, or None.

    Example:
        >>> rows = []
        >>> load_records(path, "|", Branch, rows)
        LoadResult(count=3, error=None)
    """
    try:
        _check_destination(out)
        schema = resolve_schema(schema)
        if not schema.is_fixed:
            raise ArgumentShapeError(
                f"schema {schema.name!r} has a variable tail field "
                f"{schema.tail.name!r}; use load_records_var_tail"
            )
        if not separator:
            raise ArgumentShapeError("separator must be a non-empty string")
        encoding = _resolve_encoding(encoding)
    except ArgumentShapeError as exc:
        return LoadResult(0, exc)

    width = schema.field_count

    def assemble(line: str, line_number: int) -> Any:
        tokens = split_line(line, separator)
        if len(tokens) != width:
            raise FieldCountError(line_number, len(tokens), width)
        return schema.build(_convert_fields(schema.fields, tokens, line_number, encoding))

    return _load_lines(path, out, encoding, assemble, schema)


def load_records_var_tail(
    path,
    separator: str,
    control_index: int,
    schema: Any,
    out: MutableSequence,
    *,
    encoding: Optional[str] = None,
) -> LoadResult:
    """
    Load a file of variable-tail records into ``out``.

    **Line shape**: ``K`` leading tokens (``K = control_index``), one control
    token, then the tail tokens. With M the width of the tail record, tail
    group ``i`` field ``j`` comes from token ``control_index + 1 + i*M + j``.

    **Schema shape**:
      - Fields ``0..control_index-1`` are scalar leading fields.
      - The tail field is the last field, placed either at ``control_index``
        (the control token is not stored) or at ``control_index + 1`` (the
        scalar field at ``control_index`` stores the control token, converted
        by its declared type, usually ``string``).

    **Tail count**: ``(len(tokens) - control_index - 1) // M``. Leftover
    tokens that do not fill a whole group are ignored. The control token is
    parsed as an integer (empty means 0) and a mismatch with the derived
    count is logged as a warning; it never changes how the tail is sliced.

    Args:
        path: Reference file path.
        separator: Field separator string.
        control_index: Zero-based index of the control token on each line.
        schema: RecordSchema or dataclass type with one tail field as above.
        out: Destination list; previous contents are discarded.
        encoding: Text encoding of the file (default from settings).

    Returns:
        LoadResult(count, error), as for ``load_records``.
    """
    try:
        _check_destination(out)
        schema = resolve_schema(schema)
        count_field, tail = _check_var_tail_shape(schema, control_index)
        if not separator:
            raise ArgumentShapeError("separator must be a non-empty string")
        encoding = _resolve_encoding(encoding)
    except ArgumentShapeError as exc:
        return LoadResult(0, exc)

    leading = schema.fields[:control_index]
    nested = tail.schema
    width = nested.field_count
    control_name = count_field.name if count_field is not None else f"control[{control_index}]"

    def assemble(line: str, line_number: int) -> Any:
        tokens = split_line(line, separator)
        if len(tokens) < control_index + 1:
            raise FieldCountError(line_number, len(tokens), control_index + 1)

        values = _convert_fields(leading, tokens[:control_index], line_number, encoding)

        control_token = tokens[control_index]
        try:
            declared = int(convert_token(control_token, FieldType.INT64))
        except ConversionError as exc:
            raise exc.at_line(line_number, control_name) from exc
        if count_field is not None:
            values.update(
                _convert_fields((count_field,), (control_token,), line_number, encoding)
            )

        tail_tokens = tokens[control_index + 1:]
        group_count = len(tail_tokens) // width
        if declared != group_count:
            logger.warning(
                "line %d: control field says %d tail groups, %d tokens make %d groups of %d",
                line_number, declared, len(tail_tokens), group_count, width,
            )

        groups = []
        for i in range(group_count):
            chunk = tail_tokens[i * width:(i + 1) * width]
            groups.append(nested.build(
                _convert_fields(nested.fields, chunk, line_number, encoding,
                                prefix=f"{tail.name}[{i}].")
            ))
        values[tail.name] = groups
        return schema.build(values)

    return _load_lines(path, out, encoding, assemble, schema)


def _check_destination(out: Any) -> None:
    if isinstance(out, (str, bytes, bytearray)) or not isinstance(out, MutableSequence):
        raise ArgumentShapeError(
            f"destination must be a mutable sequence (e.g. a list), "
            f"got {type(out).__name__}"
        )


def _resolve_encoding(encoding: Optional[str]) -> str:
    """Return a codec name Python knows, falling back to the configured one."""
    if not encoding:
        try:
            encoding = get_settings().loader.encoding
        except ValueError as exc:
            raise ArgumentShapeError(f"invalid loader settings: {exc}") from exc
    try:
        codecs.lookup(encoding)
    except (LookupError, TypeError) as exc:
        raise ArgumentShapeError(f"unknown encoding {encoding!r}") from exc
    return encoding


def _check_var_tail_shape(
    schema: RecordSchema, control_index: int
) -> tuple[Optional[FieldSpec], TailSpec]:
    """Return (count_field or None, tail) or raise ArgumentShapeError."""
    if isinstance(control_index, bool) or not isinstance(control_index, int) or control_index < 0:
        raise ArgumentShapeError(
            f"control field index must be a non-negative integer, got {control_index!r}"
        )

    tail = schema.tail
    if tail is None:
        raise ArgumentShapeError(
            f"schema {schema.name!r} has no variable tail field; use load_records"
        )

    tail_position = schema.index_of(tail.name)
    if tail_position != schema.field_count - 1:
        raise ArgumentShapeError(
            f"schema {schema.name!r}: tail field {tail.name!r} must be the last field"
        )
    if tail_position not in (control_index, control_index + 1):
        raise ArgumentShapeError(
            f"schema {schema.name!r}: tail field {tail.name!r} is at index "
            f"{tail_position}, expected {control_index} or {control_index + 1} "
            f"for control field index {control_index}"
        )
    if tail.schema.field_count == 0:
        raise ArgumentShapeError(
            f"tail record {tail.schema.name!r} must declare at least one field"
        )

    count_field = schema.fields[control_index] if tail_position == control_index + 1 else None
    return count_field, tail


def _convert_fields(
    fields,
    tokens,
    line_number: int,
    encoding: str,
    prefix: str = "",
) -> dict:
    values = {}
    for field, token in zip(fields, tokens):
        try:
            values[field.name] = convert_token(token, field.field_type, encoding)
        except ConversionError as exc:
            raise exc.at_line(line_number, prefix + field.name) from exc
    return values


def _load_lines(
    path,
    out: MutableSequence,
    encoding: str,
    assemble: Callable[[str, int], Any],
    schema: RecordSchema,
) -> LoadResult:
    """
    Shared scan loop: open, count, pre-size, assemble line by line, truncate.

    The file handle is closed on every exit path. ``out`` always ends up
    holding exactly the records assembled.
    """
    try:
        fh = open(path, "rb")
    except OSError as exc:
        return LoadResult(0, ReferenceFileIOError(path, exc))

    index = 0
    line_number = 0
    error: Optional[LoadError] = None
    with fh:
        try:
            line_count = count_lines(fh)
            fh.seek(0)
        except OSError as exc:
            return LoadResult(0, ReferenceFileIOError(path, exc))

        logger.debug("loading %s records from %s (%d lines)", schema.name, path, line_count)
        out[:] = [None] * line_count

        try:
            for line_number, line in iter_trimmed_lines(fh, encoding):
                if not line and index < line_count - 1:
                    continue
                record = assemble(line, line_number)
                if index < len(out):
                    out[index] = record
                else:
                    # last line has no trailing newline, so it was not counted
                    out.append(record)
                index += 1
        except LoadError as exc:
            error = exc
        except (OSError, UnicodeDecodeError) as exc:
            error = ReferenceFileIOError(path, exc, line=line_number + 1)
        finally:
            del out[index:]

    if error is None:
        logger.debug("loaded %d %s records from %s", index, schema.name, path)
    else:
        logger.debug("load of %s stopped after %d records: %s", path, index, error)
    return LoadResult(index, error)
