"""
Error kinds reported by the reference-file loaders.

**Conceptual**: Every way a load can stop is modelled as one exception class.
The loaders never raise these; they return them inside a LoadResult next to
the number of records assembled before the failure. The Field Converter and
the schema helpers do raise them, which is how the loaders collect them.

**Kinds**:
  - ArgumentShapeError: destination or schema has the wrong shape (no I/O done).
  - ReferenceFileIOError: the file cannot be opened or a read fails mid-scan.
  - FieldCountError: a line's token count does not match the record width.
  - ConversionError: a token cannot be turned into its field's type.

All messages carry enough context (line number, token, type) to fix the
input file without re-running under a debugger.
"""

from typing import Any, Optional


class LoadError(Exception):
    """
    Base class for every error a load can end with.

    Attributes:
        line: 1-based line number in the reference file, or None when the
              error is not tied to a line (argument shape, open failure).
    """

    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message)
        self.line = line


class ArgumentShapeError(LoadError):
    """Raised when the destination or schema cannot be used for a load."""
    pass


class ReferenceFileIOError(LoadError):
    """Wraps the OSError (or decode error) raised while opening or reading the file."""

    def __init__(self, path, cause: Exception, line: Optional[int] = None):
        super().__init__(f"cannot read reference file {path}: {cause}", line=line)
        self.path = path
        self.cause = cause


class FieldCountError(LoadError):
    """
    A line split into a different number of tokens than the record declares.

    The message keeps the historical wording used by the loaders' callers:
    ``[line:3] line seg num 2 != struct field num 3``.
    """

    def __init__(self, line: int, actual: int, expected: int):
        super().__init__(
            f"[line:{line}] line seg num {actual} != struct field num {expected}",
            line=line,
        )
        self.actual = actual
        self.expected = expected


class ConversionError(LoadError):
    """
    A token could not be converted into its target field type.

    Raised by the Field Converter with only ``token`` and ``field_type`` set;
    the loaders attach the line number and field name via ``at_line``.
    """

    def __init__(
        self,
        token: str,
        field_type: Any,
        line: Optional[int] = None,
        field: Optional[str] = None,
        reason: Optional[str] = None,
    ):
        self.token = token
        self.field_type = field_type
        self.field = field
        self.reason = reason

        type_name = getattr(field_type, "value", None) or getattr(
            field_type, "__name__", None
        ) or str(field_type)
        message = f"{token!r} can not convert to type {type_name}"
        if reason:
            message += f" ({reason})"
        if field:
            message = f"field {field!r}: {message}"
        if line is not None:
            message = f"[line:{line}] {message}"
        super().__init__(message, line=line)

    def at_line(self, line: int, field: Optional[str] = None) -> "ConversionError":
        """Return a copy of this error tagged with a line number and field name."""
        return ConversionError(
            self.token,
            self.field_type,
            line=line,
            field=field if field is not None else self.field,
            reason=self.reason,
        )
