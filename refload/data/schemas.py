"""
Record type descriptors for reference-file loading.

**Conceptual**: A reference file has no header; the meaning of each token is
fixed by position. This module holds the "data contract" that says what the
N-th token of a line is called and which type it must convert to. Loaders
never inspect caller classes at runtime beyond what is declared here, so any
record shape can be described once and reused by both loaders.

**Two ways to declare a record**:
  - Explicitly, with a RecordSchema of FieldSpec / TailSpec entries. Records
    are then produced as plain dicts (or via ``record_type`` if given).
  - From a dataclass, via ``schema_from_dataclass``. Field order is the
    dataclass field order and types come from the type hints:

      >>> @dataclass
      ... class Branch:
      ...     code: Int32
      ...     name: str
      ...     grade: Char
      >>> schema_from_dataclass(Branch).field_count
      3

**Variable tails**: a field typed ``list[Nested]`` (or declared with a
TailSpec) holds a dynamically sized list of nested fixed records. Only the
variable-tail loader accepts schemas that contain one.
"""

import dataclasses
import typing
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Callable, Optional, Union

import numpy as np

from refload.data.errors import ArgumentShapeError


class FieldType(str, Enum):
    """
    Semantic type tag of one record field.

    ``INT`` and ``UINT`` are the platform-default widths (64 bits).
    ``CHAR`` is a single raw byte; ``STRING`` is the token text as-is.
    """
    INT = "int"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT = "uint"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    CHAR = "char"
    STRING = "string"

    @property
    def is_signed(self) -> bool:
        return self in _SIGNED_TYPES

    @property
    def is_unsigned(self) -> bool:
        return self in _UNSIGNED_TYPES

    @property
    def is_integer(self) -> bool:
        return self.is_signed or self.is_unsigned

    @property
    def numpy_dtype(self) -> np.dtype:
        """numpy dtype used for width narrowing and DataFrame columns."""
        return np.dtype(_NUMPY_DTYPES.get(self, object))


_SIGNED_TYPES = frozenset({
    FieldType.INT, FieldType.INT8, FieldType.INT16, FieldType.INT32, FieldType.INT64,
})
_UNSIGNED_TYPES = frozenset({
    FieldType.UINT, FieldType.UINT8, FieldType.UINT16, FieldType.UINT32, FieldType.UINT64,
})
_NUMPY_DTYPES = {
    FieldType.INT: np.int64,
    FieldType.INT8: np.int8,
    FieldType.INT16: np.int16,
    FieldType.INT32: np.int32,
    FieldType.INT64: np.int64,
    FieldType.UINT: np.uint64,
    FieldType.UINT8: np.uint8,
    FieldType.UINT16: np.uint16,
    FieldType.UINT32: np.uint32,
    FieldType.UINT64: np.uint64,
}

# Annotation aliases for dataclass records
Int8 = Annotated[int, FieldType.INT8]
Int16 = Annotated[int, FieldType.INT16]
Int32 = Annotated[int, FieldType.INT32]
Int64 = Annotated[int, FieldType.INT64]
UInt = Annotated[int, FieldType.UINT]
UInt8 = Annotated[int, FieldType.UINT8]
UInt16 = Annotated[int, FieldType.UINT16]
UInt32 = Annotated[int, FieldType.UINT32]
UInt64 = Annotated[int, FieldType.UINT64]
Char = Annotated[bytes, FieldType.CHAR]


def coerce_field_type(value: Any) -> Any:
    """
    Turn ``"int32"``-style strings into FieldType members.

    Values that are not a known tag are returned unchanged; converting a token
    to such a type fails later with a ConversionError naming it.
    """
    if isinstance(value, FieldType):
        return value
    if isinstance(value, str):
        try:
            return FieldType(value.strip().lower())
        except ValueError:
            return value
    return value


@dataclass(frozen=True)
class FieldSpec:
    """One scalar field: its name and semantic type."""
    name: str
    field_type: Any

    def __post_init__(self):
        object.__setattr__(self, "field_type", coerce_field_type(self.field_type))


@dataclass(frozen=True)
class TailSpec:
    """
    A field holding a list of nested records of a fixed shape.

    Attributes:
        name: Field name on the parent record.
        schema: Shape of one tail group. Must be fixed (no tail of its own)
                and declare at least one field.
    """
    name: str
    schema: "RecordSchema"

    def __post_init__(self):
        if not self.schema.is_fixed:
            raise ArgumentShapeError(
                f"tail field {self.name!r}: nested schema {self.schema.name!r} "
                f"must not contain a variable tail itself"
            )


FieldDef = Union[FieldSpec, TailSpec]


@dataclass(frozen=True)
class RecordSchema:
    """
    Ordered field list describing one line (or one tail group).

    **Functionally**:
      - ``fields`` order must match token order on the line.
      - ``build(values)`` produces a record instance: ``record_type(**values)``
        when a record type is attached, a dict otherwise.
      - At most one TailSpec is allowed.

    Attributes:
        name: Human-readable name used in error messages.
        fields: FieldSpec / TailSpec entries, in line order.
        record_type: Optional callable building one record from keyword
                     arguments (typically the dataclass the schema came from).
    """
    name: str
    fields: tuple
    record_type: Optional[Callable[..., Any]] = None

    def __post_init__(self):
        object.__setattr__(self, "fields", tuple(self.fields))
        for f in self.fields:
            if not isinstance(f, (FieldSpec, TailSpec)):
                raise ArgumentShapeError(
                    f"schema {self.name!r}: expected FieldSpec or TailSpec, got {f!r}"
                )
        names = [f.name for f in self.fields]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ArgumentShapeError(
                f"schema {self.name!r}: duplicate field names {duplicates}"
            )
        if sum(isinstance(f, TailSpec) for f in self.fields) > 1:
            raise ArgumentShapeError(
                f"schema {self.name!r}: at most one variable tail field is allowed"
            )

    @property
    def field_count(self) -> int:
        return len(self.fields)

    @property
    def field_names(self) -> list:
        return [f.name for f in self.fields]

    @property
    def tail(self) -> Optional[TailSpec]:
        for f in self.fields:
            if isinstance(f, TailSpec):
                return f
        return None

    @property
    def is_fixed(self) -> bool:
        return self.tail is None

    def index_of(self, name: str) -> int:
        return self.field_names.index(name)

    def build(self, values: dict) -> Any:
        if self.record_type is None:
            return dict(values)
        return self.record_type(**values)


def schema_from_dataclass(cls: type) -> RecordSchema:
    """
    Build a RecordSchema from a dataclass's fields and type hints.

    **Type mapping**:
      - ``Annotated[..., FieldType.X]`` (or ``Annotated[..., "x"]``) → X
      - ``int`` → INT, ``str`` → STRING, ``bytes`` → CHAR
      - ``list[Nested]`` / ``List[Nested]`` with Nested a dataclass → TailSpec
      - anything else is kept as-is and fails when a token is converted to it

    Fields declared with ``field(init=False)`` are not read from the line and
    are left out of the schema.

    Args:
        cls: A dataclass type (not an instance).

    Returns:
        RecordSchema whose ``record_type`` is ``cls``.

    Raises:
        ArgumentShapeError: If ``cls`` is not a dataclass type.
    """
    if not (isinstance(cls, type) and dataclasses.is_dataclass(cls)):
        raise ArgumentShapeError(
            f"record type must be a dataclass type, got {cls!r}"
        )

    hints = typing.get_type_hints(cls, include_extras=True)
    fields = []
    for dc_field in dataclasses.fields(cls):
        if not dc_field.init:
            # computed by the record itself, never read from the line
            continue
        hint = hints.get(dc_field.name, dc_field.type)
        fields.append(_field_from_hint(dc_field.name, hint))

    return RecordSchema(name=cls.__name__, fields=fields, record_type=cls)


def _field_from_hint(name: str, hint: Any) -> FieldDef:
    origin = typing.get_origin(hint)

    if origin is Annotated:
        base, *extras = typing.get_args(hint)
        for extra in extras:
            tagged = coerce_field_type(extra)
            if isinstance(tagged, FieldType):
                return FieldSpec(name, tagged)
        return _field_from_hint(name, base)

    if origin is list:
        args = typing.get_args(hint)
        if len(args) == 1 and dataclasses.is_dataclass(args[0]):
            return TailSpec(name, schema_from_dataclass(args[0]))
        return FieldSpec(name, hint)

    if hint is int:
        return FieldSpec(name, FieldType.INT)
    if hint is str:
        return FieldSpec(name, FieldType.STRING)
    if hint is bytes:
        return FieldSpec(name, FieldType.CHAR)
    return FieldSpec(name, hint)


def resolve_schema(schema_or_type: Any) -> RecordSchema:
    """Accept a RecordSchema or a dataclass type and return a RecordSchema."""
    if isinstance(schema_or_type, RecordSchema):
        return schema_or_type
    if isinstance(schema_or_type, type) and dataclasses.is_dataclass(schema_or_type):
        return schema_from_dataclass(schema_or_type)
    raise ArgumentShapeError(
        f"record descriptor must be a RecordSchema or a dataclass type, "
        f"got {type(schema_or_type).__name__}"
    )
