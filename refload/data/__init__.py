"""
Reference-file loading: record schemas, the Field Converter, and the loaders.

Handles turning delimited flat-text reference files into lists of typed
records, plus DataFrame/CSV export of the loaded records.
"""

from refload.data.convert import convert_token
from refload.data.errors import (
    ArgumentShapeError,
    ConversionError,
    FieldCountError,
    LoadError,
    ReferenceFileIOError,
)
from refload.data.io import records_to_frame, write_records_csv
from refload.data.loaders import LoadResult, load_records, load_records_var_tail
from refload.data.schemas import (
    Char,
    FieldSpec,
    FieldType,
    Int8,
    Int16,
    Int32,
    Int64,
    RecordSchema,
    TailSpec,
    UInt,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
    schema_from_dataclass,
)
from refload.data.tokenize import split_line
