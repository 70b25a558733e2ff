"""rbridge — value bridge between an embedded scripting runtime and Python."""

from .bridge import Bridge, error_object, format_frames
from .config import BridgeConfig
from .decoder import DEFAULT_MAX_DEPTH, decode
from .encoder import direct_numeric, encode, literal_numeric
from .errors import (
    AccessorError,
    BridgeError,
    DecodeError,
    DepthExceeded,
    EncodeError,
    ErrorConstructionFailed,
    InvalidKeyType,
    InvalidTarget,
    PartialCoercionError,
    PropagatedChildError,
    TypeMismatch,
    UnmarshalError,
    UnsupportedKeyType,
    UnsupportedType,
)
from .memory import MemoryRuntime, RValue
from .policy import LENIENT, STRICT, CoercionPolicy
from .runtime import Discriminant, RuntimeBinding, RuntimeException, is_truthy
from .schema import RecordSchema, schema_of, tag
from .unmarshal import unmarshal
from .values import (
    GBool,
    GFloat,
    GInt,
    GMapping,
    GSequence,
    GString,
    Node,
    Null,
    format_tree,
    from_python,
    to_python,
)

__all__ = [
    "decode",
    "encode",
    "unmarshal",
    "error_object",
    "format_frames",
    "direct_numeric",
    "literal_numeric",
    "Bridge",
    "BridgeConfig",
    "DEFAULT_MAX_DEPTH",
    "CoercionPolicy",
    "LENIENT",
    "STRICT",
    "Discriminant",
    "RuntimeBinding",
    "RuntimeException",
    "is_truthy",
    "MemoryRuntime",
    "RValue",
    "RecordSchema",
    "schema_of",
    "tag",
    "Node",
    "Null",
    "GBool",
    "GInt",
    "GFloat",
    "GString",
    "GSequence",
    "GMapping",
    "from_python",
    "to_python",
    "format_tree",
    "BridgeError",
    "DecodeError",
    "EncodeError",
    "UnmarshalError",
    "UnsupportedType",
    "InvalidKeyType",
    "UnsupportedKeyType",
    "InvalidTarget",
    "AccessorError",
    "TypeMismatch",
    "PartialCoercionError",
    "DepthExceeded",
    "PropagatedChildError",
    "ErrorConstructionFailed",
]
