"""The runtime binding surface rbridge converts against.

Every embedded runtime is reached through an object satisfying
:class:`RuntimeBinding`.  Value handles are opaque to rbridge: it only
ever passes them back to the binding that produced them.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import Any, Protocol

RuntimeValue = Any


class Discriminant(Enum):
    NIL = auto()
    FALSE = auto()
    TRUE = auto()
    INTEGER = auto()
    FLOAT = auto()
    STRING = auto()
    ARRAY = auto()
    HASH = auto()
    OTHER = auto()


class RuntimeException(Exception):
    """Raised by a binding when the runtime itself reports an error."""


class RuntimeBinding(Protocol):
    """Operations an embedded runtime must expose.

    Handles belong to the runtime; the bridge never frees them.  A
    binding is owned by one thread and is not expected to be
    thread-safe.
    """

    # -- Inspection -----------------------------------------------------

    def type_of(self, value: RuntimeValue) -> Discriminant: ...

    def as_int(self, value: RuntimeValue) -> int: ...

    def as_float(self, value: RuntimeValue) -> float: ...

    def as_string(self, value: RuntimeValue) -> str: ...

    def array_view(self, value: RuntimeValue) -> list[RuntimeValue]: ...

    def hash_view(self, value: RuntimeValue) -> list[tuple[RuntimeValue, RuntimeValue]]: ...

    # -- Construction ---------------------------------------------------

    def nil_value(self) -> RuntimeValue: ...

    def bool_value(self, flag: bool) -> RuntimeValue: ...

    def string_value(self, text: str) -> RuntimeValue: ...

    def new_array(self) -> RuntimeValue: ...

    def new_hash(self) -> RuntimeValue: ...

    def append(self, array: RuntimeValue, value: RuntimeValue) -> None: ...

    def store(self, hash_: RuntimeValue, key: RuntimeValue, value: RuntimeValue) -> None: ...

    def load_string(self, source: str) -> RuntimeValue: ...

    # -- Calls ------------------------------------------------------------

    def call_method(self, value: RuntimeValue, name: str, *args: RuntimeValue) -> RuntimeValue: ...

    def make_error_object(self, message: str) -> RuntimeValue: ...


FALSY = frozenset({Discriminant.NIL, Discriminant.FALSE})


def is_truthy(runtime: RuntimeBinding, value: RuntimeValue) -> bool:
    """Embedded-language truthiness: only nil and false are falsy.

    Integer ``0``, empty strings and empty containers are all true.
    """
    return runtime.type_of(value) not in FALSY
