"""Encoder: host value → runtime value."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any, Callable, Union

from .decoder import DEFAULT_MAX_DEPTH
from .errors import BridgeError, DepthExceeded, PropagatedChildError, UnsupportedKeyType, UnsupportedType
from .runtime import RuntimeBinding, RuntimeValue
from .values import SCALAR_TYPES, GMapping, GSequence, _NullType

logger = logging.getLogger(__name__)

INT64_MIN = -(2**63)
UINT64_MAX = 2**64 - 1

Number = Union[int, float]
NumericStrategy = Callable[[RuntimeBinding, Number], RuntimeValue]


# ---------------------------------------------------------------------------
# Numeric strategies
# ---------------------------------------------------------------------------

def literal_numeric(runtime: RuntimeBinding, number: Number) -> RuntimeValue:
    """Render *number* as decimal text and let the runtime parse it.

    Integers keep every digit; floats are rendered fixed-point with six
    fractional digits, so anything finer is lost.
    """
    if isinstance(number, int):
        return runtime.load_string("%d" % number)
    return runtime.load_string("%f" % number)


def direct_numeric(runtime: RuntimeBinding, number: Number) -> RuntimeValue:
    """Build the number with the binding's ``int_value`` / ``float_value``."""
    name = "int_value" if isinstance(number, int) else "float_value"
    ctor = getattr(runtime, name, None)
    if ctor is None:
        raise UnsupportedType(type(number).__name__, f"binding has no {name}()")
    return ctor(number)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def encode(
    runtime: RuntimeBinding,
    value: Any,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    numeric: NumericStrategy = literal_numeric,
) -> RuntimeValue:
    """Convert a host value into a newly allocated runtime value.

    Accepted: ``None``, ``bool``, ``int`` (64-bit range), finite
    ``float``, ``str``, ``list``/``tuple``, mappings with ``str`` keys,
    and generic value tree nodes, which are unwrapped and re-encoded.
    Everything else raises :class:`UnsupportedType`.
    """
    return _Encoder(runtime, max_depth, numeric).encode(value, 0)


class _Encoder:
    def __init__(self, runtime: RuntimeBinding, max_depth: int, numeric: NumericStrategy) -> None:
        self.rt = runtime
        self.max_depth = max_depth
        self.numeric = numeric

    def encode(self, value: Any, depth: int) -> RuntimeValue:
        rt = self.rt

        if value is None or isinstance(value, _NullType):
            return rt.nil_value()

        # Tree nodes are boxed host values: unwrap one level.
        if isinstance(value, SCALAR_TYPES):
            return self.encode(value.value, depth)
        if isinstance(value, GSequence):
            return self.encode(value.items, depth)
        if isinstance(value, GMapping):
            return self.encode(value.entries, depth)

        if isinstance(value, bool):
            return rt.bool_value(value)
        if isinstance(value, int):
            if not INT64_MIN <= value <= UINT64_MAX:
                raise UnsupportedType("int", f"{value} is outside the 64-bit range")
            return self.numeric(rt, value)
        if isinstance(value, float):
            if not math.isfinite(value):
                raise UnsupportedType("float", f"{value} has no literal form")
            return self.numeric(rt, value)
        if isinstance(value, str):
            return rt.string_value(value)

        if isinstance(value, (list, tuple)):
            return self._array(value, depth)
        if isinstance(value, Mapping):
            return self._hash(value, depth)

        logger.debug("rejecting host value of type %s", type(value).__name__)
        raise UnsupportedType(type(value).__name__)

    def _array(self, value: list | tuple, depth: int) -> RuntimeValue:
        self._check_depth(depth)
        arr = self.rt.new_array()
        for i, item in enumerate(value):
            try:
                encoded = self.encode(item, depth + 1)
            except BridgeError as exc:
                raise PropagatedChildError.wrap(i, exc) from exc
            self.rt.append(arr, encoded)
        return arr

    def _hash(self, value: Mapping, depth: int) -> RuntimeValue:
        self._check_depth(depth)
        h = self.rt.new_hash()
        for key, item in value.items():
            if not isinstance(key, str):
                logger.debug("rejecting mapping key of type %s", type(key).__name__)
                raise UnsupportedKeyType(key)
            try:
                encoded = self.encode(item, depth + 1)
            except BridgeError as exc:
                raise PropagatedChildError.wrap(key, exc) from exc
            self.rt.store(h, self.rt.string_value(key), encoded)
        return h

    def _check_depth(self, depth: int) -> None:
        if depth >= self.max_depth:
            raise DepthExceeded(self.max_depth)
