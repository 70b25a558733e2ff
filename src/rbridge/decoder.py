"""Decoder: runtime value → generic value tree."""

from __future__ import annotations

import logging

from .errors import BridgeError, DepthExceeded, InvalidKeyType, PropagatedChildError, UnsupportedType
from .runtime import Discriminant, RuntimeBinding, RuntimeValue
from .values import GBool, GFloat, GInt, GMapping, GSequence, GString, Node, Null

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 256


def decode(runtime: RuntimeBinding, value: RuntimeValue, *, max_depth: int = DEFAULT_MAX_DEPTH) -> Node:
    """Convert *value* into a freshly built generic value tree.

    Fails fast: the first unsupported value anywhere aborts the call.
    Errors below the top level arrive wrapped in
    :class:`PropagatedChildError` carrying the path to the culprit.
    Mapping order is whatever order the runtime enumerates hash keys in.
    """
    return _decode(runtime, value, 0, max_depth)


def _decode(runtime: RuntimeBinding, value: RuntimeValue, depth: int, max_depth: int) -> Node:
    kind = runtime.type_of(value)

    if kind == Discriminant.NIL:
        return Null
    if kind == Discriminant.FALSE:
        return GBool(False)
    if kind == Discriminant.TRUE:
        return GBool(True)
    if kind == Discriminant.INTEGER:
        return GInt(runtime.as_int(value))
    if kind == Discriminant.FLOAT:
        return GFloat(runtime.as_float(value))
    if kind == Discriminant.STRING:
        return GString(runtime.as_string(value))

    if kind == Discriminant.ARRAY:
        _check_depth(depth, max_depth)
        items: list[Node] = []
        for i, item in enumerate(runtime.array_view(value)):
            try:
                items.append(_decode(runtime, item, depth + 1, max_depth))
            except BridgeError as exc:
                raise PropagatedChildError.wrap(i, exc) from exc
        return GSequence(items)

    if kind == Discriminant.HASH:
        _check_depth(depth, max_depth)
        entries: dict[str, Node] = {}
        for key, item in runtime.hash_view(value):
            key_kind = runtime.type_of(key)
            if key_kind != Discriminant.STRING:
                logger.debug("rejecting hash key of kind %s", key_kind.name)
                raise InvalidKeyType(key_kind.name)
            name = runtime.as_string(key)
            try:
                entries[name] = _decode(runtime, item, depth + 1, max_depth)
            except BridgeError as exc:
                raise PropagatedChildError.wrap(name, exc) from exc
        return GMapping(entries)

    logger.debug("rejecting runtime value of kind %s", kind.name)
    raise UnsupportedType(kind.name, "no generic value tree representation")


def _check_depth(depth: int, max_depth: int) -> None:
    if depth >= max_depth:
        raise DepthExceeded(max_depth)
