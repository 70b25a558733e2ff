"""Tag-directed unmarshal: populate a dataclass from a runtime object."""

from __future__ import annotations

import dataclasses
import logging
from typing import Any

from .decoder import DEFAULT_MAX_DEPTH
from .errors import (
    AccessorError,
    BridgeError,
    DepthExceeded,
    InvalidTarget,
    PartialCoercionError,
    TypeMismatch,
    UnsupportedType,
    format_path,
)
from .policy import LENIENT, CoercionPolicy
from .runtime import Discriminant, RuntimeBinding, RuntimeException, RuntimeValue, is_truthy
from .schema import (
    FieldKind,
    FieldSpec,
    MappingKind,
    OpaqueKind,
    RecordSchema,
    ScalarKind,
    SequenceKind,
    describe,
    schema_of,
    zero_value,
)

logger = logging.getLogger(__name__)

# Discriminants strict mode accepts for each scalar kind.  BOOL is
# absent: truthiness applies to every value.
_STRICT_ACCEPTS = {
    ScalarKind.STRING: {Discriminant.STRING},
    ScalarKind.INTEGER: {Discriminant.INTEGER},
    ScalarKind.FLOAT: {Discriminant.FLOAT, Discriminant.INTEGER},
}


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def unmarshal(
    runtime: RuntimeBinding,
    obj: RuntimeValue,
    target: Any,
    *,
    policy: CoercionPolicy = LENIENT,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> None:
    """Fill the tagged fields of *target* by calling accessors on *obj*.

    Fields are visited in declaration order.  Untagged fields are never
    touched.  For each tagged field the accessor named by the tag is
    called with no arguments; a failing call aborts with
    :class:`AccessorError`, leaving earlier fields populated.
    """
    schema = _target_schema(target)
    coercer = _Coercer(runtime, policy, max_depth)

    for spec in schema.tagged:
        try:
            value = runtime.call_method(obj, spec.tag)
        except RuntimeException as exc:
            raise AccessorError(spec.name, spec.tag, exc) from exc
        coercer.assign(target, spec, value)

    if policy.report_partial and coercer.failures:
        raise PartialCoercionError(coercer.failures)


def _target_schema(target: Any) -> RecordSchema:
    if isinstance(target, type) or not dataclasses.is_dataclass(target):
        raise InvalidTarget(target)
    if type(target).__dataclass_params__.frozen:
        raise InvalidTarget(target, "target dataclass is frozen")
    return schema_of(type(target))


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------

class _Coercer:
    """Converts runtime values into field kinds under one policy.

    Element failures inside containers are collected in ``failures``
    and replaced by the element kind's zero value.
    """

    def __init__(self, runtime: RuntimeBinding, policy: CoercionPolicy, max_depth: int) -> None:
        self.rt = runtime
        self.policy = policy
        self.max_depth = max_depth
        self.failures: list[tuple[tuple[Any, ...], BaseException]] = []

    def assign(self, target: Any, spec: FieldSpec, value: RuntimeValue) -> None:
        if isinstance(spec.kind, OpaqueKind):
            if self.policy.strict:
                raise UnsupportedType(describe(spec.kind), f"field {spec.name!r}")
            logger.debug("leaving field %r of unsupported kind untouched", spec.name)
            return
        setattr(target, spec.name, self.coerce(spec.kind, value, (spec.name,), 0))

    def coerce(self, kind: FieldKind, value: RuntimeValue, path: tuple, depth: int) -> Any:
        rt = self.rt
        actual = rt.type_of(value)

        if kind == ScalarKind.BOOL:
            return is_truthy(rt, value)

        if isinstance(kind, ScalarKind):
            if self.policy.strict and actual not in _STRICT_ACCEPTS[kind]:
                raise TypeMismatch(path, describe(kind), actual.name)
            if kind == ScalarKind.STRING:
                return rt.as_string(value)
            if kind == ScalarKind.INTEGER:
                return rt.as_int(value)
            return rt.as_float(value)

        if isinstance(kind, SequenceKind):
            if actual != Discriminant.ARRAY:
                return self._mismatch(kind, actual, path)
            self._check_depth(depth)
            return [
                self._element(kind.elem, item, (*path, i), depth + 1)
                for i, item in enumerate(rt.array_view(value))
            ]

        if isinstance(kind, MappingKind):
            if actual != Discriminant.HASH:
                return self._mismatch(kind, actual, path)
            self._check_depth(depth)
            out: dict[Any, Any] = {}
            # Entries are addressed by enumeration position; rendering the
            # key itself would call back into the runtime.
            for i, (rkey, rvalue) in enumerate(rt.hash_view(value)):
                key = self._element(kind.key, rkey, (*path, i), depth + 1)
                if key in out:
                    logger.debug("key %r at %s collides; last write wins", key, format_path(path))
                out[key] = self._element(kind.value, rvalue, (*path, i), depth + 1)
            return out

        if self.policy.strict:
            raise UnsupportedType(describe(kind), f"at {format_path(path)}")
        return zero_value(kind)

    def _element(self, kind: FieldKind, value: RuntimeValue, path: tuple, depth: int) -> Any:
        try:
            return self.coerce(kind, value, path, depth)
        except (TypeMismatch, UnsupportedType):
            # Only raised in strict mode, which fails fast.
            raise
        except (BridgeError, RuntimeException) as exc:
            logger.debug("element %s fell back to zero value: %s", format_path(path), exc)
            self.failures.append((path, exc))
            return zero_value(kind)

    def _mismatch(self, kind: FieldKind, actual: Discriminant, path: tuple) -> Any:
        if self.policy.strict:
            raise TypeMismatch(path, describe(kind), actual.name)
        return zero_value(kind)

    def _check_depth(self, depth: int) -> None:
        if depth >= self.max_depth:
            raise DepthExceeded(self.max_depth)
