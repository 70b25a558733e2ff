"""Host record schemas: tagged dataclass fields and their kinds."""

from __future__ import annotations

import dataclasses
import sys
import typing
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Union

TAG_KEY = "rbridge"


# ---------------------------------------------------------------------------
# Field kinds
# ---------------------------------------------------------------------------

class ScalarKind(Enum):
    STRING = auto()
    INTEGER = auto()
    FLOAT = auto()
    BOOL = auto()


@dataclass(frozen=True)
class SequenceKind:
    elem: "FieldKind"


@dataclass(frozen=True)
class MappingKind:
    key: ScalarKind
    value: "FieldKind"


@dataclass(frozen=True)
class OpaqueKind:
    """Any annotation the coercion routine does not handle."""

    annotation: Any


FieldKind = Union[ScalarKind, SequenceKind, MappingKind, OpaqueKind]

_SCALARS: dict[Any, ScalarKind] = {
    str: ScalarKind.STRING,
    int: ScalarKind.INTEGER,
    float: ScalarKind.FLOAT,
    bool: ScalarKind.BOOL,
}


def kind_of(annotation: Any) -> FieldKind:
    """Classify a resolved type annotation."""
    if annotation in _SCALARS:
        return _SCALARS[annotation]

    origin = typing.get_origin(annotation)
    args = typing.get_args(annotation)
    if origin is list and len(args) == 1:
        return SequenceKind(kind_of(args[0]))
    if origin is dict and len(args) == 2:
        key = kind_of(args[0])
        if isinstance(key, ScalarKind):
            return MappingKind(key, kind_of(args[1]))
    return OpaqueKind(annotation)


def zero_value(kind: FieldKind) -> Any:
    """The value a field or element of *kind* falls back to."""
    if kind == ScalarKind.STRING:
        return ""
    if kind == ScalarKind.INTEGER:
        return 0
    if kind == ScalarKind.FLOAT:
        return 0.0
    if kind == ScalarKind.BOOL:
        return False
    if isinstance(kind, SequenceKind):
        return []
    if isinstance(kind, MappingKind):
        return {}
    return None


def describe(kind: FieldKind) -> str:
    if isinstance(kind, ScalarKind):
        return kind.name.lower()
    if isinstance(kind, SequenceKind):
        return f"list[{describe(kind.elem)}]"
    if isinstance(kind, MappingKind):
        return f"dict[{describe(kind.key)}, {describe(kind.value)}]"
    return repr(kind.annotation)


# ---------------------------------------------------------------------------
# Record schema
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldSpec:
    name: str
    tag: str | None  # accessor name; None = field is skipped
    kind: FieldKind


@dataclass(frozen=True)
class RecordSchema:
    record_type: type
    fields: tuple[FieldSpec, ...]

    @property
    def tagged(self) -> tuple[FieldSpec, ...]:
        return tuple(f for f in self.fields if f.tag is not None)


def tag(name: str, **field_kwargs: Any) -> Any:
    """``dataclasses.field`` carrying the accessor name for *name*.

    Usage::

        @dataclass
        class Planet:
            id: int = tag("id", default=0)
            moons: list[str] = tag("moon", default_factory=list)
    """
    metadata = dict(field_kwargs.pop("metadata", None) or {})
    metadata[TAG_KEY] = name
    return dataclasses.field(metadata=metadata, **field_kwargs)


_SCHEMA_ATTR = "__rbridge_schema__"


def schema_of(record_type: type) -> RecordSchema:
    """Build the schema of a dataclass type, in declaration order.

    The result is cached on the class itself, so it is released along
    with the class.
    """
    if not (isinstance(record_type, type) and dataclasses.is_dataclass(record_type)):
        raise TypeError(f"{record_type!r} is not a dataclass type")
    cached = record_type.__dict__.get(_SCHEMA_ATTR)
    if cached is not None:
        return cached

    hints = _field_hints(record_type)
    fields = tuple(
        FieldSpec(
            name=f.name,
            tag=f.metadata.get(TAG_KEY) or None,
            kind=kind_of(hints[f.name]),
        )
        for f in dataclasses.fields(record_type)
    )
    schema = RecordSchema(record_type, fields)
    setattr(record_type, _SCHEMA_ATTR, schema)
    return schema


def _field_hints(record_type: type) -> dict[str, Any]:
    """Resolved annotation per field.

    Falls back to resolving fields one by one when some annotation names
    a type that is not reachable from the module, e.g. a class local to
    a function under postponed evaluation.  Unresolvable annotations stay
    strings and classify as ``OpaqueKind``.
    """
    fields = dataclasses.fields(record_type)
    try:
        hints = typing.get_type_hints(record_type)
        return {f.name: hints.get(f.name, f.type) for f in fields}
    except NameError:
        pass

    module = sys.modules.get(record_type.__module__)
    globalns = dict(vars(module)) if module is not None else {}
    localns = dict(vars(record_type))
    hints = {}
    for f in fields:
        annotation = f.type
        if isinstance(annotation, str):
            try:
                annotation = eval(annotation, globalns, localns)
            except (NameError, AttributeError):
                pass
        hints[f.name] = annotation
    return hints
