"""Generic value tree: the runtime-independent intermediate representation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


# ---------------------------------------------------------------------------
# Null — singleton for the runtime's nil
# ---------------------------------------------------------------------------

class _NullType:
    """Singleton standing for a decoded ``nil``."""

    _instance: "_NullType | None" = None

    def __new__(cls) -> "_NullType":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "Null"

    def __bool__(self) -> bool:
        return False

    def __str__(self) -> str:
        return "nil"


Null = _NullType()


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------

@dataclass
class GBool:
    value: bool

    def __str__(self) -> str:
        return str(self.value).lower()


@dataclass
class GInt:
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass
class GFloat:
    value: float

    def __str__(self) -> str:
        return repr(self.value)


@dataclass
class GString:
    value: str

    def __str__(self) -> str:
        return _quote(self.value)


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------

@dataclass
class GSequence:
    items: list["Node"] = field(default_factory=list)

    def __str__(self) -> str:
        return "[" + ", ".join(str(v) for v in self.items) + "]"


@dataclass
class GMapping:
    # Insertion order follows the runtime's key enumeration; equality ignores it.
    entries: dict[str, "Node"] = field(default_factory=dict)

    def __str__(self) -> str:
        pairs = (f"{_quote(k)} => {v}" for k, v in self.entries.items())
        return "{" + ", ".join(pairs) + "}"


Node = Union[_NullType, GBool, GInt, GFloat, GString, GSequence, GMapping]

SCALAR_TYPES = (GBool, GInt, GFloat, GString)


def _quote(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


# ---------------------------------------------------------------------------
# Plain Python conversion
# ---------------------------------------------------------------------------

def from_python(obj: Any) -> Node:
    """Build a tree from plain Python data.

    Accepts ``None``, ``bool``, ``int``, ``float``, ``str``, ``list`` /
    ``tuple`` and ``dict`` with ``str`` keys, nested arbitrarily.
    Raises ``TypeError`` for anything else.
    """
    if obj is None:
        return Null
    if isinstance(obj, bool):
        return GBool(obj)
    if isinstance(obj, int):
        return GInt(obj)
    if isinstance(obj, float):
        return GFloat(obj)
    if isinstance(obj, str):
        return GString(obj)
    if isinstance(obj, (list, tuple)):
        return GSequence([from_python(v) for v in obj])
    if isinstance(obj, dict):
        entries: dict[str, Node] = {}
        for k, v in obj.items():
            if not isinstance(k, str):
                raise TypeError(f"mapping keys must be str, got {type(k).__name__}")
            entries[k] = from_python(v)
        return GMapping(entries)
    raise TypeError(f"cannot build a value tree from {type(obj).__name__}")


def to_python(node: Node) -> Any:
    """Flatten a tree back to plain Python data."""
    if isinstance(node, _NullType):
        return None
    if isinstance(node, SCALAR_TYPES):
        return node.value
    if isinstance(node, GSequence):
        return [to_python(v) for v in node.items]
    if isinstance(node, GMapping):
        return {k: to_python(v) for k, v in node.entries.items()}
    raise TypeError(f"not a value tree node: {node!r}")


# ---------------------------------------------------------------------------
# Pretty printing
# ---------------------------------------------------------------------------

def format_tree(node: Node, indent: int = 2) -> str:
    """Render *node* with one container element per line.

    Scalars and empty containers stay on a single line::

        {
          "name" => "Earth",
          "moons" => [
            "Moon"
          ]
        }
    """
    return "\n".join(_format_lines(node, indent, 0))


def _format_lines(node: Node, indent: int, level: int) -> list[str]:
    pad = " " * (indent * (level + 1))
    close = " " * (indent * level)

    if isinstance(node, GSequence) and node.items:
        lines = ["["]
        for i, item in enumerate(node.items):
            sub = _format_lines(item, indent, level + 1)
            sub[0] = pad + sub[0]
            if i < len(node.items) - 1:
                sub[-1] += ","
            lines.extend(sub)
        lines.append(close + "]")
        return lines

    if isinstance(node, GMapping) and node.entries:
        lines = ["{"]
        last = len(node.entries) - 1
        for i, (key, item) in enumerate(node.entries.items()):
            sub = _format_lines(item, indent, level + 1)
            sub[0] = f"{pad}{_quote(key)} => {sub[0]}"
            if i < last:
                sub[-1] += ","
            lines.extend(sub)
        lines.append(close + "}")
        return lines

    return [str(node)]
