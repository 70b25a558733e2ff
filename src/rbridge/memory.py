"""MemoryRuntime — an in-process reference binding.

Values live in plain Python objects, which makes this binding useful
for tests and for hosts that want to exercise conversions without a
native interpreter.  Semantics follow the embedded Ruby dialect the
bridge was written for: nil/false falsiness, hashes with insertion
order, ``to_s`` as the string coercion.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable, NoReturn

from .runtime import Discriminant, RuntimeException

D = Discriminant


# ---------------------------------------------------------------------------
# Value handles
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class RValue:
    """A runtime value handle.  Compared by identity, like the real thing."""

    kind: Discriminant
    payload: Any = None

    def __repr__(self) -> str:
        return f"RValue({self.kind.name}, {self.payload!r})"


@dataclass(frozen=True)
class RSymbol:
    name: str


@dataclass
class RObject:
    class_name: str
    methods: dict[str, Any] = field(default_factory=dict)
    ivars: dict[str, RValue] = field(default_factory=dict)


Method = Callable[..., RValue]

_CLASS_NAMES = {
    D.NIL: "NilClass",
    D.FALSE: "FalseClass",
    D.TRUE: "TrueClass",
    D.INTEGER: "Integer",
    D.FLOAT: "Float",
    D.STRING: "String",
    D.ARRAY: "Array",
    D.HASH: "Hash",
}


def _key_identity(value: RValue) -> tuple:
    """Hash-key identity: scalars and symbols by value, the rest by object."""
    if value.kind in (D.NIL, D.FALSE, D.TRUE):
        return (value.kind,)
    if value.kind in (D.INTEGER, D.FLOAT, D.STRING):
        return (value.kind, value.payload)
    if isinstance(value.payload, RSymbol):
        return (value.kind, "sym", value.payload.name)
    return (value.kind, "obj", id(value))


# ---------------------------------------------------------------------------
# Error class methods
# ---------------------------------------------------------------------------

def _error_message(rt: "MemoryRuntime", self_: RValue) -> RValue:
    return self_.payload.ivars["message"]


def _error_backtrace(rt: "MemoryRuntime", self_: RValue) -> RValue:
    return self_.payload.ivars.get("backtrace", rt.nil_value())


def _error_set_backtrace(rt: "MemoryRuntime", self_: RValue, trace: RValue) -> RValue:
    if trace.kind != D.ARRAY or any(v.kind != D.STRING for v in trace.payload):
        raise RuntimeException("TypeError: backtrace must be Array of String")
    self_.payload.ivars["backtrace"] = trace
    return trace


def _error_methods() -> dict[str, Any]:
    return {
        "message": _error_message,
        "to_s": _error_message,
        "backtrace": _error_backtrace,
        "set_backtrace": _error_set_backtrace,
    }


# ---------------------------------------------------------------------------
# Runtime
# ---------------------------------------------------------------------------

class MemoryRuntime:
    """Reference implementation of :class:`~rbridge.runtime.RuntimeBinding`.

    Usage::

        rt = MemoryRuntime()
        planets = rt.load_string('[{"name" => "Earth", "moons" => 1}]')
        earth = rt.new_object("Planet", name="Earth", id=3)
        rt.call_method(earth, "name")   # → RValue(STRING, 'Earth')
    """

    def __init__(self) -> None:
        self._nil = RValue(D.NIL)
        self._true = RValue(D.TRUE, True)
        self._false = RValue(D.FALSE, False)
        self.classes: dict[str, dict[str, Any]] = {
            "Object": {},
            "RuntimeError": _error_methods(),
        }

    # -- Classes --------------------------------------------------------

    def define_class(self, name: str, methods: dict[str, Any] | None = None) -> None:
        self.classes[name] = dict(methods or {})

    def undefine_class(self, name: str) -> None:
        self.classes.pop(name, None)

    def class_name(self, value: RValue) -> str:
        if isinstance(value.payload, RObject):
            return value.payload.class_name
        if isinstance(value.payload, RSymbol):
            return "Symbol"
        return _CLASS_NAMES.get(value.kind, "Object")

    # -- Inspection -----------------------------------------------------

    def type_of(self, value: RValue) -> Discriminant:
        return value.kind

    def as_int(self, value: RValue) -> int:
        """``Integer`` as-is, ``Float`` truncated, anything else 0."""
        if value.kind == D.INTEGER:
            return value.payload
        if value.kind == D.FLOAT and math.isfinite(value.payload):
            return int(value.payload)
        return 0

    def as_float(self, value: RValue) -> float:
        """``Float`` as-is, ``Integer`` widened, anything else 0.0."""
        if value.kind == D.FLOAT:
            return value.payload
        if value.kind == D.INTEGER:
            return float(value.payload)
        return 0.0

    def as_string(self, value: RValue) -> str:
        """The value's ``to_s``."""
        if value.kind == D.NIL:
            return ""
        if value.kind == D.STRING:
            return value.payload
        if value.kind == D.OTHER:
            obj = value.payload
            if isinstance(obj, RSymbol):
                return obj.name
            if "to_s" in obj.methods:
                return self.as_string(self.call_method(value, "to_s"))
            return f"#<{obj.class_name}>"
        return self.inspect(value)

    def inspect(self, value: RValue) -> str:
        kind = value.kind
        if kind == D.NIL:
            return "nil"
        if kind in (D.TRUE, D.FALSE):
            return "true" if kind == D.TRUE else "false"
        if kind == D.INTEGER:
            return str(value.payload)
        if kind == D.FLOAT:
            return _float_to_s(value.payload)
        if kind == D.STRING:
            return _quote(value.payload)
        if kind == D.ARRAY:
            return "[" + ", ".join(self.inspect(v) for v in value.payload) + "]"
        if kind == D.HASH:
            pairs = (
                f"{self.inspect(k)}=>{self.inspect(v)}"
                for k, v in value.payload.values()
            )
            return "{" + ", ".join(pairs) + "}"
        if isinstance(value.payload, RSymbol):
            return ":" + value.payload.name
        return f"#<{value.payload.class_name}>"

    def array_view(self, value: RValue) -> list[RValue]:
        self._expect(value, D.ARRAY)
        return list(value.payload)

    def hash_view(self, value: RValue) -> list[tuple[RValue, RValue]]:
        self._expect(value, D.HASH)
        return list(value.payload.values())

    # -- Construction ---------------------------------------------------

    def nil_value(self) -> RValue:
        return self._nil

    def bool_value(self, flag: bool) -> RValue:
        return self._true if flag else self._false

    def string_value(self, text: str) -> RValue:
        return RValue(D.STRING, text)

    def int_value(self, number: int) -> RValue:
        return RValue(D.INTEGER, int(number))

    def float_value(self, number: float) -> RValue:
        return RValue(D.FLOAT, float(number))

    def symbol(self, name: str) -> RValue:
        return RValue(D.OTHER, RSymbol(name))

    def new_array(self) -> RValue:
        return RValue(D.ARRAY, [])

    def new_hash(self) -> RValue:
        return RValue(D.HASH, {})

    def append(self, array: RValue, value: RValue) -> None:
        self._expect(array, D.ARRAY)
        array.payload.append(value)

    def store(self, hash_: RValue, key: RValue, value: RValue) -> None:
        self._expect(hash_, D.HASH)
        hash_.payload[_key_identity(key)] = (key, value)

    def new_object(self, class_name: str = "Object", **methods: Any) -> RValue:
        """Build an object whose methods are constants or callables.

        A callable receives ``(runtime, receiver, *args)``; an ``RValue``
        is returned as-is; any other Python value goes through
        :meth:`from_python` once, up front.
        """
        table: dict[str, Any] = dict(self.classes.get(class_name, {}))
        for name, impl in methods.items():
            if isinstance(impl, RValue) or callable(impl):
                table[name] = impl
            else:
                table[name] = self.from_python(impl)
        return RValue(D.OTHER, RObject(class_name, table))

    def from_python(self, obj: Any) -> RValue:
        """Build runtime values straight from plain Python data.

        Unlike the encoder this accepts any key type, so callers can
        build hashes the decoder must reject.
        """
        if isinstance(obj, RValue):
            return obj
        if obj is None:
            return self._nil
        if isinstance(obj, bool):
            return self.bool_value(obj)
        if isinstance(obj, int):
            return self.int_value(obj)
        if isinstance(obj, float):
            return self.float_value(obj)
        if isinstance(obj, str):
            return self.string_value(obj)
        if isinstance(obj, (list, tuple)):
            arr = self.new_array()
            for item in obj:
                self.append(arr, self.from_python(item))
            return arr
        if isinstance(obj, dict):
            h = self.new_hash()
            for k, v in obj.items():
                self.store(h, self.from_python(k), self.from_python(v))
            return h
        raise TypeError(f"no runtime representation for {type(obj).__name__}")

    def load_string(self, source: str) -> RValue:
        """Evaluate a literal expression (see :class:`_LiteralReader`)."""
        return _LiteralReader(self, source).read()

    # -- Calls ------------------------------------------------------------

    def call_method(self, value: RValue, name: str, *args: RValue) -> RValue:
        impl = self._lookup(value, name)
        if impl is None:
            raise RuntimeException(
                f"NoMethodError: undefined method '{name}' for {self.class_name(value)}"
            )
        if isinstance(impl, RValue):
            if args:
                raise RuntimeException(
                    f"ArgumentError: wrong number of arguments (given {len(args)}, expected 0)"
                )
            return impl
        try:
            return impl(self, value, *args)
        except RuntimeException:
            raise
        except Exception as exc:
            raise RuntimeException(f"{type(exc).__name__}: {exc}") from exc

    def make_error_object(self, message: str) -> RValue:
        methods = self.classes.get("RuntimeError")
        if methods is None:
            raise RuntimeException("NameError: uninitialized constant RuntimeError")
        obj = RObject("RuntimeError", dict(methods), {"message": self.string_value(message)})
        return RValue(D.OTHER, obj)

    # -- Internals ----------------------------------------------------------

    def _lookup(self, value: RValue, name: str) -> Any:
        if isinstance(value.payload, RObject) and name in value.payload.methods:
            return value.payload.methods[name]
        builtin = _BUILTINS.get(value.kind, {}).get(name) or _COMMON.get(name)
        return builtin

    def _expect(self, value: RValue, kind: Discriminant) -> None:
        if value.kind != kind:
            raise RuntimeException(
                f"TypeError: expected {_CLASS_NAMES[kind]}, got {self.class_name(value)}"
            )


# ---------------------------------------------------------------------------
# Built-in methods
# ---------------------------------------------------------------------------

def _push(rt: MemoryRuntime, self_: RValue, *items: RValue) -> RValue:
    for item in items:
        rt.append(self_, item)
    return self_


def _hash_store(rt: MemoryRuntime, self_: RValue, key: RValue, value: RValue) -> RValue:
    rt.store(self_, key, value)
    return value


def _hash_keys(rt: MemoryRuntime, self_: RValue) -> RValue:
    keys = rt.new_array()
    for k, _ in self_.payload.values():
        rt.append(keys, k)
    return keys


def _size(rt: MemoryRuntime, self_: RValue) -> RValue:
    return rt.int_value(len(self_.payload))


_BUILTINS: dict[Discriminant, dict[str, Method]] = {
    D.ARRAY: {"push": _push, "size": _size, "length": _size},
    D.HASH: {"store": _hash_store, "keys": _hash_keys, "size": _size, "length": _size},
}

_COMMON: dict[str, Method] = {
    "to_s": lambda rt, v: rt.string_value(rt.as_string(v)),
    "inspect": lambda rt, v: rt.string_value(rt.inspect(v)),
    "class": lambda rt, v: rt.string_value(rt.class_name(v)),
    "nil?": lambda rt, v: rt.bool_value(v.kind == D.NIL),
}


# ---------------------------------------------------------------------------
# Literal reader
# ---------------------------------------------------------------------------

_TOKEN_RE = re.compile(
    r"""
      (?P<ws>\s+)
    | (?P<float>-?\d+\.\d+(?:[eE][+-]?\d+)?|-?\d+[eE][+-]?\d+)
    | (?P<int>-?\d+)
    | (?P<dstr>"(?:[^"\\]|\\.)*")
    | (?P<sstr>'(?:[^'\\]|\\.)*')
    | (?P<label>[A-Za-z_]\w*[?!]?:(?!:))
    | (?P<symbol>:[A-Za-z_]\w*[?!]?)
    | (?P<word>[A-Za-z_]\w*)
    | (?P<arrow>=>)
    | (?P<punct>[\[\]{},])
    """,
    re.VERBOSE | re.DOTALL,
)

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", "s": " ", "e": "\x1b"}


def _unescape_double(body: str) -> str:
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(1)), body, flags=re.DOTALL)


def _unescape_single(body: str) -> str:
    return re.sub(r"\\([\\'])", r"\1", body)


def _quote(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def _float_to_s(v: float) -> str:
    if math.isnan(v):
        return "NaN"
    if math.isinf(v):
        return "Infinity" if v > 0 else "-Infinity"
    text = repr(v)
    if "e" in text:
        mantissa, exp = text.split("e")
        if "." not in mantissa:
            mantissa += ".0"
        return f"{mantissa}e{exp}"
    return text


class _LiteralReader:
    """Recursive-descent reader for Ruby literal syntax.

    Supports ``nil``/``true``/``false``, integers, decimal floats,
    single- and double-quoted strings, ``:symbols``, arrays and hashes
    with ``=>`` or ``label:`` keys.  Anything else is a SyntaxError.
    """

    def __init__(self, runtime: MemoryRuntime, source: str) -> None:
        self.rt = runtime
        self.source = source
        self.tokens = self._tokenize(source)
        self.pos = 0

    def read(self) -> RValue:
        if not self.tokens:
            return self.rt.nil_value()
        value = self._value()
        if self.pos != len(self.tokens):
            self._fail(f"unexpected {self.tokens[self.pos][1]!r}")
        return value

    # -- Tokens ---------------------------------------------------------

    def _tokenize(self, source: str) -> list[tuple[str, str]]:
        tokens: list[tuple[str, str]] = []
        i = 0
        while i < len(source):
            m = _TOKEN_RE.match(source, i)
            if m is None:
                self._fail(f"unexpected character {source[i]!r} at offset {i}")
            if m.lastgroup != "ws":
                tokens.append((m.lastgroup, m.group()))
            i = m.end()
        return tokens

    def _next(self) -> tuple[str, str]:
        if self.pos >= len(self.tokens):
            self._fail("unexpected end of input")
        tok = self.tokens[self.pos]
        self.pos += 1
        return tok

    def _peek(self) -> tuple[str, str] | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _fail(self, msg: str) -> NoReturn:
        raise RuntimeException(f"SyntaxError: {msg} in {self.source!r}")

    # -- Grammar --------------------------------------------------------

    def _value(self) -> RValue:
        kind, text = self._next()
        rt = self.rt
        if kind == "float":
            return rt.float_value(float(text))
        if kind == "int":
            return rt.int_value(int(text))
        if kind == "dstr":
            return rt.string_value(_unescape_double(text[1:-1]))
        if kind == "sstr":
            return rt.string_value(_unescape_single(text[1:-1]))
        if kind == "symbol":
            return rt.symbol(text[1:])
        if kind == "word":
            if text == "nil":
                return rt.nil_value()
            if text in ("true", "false"):
                return rt.bool_value(text == "true")
            self._fail(f"undefined local variable or method '{text}'")
        if text == "[":
            return self._array()
        if text == "{":
            return self._hash()
        self._fail(f"unexpected {text!r}")

    def _array(self) -> RValue:
        arr = self.rt.new_array()
        while True:
            tok = self._peek()
            if tok is not None and tok[1] == "]":
                self.pos += 1
                return arr
            self.rt.append(arr, self._value())
            self._separator("]")

    def _hash(self) -> RValue:
        h = self.rt.new_hash()
        while True:
            tok = self._peek()
            if tok is not None and tok[1] == "}":
                self.pos += 1
                return h
            if tok is not None and tok[0] == "label":
                self.pos += 1
                key = self.rt.symbol(tok[1][:-1])
            else:
                key = self._value()
                if self._next()[0] != "arrow":
                    self._fail("expected '=>'")
            self.rt.store(h, key, self._value())
            self._separator("}")

    def _separator(self, closer: str) -> None:
        tok = self._peek()
        if tok is None:
            self._fail(f"expected {closer!r}")
        if tok[1] == ",":
            self.pos += 1
        elif tok[1] != closer:
            self._fail(f"expected ',' or {closer!r}, got {tok[1]!r}")
