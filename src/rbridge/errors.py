"""Error taxonomy for rbridge."""

from __future__ import annotations

from typing import Any, Sequence


def format_path(path: Sequence[Any]) -> str:
    """Render a container path as ``[0]["key"][2]``; ``<root>`` when empty."""
    if not path:
        return "<root>"
    return "".join(f"[{p}]" if isinstance(p, int) else f"[{p!r}]" for p in path)


class BridgeError(Exception):
    """Base class for every conversion error raised by rbridge."""


class DecodeError(BridgeError):
    """A runtime value could not be decoded."""


class EncodeError(BridgeError):
    """A host value could not be encoded."""


class UnmarshalError(BridgeError):
    """A record could not be populated from a runtime object."""


# ---------------------------------------------------------------------------
# Kind errors
# ---------------------------------------------------------------------------

class UnsupportedType(DecodeError, EncodeError, UnmarshalError):
    """A value whose kind has no representation on the other side."""

    def __init__(self, kind: str, detail: str = "") -> None:
        self.kind = kind
        self.detail = detail
        msg = f"unsupported type: {kind}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


class InvalidKeyType(DecodeError):
    """A runtime hash key that is not a String."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(f"invalid key type: {kind} (hash keys must be String)")


class UnsupportedKeyType(EncodeError):
    """A host mapping key that is not a ``str``."""

    def __init__(self, key: Any) -> None:
        self.key = key
        super().__init__(
            f"unsupported key type: {type(key).__name__} (mapping keys must be str)"
        )


# ---------------------------------------------------------------------------
# Unmarshal errors
# ---------------------------------------------------------------------------

class InvalidTarget(UnmarshalError):
    """Unmarshal was given something other than a mutable record instance."""

    def __init__(self, target: Any, reason: str = "target must be a dataclass instance") -> None:
        self.target = target
        super().__init__(f"{reason}, got {type(target).__name__}")


class AccessorError(UnmarshalError):
    """The runtime accessor backing a tagged field failed."""

    def __init__(self, field: str, tag: str, cause: BaseException) -> None:
        self.field = field
        self.tag = tag
        self.cause = cause
        super().__init__(f"accessor {tag!r} for field {field!r} failed: {cause}")


class TypeMismatch(UnmarshalError):
    """Strict coercion found a runtime value of the wrong kind."""

    def __init__(self, path: Sequence[Any], expected: str, actual: str) -> None:
        self.path = tuple(path)
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"type mismatch at {format_path(self.path)}: expected {expected}, got {actual}"
        )


class PartialCoercionError(UnmarshalError):
    """Some container elements fell back to zero values during unmarshal.

    ``failures`` lists ``(path, cause)`` pairs; the path starts with the
    field name followed by element positions.
    """

    def __init__(self, failures: Sequence[tuple[tuple[Any, ...], BaseException]]) -> None:
        self.failures = list(failures)
        lines = [f"{format_path(p)}: {c}" for p, c in self.failures]
        super().__init__(
            f"{len(self.failures)} element(s) could not be coerced: " + "; ".join(lines)
        )


# ---------------------------------------------------------------------------
# Recursion errors
# ---------------------------------------------------------------------------

class DepthExceeded(BridgeError):
    """Nesting went deeper than the configured depth budget."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"nesting depth exceeds limit of {limit}")


class PropagatedChildError(BridgeError):
    """A nested element failed during fail-fast recursion.

    ``path`` leads from the top-level value to the failing element and
    ``cause`` is the error raised there.
    """

    def __init__(self, path: Sequence[Any], cause: BridgeError) -> None:
        self.path = tuple(path)
        self.cause = cause
        super().__init__(f"at {format_path(self.path)}: {cause}")

    @property
    def root_cause(self) -> BridgeError:
        return self.cause

    @classmethod
    def wrap(cls, step: Any, exc: BridgeError) -> "PropagatedChildError":
        """Prefix *step* onto the path of *exc*, wrapping it if needed."""
        if isinstance(exc, cls):
            return cls((step, *exc.path), exc.cause)
        return cls((step,), exc)


class ErrorConstructionFailed(BaseException):
    """The runtime could not build an error object.

    Derives from ``BaseException`` so ordinary ``except Exception``
    handlers let it through; there is no channel left to report it on.
    """
