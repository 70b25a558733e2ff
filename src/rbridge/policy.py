"""Coercion policies for unmarshal."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CoercionPolicy:
    """How unmarshal treats runtime values that do not fit a field.

    ``strict``
        Off: scalars go through the runtime's raw coercion, mismatched
        containers become empty and unsupported fields are left alone.
        On: any mismatch raises ``TypeMismatch`` and unsupported fields
        raise ``UnsupportedType``.
    ``report_partial``
        Container elements that fail keep their zero value either way;
        when set, unmarshal finishes and then raises one
        ``PartialCoercionError`` listing them.
    """

    strict: bool = False
    report_partial: bool = False


LENIENT = CoercionPolicy()
STRICT = CoercionPolicy(strict=True, report_partial=True)
