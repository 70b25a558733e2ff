"""Tests for rbridge.runtime."""

import pytest

from rbridge import is_truthy


@pytest.mark.parametrize(
    "source, expected",
    [
        ("nil", False),
        ("false", False),
        ("true", True),
        ("0", True),
        ("0.0", True),
        ('""', True),
        ("[]", True),
        ("{}", True),
        (":sym", True),
    ],
)
def test_truthiness(rt, source, expected):
    assert is_truthy(rt, rt.load_string(source)) is expected


def test_memory_runtime_satisfies_binding(rt):
    from rbridge.runtime import RuntimeBinding

    members = [n for n in vars(RuntimeBinding) if not n.startswith("_")]
    assert members
    for name in members:
        assert callable(getattr(rt, name)), name
