"""Bridge — a runtime binding paired with a configuration.

Also hosts :func:`error_object`, which turns host exceptions into
runtime error objects that can be raised back into scripts.
"""

from __future__ import annotations

import logging
import traceback
from typing import Any

from .config import BridgeConfig
from .decoder import decode
from .encoder import encode
from .errors import ErrorConstructionFailed
from .runtime import RuntimeBinding, RuntimeException, RuntimeValue
from .unmarshal import unmarshal
from .values import Node

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Error objects
# ---------------------------------------------------------------------------

def error_object(runtime: RuntimeBinding, exc: BaseException, *, backtrace: bool = False) -> RuntimeValue:
    """Build a runtime ``RuntimeError`` carrying the message of *exc*.

    With *backtrace*, the frames of ``exc.__traceback__`` are attached
    through the error's ``set_backtrace``.  If the runtime cannot build
    the error at all, :class:`ErrorConstructionFailed` is raised.
    """
    message = str(exc) or type(exc).__name__
    try:
        err = runtime.make_error_object(message)
    except RuntimeException as cause:
        logger.critical("failed to create RuntimeError for %r: %s", message, cause)
        raise ErrorConstructionFailed(f"failed to create RuntimeError: {cause}") from cause

    if backtrace:
        _attach_backtrace(runtime, err, exc)
    return err


def format_frames(exc: BaseException) -> list[str]:
    """Host frames of *exc*, innermost first, as ``file:line:in `func'``."""
    frames = traceback.extract_tb(exc.__traceback__)
    return [f"{f.filename}:{f.lineno}:in `{f.name}'" for f in reversed(frames)]


def _attach_backtrace(runtime: RuntimeBinding, err: RuntimeValue, exc: BaseException) -> None:
    trace = runtime.new_array()
    for line in format_frames(exc):
        runtime.append(trace, runtime.string_value(line))
    try:
        runtime.call_method(err, "set_backtrace", trace)
    except RuntimeException as cause:
        logger.warning("could not attach backtrace to RuntimeError: %s", cause)


# ---------------------------------------------------------------------------
# Bridge
# ---------------------------------------------------------------------------

class Bridge:
    """Conversions against one runtime under one :class:`BridgeConfig`.

    Usage::

        bridge = Bridge(MemoryRuntime())
        handle = bridge.encode({"name": "Earth", "moons": ["Moon"]})
        bridge.decode(handle)        # → GMapping(...)
        bridge.unmarshal(obj, planet)
    """

    def __init__(self, runtime: RuntimeBinding, config: BridgeConfig | None = None) -> None:
        self.runtime = runtime
        self.config = config or BridgeConfig()

    def decode(self, value: RuntimeValue) -> Node:
        return decode(self.runtime, value, max_depth=self.config.max_depth)

    def encode(self, value: Any) -> RuntimeValue:
        return encode(
            self.runtime,
            value,
            max_depth=self.config.max_depth,
            numeric=self.config.numeric,
        )

    def unmarshal(self, obj: RuntimeValue, target: Any) -> None:
        unmarshal(
            self.runtime,
            obj,
            target,
            policy=self.config.policy,
            max_depth=self.config.max_depth,
        )

    def error_object(self, exc: BaseException) -> RuntimeValue:
        return error_object(self.runtime, exc, backtrace=self.config.backtrace)

    def roundtrip(self, value: Any) -> Node:
        """``decode(encode(value))``."""
        return self.decode(self.encode(value))
