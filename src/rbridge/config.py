"""Bridge configuration."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

from .decoder import DEFAULT_MAX_DEPTH
from .encoder import NumericStrategy, literal_numeric
from .policy import LENIENT, CoercionPolicy


@dataclass(frozen=True)
class BridgeConfig:
    """Settings threaded through every conversion a :class:`Bridge` runs."""

    max_depth: int = DEFAULT_MAX_DEPTH
    policy: CoercionPolicy = LENIENT
    numeric: NumericStrategy = literal_numeric
    backtrace: bool = False  # attach host frames to error objects

    def __post_init__(self) -> None:
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")

    def with_overrides(self, **changes: Any) -> "BridgeConfig":
        return dataclasses.replace(self, **changes)
