"""
Hilbert Cycles - Engine settings loader
Deep-merges JSON / YAML overrides onto the built-in defaults and freezes the
result into an EngineSettings object that is threaded through every call.
"""

import json
import logging
import os
from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

import yaml

from .types import BadParamError

logger = logging.getLogger(__name__)


class UnstableFunc(Enum):
    """Indicators whose warm-up can be padded with extra unstable samples."""
    HT_DCPHASE = "ht_dcphase"
    MAMA = "mama"


MAMA_LIMIT_MIN = 0.01
MAMA_LIMIT_MAX = 0.99

DEFAULT_CONFIG: Dict[str, Any] = {
    "unstable_period": {
        UnstableFunc.HT_DCPHASE.value: 0,
        UnstableFunc.MAMA.value: 0,
    },
    "mama": {
        "fast_limit": 0.5,
        "slow_limit": 0.05,
    },
}


def _load(path: str) -> Dict[str, Any]:
    """Load a JSON or YAML configuration file."""
    with open(path, "r") as f:
        if path.endswith((".yaml", ".yml")):
            return yaml.safe_load(f) or {}
        return json.load(f)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = deepcopy(base)

    for key, value in override.items():
        if isinstance(value, dict) and key in result and isinstance(result[key], dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def check_mama_limits(fast_limit: float, slow_limit: float) -> None:
    """Raise BadParamError unless both limits lie in [0.01, 0.99]."""
    for name, value in (("fast_limit", fast_limit), ("slow_limit", slow_limit)):
        # written so that NaN fails the check
        if not (MAMA_LIMIT_MIN <= value <= MAMA_LIMIT_MAX):
            raise BadParamError(
                f"{name}={value} outside [{MAMA_LIMIT_MIN}, {MAMA_LIMIT_MAX}]"
            )


def validate_config(config: Dict[str, Any]) -> bool:
    """Validate configuration structure and value domains."""
    for section in ("unstable_period", "mama"):
        if section not in config:
            raise ValueError(f"Missing required config section: {section}")
        if not isinstance(config[section], dict):
            raise ValueError(f"Config section {section} must be a dictionary")

    known = {func.value for func in UnstableFunc}
    for name, value in config["unstable_period"].items():
        if name not in known:
            raise ValueError(f"Unknown unstable_period entry: {name}")
        if isinstance(value, bool) or not isinstance(value, int):
            raise BadParamError(f"unstable_period.{name} must be an integer, got {value!r}")
        if value < 0:
            raise BadParamError(f"unstable_period.{name} must be >= 0, got {value}")

    mama_cfg = config["mama"]
    check_mama_limits(float(mama_cfg["fast_limit"]), float(mama_cfg["slow_limit"]))

    return True


@dataclass(frozen=True)
class EngineSettings:
    """
    Immutable per-call configuration, validated on construction.

    unstable_periods pads the warm-up of each indicator beyond its fixed
    lookback (63 for HT_DCPHASE, 32 for MAMA). fast_limit / slow_limit are
    the MAMA defaults used when a call does not pass its own limits.
    """
    unstable_periods: Mapping[str, int] = field(
        default_factory=lambda: dict(DEFAULT_CONFIG["unstable_period"])
    )
    fast_limit: float = 0.5
    slow_limit: float = 0.05

    def __post_init__(self):
        validate_config(self.to_config())
        # read-only copy, detached from the caller's dict
        object.__setattr__(self, "unstable_periods",
                           MappingProxyType(dict(self.unstable_periods)))

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "EngineSettings":
        validate_config(config)
        return cls(
            unstable_periods=dict(config["unstable_period"]),
            fast_limit=float(config["mama"]["fast_limit"]),
            slow_limit=float(config["mama"]["slow_limit"]),
        )

    def unstable_period(self, func: UnstableFunc) -> int:
        return self.unstable_periods.get(func.value, 0)

    def with_unstable_period(self, func: UnstableFunc, periods: int) -> "EngineSettings":
        """Return a copy with one indicator's unstable period replaced."""
        return EngineSettings.from_config(
            _deep_merge(self.to_config(), {"unstable_period": {func.value: periods}})
        )

    def to_config(self) -> Dict[str, Any]:
        return {
            "unstable_period": dict(self.unstable_periods),
            "mama": {"fast_limit": self.fast_limit, "slow_limit": self.slow_limit},
        }


def load_config(path: Optional[str] = None,
                overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Load configuration: defaults, then the file at ``path``, then ``overrides``.

    Args:
        path: Optional JSON / YAML file with partial settings
        overrides: Optional dictionary applied last

    Returns:
        Merged and validated configuration dictionary

    Examples:
        >>> cfg = load_config()  # defaults only
        >>> cfg = load_config(overrides={"unstable_period": {"mama": 10}})
    """
    config = deepcopy(DEFAULT_CONFIG)

    if path is not None:
        if not os.path.exists(path):
            raise FileNotFoundError(f"Settings file not found: {path}")
        config = _deep_merge(config, _load(path))
        logger.debug(f"Loaded engine settings from {path}")

    if overrides:
        config = _deep_merge(config, overrides)

    validate_config(config)
    return config


def load_settings(path: Optional[str] = None,
                  overrides: Optional[Dict[str, Any]] = None) -> EngineSettings:
    """Build EngineSettings from defaults plus optional file / overrides."""
    return EngineSettings.from_config(load_config(path, overrides))


DEFAULT_SETTINGS = EngineSettings()
