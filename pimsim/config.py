"""
Runtime configuration.

Values come from PIMSIM_* environment variables:

    PIMSIM_HOST_MEMORY_LIMIT   byte capacity of the host allocator (unset: unlimited)
    PIMSIM_FUSED_ERROR_POLICY  fail_fast | accumulate
    PIMSIM_LOG_LEVEL           logging level name applied by initialize()
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


FAIL_FAST = "fail_fast"
ACCUMULATE = "accumulate"
FUSED_ERROR_POLICIES = (FAIL_FAST, ACCUMULATE)


class ConfigLoadError(Exception):
    pass


def _parse_policy(raw: str) -> str:
    value = raw.strip().lower()
    if value not in FUSED_ERROR_POLICIES:
        raise ValueError(f"expected one of {FUSED_ERROR_POLICIES}")
    return value


def _parse_level(raw: str) -> str:
    value = raw.strip().upper()
    if not isinstance(logging.getLevelName(value), int):
        raise ValueError(f"unknown logging level {raw!r}")
    return value


def _parse_limit(raw: str) -> int:
    value = int(raw)
    if value < 0:
        raise ValueError("must be >= 0")
    return value


_SCHEMA: Dict[str, Dict[str, Any]] = {
    "PIMSIM_HOST_MEMORY_LIMIT": {"parser": _parse_limit, "default": None},
    "PIMSIM_FUSED_ERROR_POLICY": {"parser": _parse_policy, "default": FAIL_FAST},
    "PIMSIM_LOG_LEVEL": {"parser": _parse_level, "default": "WARNING"},
}


@dataclass(frozen=True)
class RuntimeConfig:
    host_memory_limit: Optional[int] = None
    fused_error_policy: str = FAIL_FAST
    log_level: str = "WARNING"


def load_config(env: Optional[Mapping[str, str]] = None) -> RuntimeConfig:
    """Build a RuntimeConfig from `env` (defaults to os.environ)."""
    env = os.environ if env is None else env
    values = {}
    for key, entry in _SCHEMA.items():
        raw = env.get(key)
        if raw is None or raw == "":
            values[key] = entry["default"]
            continue
        try:
            values[key] = entry["parser"](raw)
        except ValueError as exc:
            raise ConfigLoadError(f"Invalid value for {key}: {raw!r} ({exc})") from exc

    return RuntimeConfig(
        host_memory_limit=values["PIMSIM_HOST_MEMORY_LIMIT"],
        fused_error_policy=values["PIMSIM_FUSED_ERROR_POLICY"],
        log_level=values["PIMSIM_LOG_LEVEL"],
    )


__all__ = [
    'FAIL_FAST',
    'ACCUMULATE',
    'FUSED_ERROR_POLICIES',
    'ConfigLoadError',
    'RuntimeConfig',
    'load_config',
]
