"""
trustvault.config — custody bounds, time windows and guard thresholds.

This module centralizes the numeric knobs of the custody core. It has no
third-party deps and is safe to import very early.

Configuration precedence:
  1) Environment variables (TRUSTVAULT_*)
  2) Hardcoded defaults below

Key env vars:
  - TRUSTVAULT_TRUST_DURATION       (int)  default: 1008   time units a trust runs
  - TRUSTVAULT_MAX_EXTENSION        (int)  default: 4320   max units per extend()
  - TRUSTVAULT_MAX_MILESTONES       (int)  default: 5
  - TRUSTVAULT_MAX_BENEFICIARIES    (int)  default: 5
  - TRUSTVAULT_MAX_BATCH            (int)  default: 10
  - TRUSTVAULT_RATE_WINDOW          (int)  default: 144
  - TRUSTVAULT_MAX_PER_WINDOW       (int)  default: 5
  - TRUSTVAULT_HIGH_VALUE           (int)  default: 1_000_000_000
  - TRUSTVAULT_CONSECUTIVE_LIMIT    (int)  default: 3
  - TRUSTVAULT_AUDIT_DEPOSIT        (int)  default: 1_000_000
  - TRUSTVAULT_MAX_DETAILS_BYTES    (int)  default: 256
  - TRUSTVAULT_CUSTODY_ADDRESS      (str)  default: "trustvault:custody"

Out-of-range integers are clamped; unparsable ones fall back to the default.

Usage:
    from trustvault.config import load_config
    CFG = load_config()
    strict = CFG.replace(max_per_window=2)
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict


# ----------------------------- helpers ---------------------------------------


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        v = int(raw.replace("_", ""), 0)
    except ValueError:
        return default
    if v < min_v:
        return min_v
    if v > max_v:
        return max_v
    return v


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


# ------------------------------- config --------------------------------------


@dataclass(frozen=True)
class TrustConfig:
    # Trust lifecycle
    trust_duration: int = 1008
    max_extension: int = 4320
    max_milestones: int = 5

    # Split trusts / batches
    max_beneficiaries: int = 5
    max_batch: int = 10

    # Security guard
    rate_window: int = 144
    max_per_window: int = 5
    high_value_threshold: int = 1_000_000_000
    consecutive_limit: int = 3

    # Registry
    audit_deposit: int = 1_000_000
    max_details_bytes: int = 256

    # Account holding all escrowed value
    custody_address: str = "trustvault:custody"

    def __post_init__(self) -> None:
        for f in dataclasses.fields(self):
            v = getattr(self, f.name)
            if f.name == "custody_address":
                if not isinstance(v, str) or not v:
                    raise ValueError("custody_address must be a non-empty string")
                continue
            if not isinstance(v, int) or isinstance(v, bool) or v < 0:
                raise ValueError(f"{f.name} must be a non-negative int, got {v!r}")
        if self.max_milestones < 1 or self.max_beneficiaries < 1 or self.max_batch < 1:
            raise ValueError("list bounds must be >= 1")

    def replace(self, **overrides: Any) -> "TrustConfig":
        """Return a copy with `overrides` applied (validated again)."""
        return dataclasses.replace(self, **overrides)

    def as_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


@lru_cache(maxsize=1)
def load_config() -> TrustConfig:
    """
    Build and cache a TrustConfig from environment + defaults.
    """
    d = TrustConfig()
    return TrustConfig(
        trust_duration=_env_int("TRUSTVAULT_TRUST_DURATION", d.trust_duration, min_v=1, max_v=10_000_000),
        max_extension=_env_int("TRUSTVAULT_MAX_EXTENSION", d.max_extension, min_v=1, max_v=10_000_000),
        max_milestones=_env_int("TRUSTVAULT_MAX_MILESTONES", d.max_milestones, min_v=1, max_v=255),
        max_beneficiaries=_env_int("TRUSTVAULT_MAX_BENEFICIARIES", d.max_beneficiaries, min_v=1, max_v=100),
        max_batch=_env_int("TRUSTVAULT_MAX_BATCH", d.max_batch, min_v=1, max_v=1_000),
        rate_window=_env_int("TRUSTVAULT_RATE_WINDOW", d.rate_window, min_v=1, max_v=10_000_000),
        max_per_window=_env_int("TRUSTVAULT_MAX_PER_WINDOW", d.max_per_window, min_v=1, max_v=10_000),
        high_value_threshold=_env_int("TRUSTVAULT_HIGH_VALUE", d.high_value_threshold, min_v=0, max_v=(1 << 128) - 1),
        consecutive_limit=_env_int("TRUSTVAULT_CONSECUTIVE_LIMIT", d.consecutive_limit, min_v=0, max_v=10_000),
        audit_deposit=_env_int("TRUSTVAULT_AUDIT_DEPOSIT", d.audit_deposit, min_v=0, max_v=(1 << 128) - 1),
        max_details_bytes=_env_int("TRUSTVAULT_MAX_DETAILS_BYTES", d.max_details_bytes, min_v=1, max_v=65_536),
        custody_address=_env_str("TRUSTVAULT_CUSTODY_ADDRESS", d.custody_address),
    )


__all__ = ["TrustConfig", "load_config"]
