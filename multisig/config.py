"""
multisig.config — runtime configuration for multisig wallets.

Knobs:
  • Owner-set capacity
  • Default timelock delay for `Timelocked` policies
  • Gas budget for `execute` and the reserve kept back for post-call cleanup
  • Generic reason reported when a failed invocation carries no decodable reason

Environment variables (all optional):
  MULTISIG_MAX_OWNERS          -> integer in 1..50 (default: 50)
  MULTISIG_TIMELOCK_DELAY      -> seconds, e.g. "86400", "24h", "30m" (default: 24h)
  MULTISIG_EXECUTE_GAS         -> integer (default: 1_000_000)
  MULTISIG_CALL_GAS_RESERVE    -> integer (default: 35_000)
  MULTISIG_GENERIC_REVERT      -> string (default: "transaction reverted silently")

Programmatic usage:
    from multisig.config import get_config
    cfg = get_config()
    if cfg.limits.max_owners < 10:
        ...

Tests and embedders usually build an explicit config with `load_config(env={}, overrides=...)`
and pass it to the wallet rather than mutating the process environment.
"""

from __future__ import annotations

import os
import re
from dataclasses import asdict, dataclass
from functools import lru_cache
from typing import Dict, Mapping, Optional, Union

# ----------------------------- helpers -------------------------------------

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdSMHD])?\s*$")
_DURATION_MULT = {"s": 1, "m": 60, "h": 3600, "d": 86400}


def _parse_duration(s: Union[str, int, float]) -> int:
    """
    Parse human-friendly durations into whole seconds:
      "86400", "24h", "30m", "7d", 3600 -> seconds (int)
    """
    if isinstance(s, (int, float)):
        n = int(s)
        if n < 0:
            raise ValueError("duration must be non-negative")
        return n

    m = _DURATION_RE.match(str(s))
    if not m:
        raise ValueError(f"invalid duration: {s!r}")
    unit = (m.group(2) or "s").lower()
    return int(m.group(1)) * _DURATION_MULT[unit]


def _parse_int(s: Union[str, int, float], name: str) -> int:
    try:
        return int(str(s).replace("_", "").strip()) if isinstance(s, str) else int(s)
    except ValueError:
        raise ValueError(f"{name}: invalid integer {s!r}") from None


# ------------------------------ dataclasses ---------------------------------

# Hard ceiling on owners per wallet; `max_owners` may only lower it.
MAX_OWNERS_LIMIT = 50


@dataclass(frozen=True)
class Limits:
    max_owners: int = MAX_OWNERS_LIMIT


@dataclass(frozen=True)
class GasConfig:
    execute_gas: int = 1_000_000
    call_gas_reserve: int = 35_000


@dataclass(frozen=True)
class MultisigConfig:
    limits: Limits
    gas: GasConfig
    timelock_delay: int = 24 * 3600
    generic_revert_reason: str = "transaction reverted silently"

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


# ------------------------------ loader --------------------------------------


def _validate(cfg: MultisigConfig) -> MultisigConfig:
    if not 1 <= cfg.limits.max_owners <= MAX_OWNERS_LIMIT:
        raise ValueError(f"max_owners must be between 1 and {MAX_OWNERS_LIMIT}")
    if cfg.timelock_delay < 0:
        raise ValueError("timelock_delay must be ≥ 0")
    if cfg.gas.call_gas_reserve < 0:
        raise ValueError("call_gas_reserve must be ≥ 0")
    if cfg.gas.execute_gas <= cfg.gas.call_gas_reserve:
        raise ValueError("execute_gas must exceed call_gas_reserve")
    if not cfg.generic_revert_reason:
        raise ValueError("generic_revert_reason must be non-empty")
    return cfg


def load_config(
    env: Optional[Mapping[str, str]] = None,
    *,
    overrides: Optional[Mapping[str, Union[str, int]]] = None,
) -> MultisigConfig:
    """
    Build a MultisigConfig from environment and optional overrides.

    Args:
        env: mapping to read variables from (default: os.environ)
        overrides: explicit field overrides; keys support:
          'max_owners', 'timelock_delay', 'execute_gas', 'call_gas_reserve',
          'generic_revert_reason'
    """
    env = os.environ if env is None else env
    overrides = dict(overrides or {})

    limits = Limits(
        max_owners=_parse_int(
            overrides.get("max_owners", env.get("MULTISIG_MAX_OWNERS", MAX_OWNERS_LIMIT)),
            "max_owners",
        ),
    )
    gas = GasConfig(
        execute_gas=_parse_int(
            overrides.get("execute_gas", env.get("MULTISIG_EXECUTE_GAS", 1_000_000)),
            "execute_gas",
        ),
        call_gas_reserve=_parse_int(
            overrides.get(
                "call_gas_reserve", env.get("MULTISIG_CALL_GAS_RESERVE", 35_000)
            ),
            "call_gas_reserve",
        ),
    )
    cfg = MultisigConfig(
        limits=limits,
        gas=gas,
        timelock_delay=_parse_duration(
            overrides.get(
                "timelock_delay", env.get("MULTISIG_TIMELOCK_DELAY", 24 * 3600)
            )
        ),
        generic_revert_reason=str(
            overrides.get(
                "generic_revert_reason",
                env.get("MULTISIG_GENERIC_REVERT", "transaction reverted silently"),
            )
        ),
    )
    return _validate(cfg)


@lru_cache(maxsize=1)
def get_config() -> MultisigConfig:
    """
    Cached global config. Suitable for application bootstraps and module-level consumers.
    """
    return load_config()


# ----------------------------- pretty-print ---------------------------------


def _fmt_duration(n: int) -> str:
    for unit, div in (("d", 86400), ("h", 3600), ("m", 60)):
        if n >= div and n % div == 0:
            return f"{n // div}{unit}"
    return f"{n}s"


def summary(cfg: Optional[MultisigConfig] = None) -> str:
    """
    Return a human-friendly one-line summary of the wallet knobs.
    """
    cfg = cfg or get_config()
    return (
        "multisig{"
        f"max_owners={cfg.limits.max_owners}, "
        f"timelock={_fmt_duration(cfg.timelock_delay)}, "
        f"gas={cfg.gas.execute_gas}, reserve={cfg.gas.call_gas_reserve}, "
        f"generic_revert={cfg.generic_revert_reason!r}"
        "}"
    )


__all__ = [
    "MAX_OWNERS_LIMIT",
    "Limits",
    "GasConfig",
    "MultisigConfig",
    "load_config",
    "get_config",
    "summary",
]
