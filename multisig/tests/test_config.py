from __future__ import annotations

import pytest

from multisig.config import (MAX_OWNERS_LIMIT, GasConfig, Limits,
                             MultisigConfig, get_config, load_config,
                             summary)


def test_defaults():
    cfg = load_config(env={})
    assert cfg.limits == Limits(max_owners=50)
    assert cfg.gas == GasConfig(execute_gas=1_000_000, call_gas_reserve=35_000)
    assert cfg.timelock_delay == 86_400
    assert cfg.generic_revert_reason == "transaction reverted silently"


def test_env_parsing():
    cfg = load_config(
        env={
            "MULTISIG_MAX_OWNERS": "7",
            "MULTISIG_TIMELOCK_DELAY": "30m",
            "MULTISIG_EXECUTE_GAS": "2_000_000",
            "MULTISIG_CALL_GAS_RESERVE": "10000",
            "MULTISIG_GENERIC_REVERT": "nope",
        }
    )
    assert cfg.limits.max_owners == 7
    assert cfg.timelock_delay == 1800
    assert cfg.gas.execute_gas == 2_000_000
    assert cfg.gas.call_gas_reserve == 10_000
    assert cfg.generic_revert_reason == "nope"


@pytest.mark.parametrize("raw, seconds", [("86400", 86400), ("24h", 86400), ("7d", 604800), ("45s", 45), (" 2H ", 7200)])
def test_duration_forms(raw, seconds):
    assert load_config(env={"MULTISIG_TIMELOCK_DELAY": raw}).timelock_delay == seconds


def test_overrides_win_over_env():
    cfg = load_config(env={"MULTISIG_MAX_OWNERS": "7"}, overrides={"max_owners": 3, "timelock_delay": 60})
    assert cfg.limits.max_owners == 3
    assert cfg.timelock_delay == 60


@pytest.mark.parametrize(
    "env",
    [
        {"MULTISIG_MAX_OWNERS": "0"},
        {"MULTISIG_MAX_OWNERS": "51"},
        {"MULTISIG_MAX_OWNERS": "many"},
        {"MULTISIG_TIMELOCK_DELAY": "soon"},
        {"MULTISIG_EXECUTE_GAS": "1000", "MULTISIG_CALL_GAS_RESERVE": "1000"},
        {"MULTISIG_GENERIC_REVERT": ""},
    ],
)
def test_invalid_values_raise(env):
    with pytest.raises(ValueError):
        load_config(env=env)


def test_owner_cap_cannot_be_raised():
    with pytest.raises(ValueError, match="between 1 and 50"):
        load_config(env={"MULTISIG_MAX_OWNERS": "100"})
    with pytest.raises(ValueError):
        load_config(env={}, overrides={"max_owners": MAX_OWNERS_LIMIT + 1})
    assert load_config(env={}, overrides={"max_owners": MAX_OWNERS_LIMIT}).limits.max_owners == 50


def test_to_dict_and_summary():
    cfg = load_config(env={})
    d = cfg.to_dict()
    assert d["limits"] == {"max_owners": 50}
    assert d["gas"]["call_gas_reserve"] == 35_000
    s = summary(cfg)
    assert s.startswith("multisig{") and "timelock=1d" in s and "max_owners=50" in s


def test_get_config_reads_environment(monkeypatch):
    monkeypatch.setenv("MULTISIG_MAX_OWNERS", "9")
    get_config.cache_clear()
    try:
        cfg = get_config()
        assert isinstance(cfg, MultisigConfig)
        assert cfg.limits.max_owners == 9
        assert get_config() is cfg
    finally:
        get_config.cache_clear()
