"""
Tests for environment-driven settings.
"""

from stakesim.config import DEFAULT_APPROVAL_AMOUNT, DEFAULT_WINDOW_BLOCKS, Settings
from stakesim.core.numbers import WEI
from stakesim.ledger import STAKING, TOKEN


def test_defaults(monkeypatch):
    for key in ("STAKESIM_WINDOW_BLOCKS", "STAKESIM_MIN_NATIVE_BALANCE", "STAKESIM_APPROVAL_AMOUNT", "STAKESIM_STAKING_ADDRESS"):
        monkeypatch.delenv(key, raising=False)

    settings = Settings.from_env()

    assert settings.window_blocks == DEFAULT_WINDOW_BLOCKS == 500
    assert settings.min_native_balance == WEI
    assert settings.approval_amount == DEFAULT_APPROVAL_AMOUNT == 2_000_000 * WEI
    assert STAKING not in settings.contract_addresses()


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("STAKESIM_WINDOW_BLOCKS", "2000")
    monkeypatch.setenv("STAKESIM_MIN_NATIVE_BALANCE", "0x10")
    monkeypatch.setenv("STAKESIM_STAKING_ADDRESS", "0x" + "01" * 20)
    monkeypatch.setenv("STAKESIM_TOKEN_ADDRESS", "0x" + "02" * 20)
    monkeypatch.delenv("STAKESIM_REWARD_CONTROLLER_ADDRESS", raising=False)

    settings = Settings.from_env()

    assert settings.window_blocks == 2000
    assert settings.min_native_balance == 16
    addresses = settings.contract_addresses()
    assert addresses[STAKING] == "0x" + "01" * 20
    assert addresses[TOKEN] == "0x" + "02" * 20
    assert "reward_controller" not in addresses


def test_invalid_integers_fall_back(monkeypatch):
    monkeypatch.setenv("STAKESIM_WINDOW_BLOCKS", "lots")
    monkeypatch.setenv("STAKESIM_APPROVAL_AMOUNT", "-5")

    settings = Settings.from_env()

    assert settings.window_blocks == DEFAULT_WINDOW_BLOCKS
    assert settings.approval_amount == DEFAULT_APPROVAL_AMOUNT
