"""
Tests for engine settings loaded through pydantic-settings.
"""

import pytest
from pydantic import ValidationError

from creditopoly.settings import EngineSettings, get_engine_settings


def test_defaults():
    settings = EngineSettings(_env_file=None)

    assert settings.enable_bank_loans is True
    assert settings.enable_jackpot is False
    assert settings.loan_interest_rate == 0.10
    assert settings.chapter11_turns == 5
    assert settings.mortgage_breaks_monopoly is False


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("CREDITOPOLY_ENABLE_BANK_LOANS", "false")
    monkeypatch.setenv("CREDITOPOLY_CHAPTER11_TURNS", "3")

    settings = EngineSettings(_env_file=None)

    assert settings.enable_bank_loans is False
    assert settings.chapter11_turns == 3


def test_rates_accept_whole_percentages(monkeypatch):
    monkeypatch.setenv("CREDITOPOLY_LOAN_INTEREST_RATE", "15")
    monkeypatch.setenv("CREDITOPOLY_IOU_INTEREST_RATE", "8%")

    settings = EngineSettings(_env_file=None)

    assert settings.loan_interest_rate == 0.15
    assert settings.iou_interest_rate == 0.08
    assert EngineSettings(_env_file=None, max_loan_percent=0.25).max_loan_percent == 0.25


def test_invalid_values_rejected():
    with pytest.raises(ValidationError):
        EngineSettings(_env_file=None, loan_interest_rate=-0.1)
    with pytest.raises(ValidationError):
        EngineSettings(_env_file=None, chapter11_turns=0)


def test_cached_settings(monkeypatch):
    get_engine_settings.cache_clear()
    monkeypatch.setenv("CREDITOPOLY_ENABLE_JACKPOT", "true")
    try:
        first = get_engine_settings()
        assert first.enable_jackpot is True
        assert get_engine_settings() is first
    finally:
        get_engine_settings.cache_clear()
