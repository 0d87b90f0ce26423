import pytest


@pytest.fixture(autouse=True)
def fast_browser_env(monkeypatch):
    monkeypatch.setenv("QUICKSCOUT_STEALTH", "0")
    monkeypatch.setenv("QUICKSCOUT_WAIT_MULTIPLIER", "0")
    monkeypatch.setenv("QUICKSCOUT_SETTLE_MIN_MS", "0")
    monkeypatch.setenv("QUICKSCOUT_SETTLE_MAX_MS", "0")
    monkeypatch.setenv("QUICKSCOUT_TYPING_DELAY_MS", "0")
    monkeypatch.delenv("QUICKSCOUT_DEMO", raising=False)
