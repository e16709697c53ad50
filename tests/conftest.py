"""Shared test configuration for jmapical."""

import pytest

from jmapical.config.settings import ConverterSettings, reset_settings

# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch, tmp_path):
    """Isolate every test from global settings, environment and config files."""
    for name in (
        "JMAPICAL_PROD_ID",
        "JMAPICAL_PRETTY_JSON",
        "JMAPICAL_ADD_TIMEZONES",
        "JMAPICAL_MAX_DELEGATION_HOPS",
        "JMAPICAL_CONFIG_FILE",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def test_settings() -> ConverterSettings:
    """Settings without VTIMEZONE generation, for predictable output."""
    return ConverterSettings(add_timezones=False)
