"""Tests for environment-driven settings."""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from indx_search.config import ClientSettings, get_settings
from indx_search.domain.models import CoverageSetup, LcsCoverageSetup


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ("INDX_USERNAME", "INDX_PASSWORD", "INDX_API_URL", "INDX_PROTOCOL_VERSION"):
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults_build_query_configuration():
    settings = ClientSettings(_env_file=None)
    config = settings.query_configuration()

    assert config.base_url == "https://api.indx.co/api/"
    assert config.dataset == "0"
    assert config.results == 30
    assert config.metric_score_min == 30
    assert config.timeout_ms == 1000
    assert isinstance(config.coverage, CoverageSetup)
    assert not settings.has_credentials


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("INDX_API_URL", "https://search.example/api")
    monkeypatch.setenv("INDX_USERNAME", "me@example.com")
    monkeypatch.setenv("INDX_PASSWORD", "pw")
    monkeypatch.setenv("INDX_PROTOCOL_VERSION", "3.2")
    monkeypatch.setenv("INDX_SEARCH__RESULTS", "5")
    monkeypatch.setenv("INDX_LCS_COVERAGE__LCS_ERROR_TOLERANCE", "2")

    settings = get_settings()
    config = settings.query_configuration()

    assert settings.has_credentials
    assert config.base_url == "https://search.example/api/"
    assert config.results == 5
    assert isinstance(config.coverage, LcsCoverageSetup)
    assert config.coverage.lcs_error_tolerance == 2


def test_blank_username_counts_as_missing(monkeypatch):
    monkeypatch.setenv("INDX_USERNAME", "   ")
    monkeypatch.setenv("INDX_PASSWORD", "pw")

    assert ClientSettings(_env_file=None).has_credentials is False


def test_invalid_result_cap_rejected(monkeypatch):
    monkeypatch.setenv("INDX_SEARCH__RESULTS", "0")

    with pytest.raises(ValidationError):
        ClientSettings(_env_file=None)


def test_log_level_name_maps_to_logging_constant(monkeypatch):
    monkeypatch.setenv("INDX_LOG_LEVEL", "WARNING")

    assert ClientSettings(_env_file=None).log_level_value == logging.WARNING
