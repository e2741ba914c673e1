#!/usr/bin/env python3
"""
Tests for startup configuration loading.
"""

from dataclasses import FrozenInstanceError

import pytest

from metabase_mcp.metabase import (
    MetabaseConfig,
    StartupConfigurationError,
    get_metabase_config
)

VALID_ENV = {
    "METABASE_DATABASE_ID": "31",
    "METABASE_HOST": "https://metabase.example.com/",
    "METABASE_COOKIES": "metabase.SESSION=secret-session-id"
}

def test_loads_complete_environment():
    config = get_metabase_config(VALID_ENV)

    assert config.database_id == 31
    assert config.base_url == "https://metabase.example.com"
    assert config.dataset_url == "https://metabase.example.com/api/dataset"
    assert config.cookies == "metabase.SESSION=secret-session-id"
    assert config.timeout == 120.0

@pytest.mark.parametrize("missing", ["METABASE_DATABASE_ID", "METABASE_HOST", "METABASE_COOKIES"])
def test_missing_variable_is_fatal(missing):
    env = {k: v for k, v in VALID_ENV.items() if k != missing}

    with pytest.raises(StartupConfigurationError) as exc_info:
        get_metabase_config(env)

    assert exc_info.value.missing == [missing]
    assert missing in str(exc_info.value)

def test_all_missing_are_reported_together():
    with pytest.raises(StartupConfigurationError) as exc_info:
        get_metabase_config({})

    assert exc_info.value.missing == ["METABASE_DATABASE_ID", "METABASE_HOST", "METABASE_COOKIES"]

def test_non_integer_database_id_is_fatal():
    env = dict(VALID_ENV, METABASE_DATABASE_ID="analytics")

    with pytest.raises(StartupConfigurationError, match="must be an integer"):
        get_metabase_config(env)

def test_config_is_frozen():
    config = get_metabase_config(VALID_ENV)
    with pytest.raises(FrozenInstanceError):
        config.database_id = 7

def test_cookie_stays_out_of_repr():
    config = MetabaseConfig(database_id=1, base_url="http://mb", cookies="metabase.SESSION=abc")
    assert "abc" not in repr(config)

def test_headers_carry_cookie_verbatim():
    config = get_metabase_config(VALID_ENV)
    headers = config.headers()

    assert headers == {
        "Content-Type": "application/json",
        "Cookie": "metabase.SESSION=secret-session-id"
    }
