"""Tests for age_signals.config module."""

import logging
import os
from unittest import mock

import pytest

from age_signals.config import ClientConfig, env_value, parse_flag, read_client_config


class TestParseFlag:
    @pytest.mark.parametrize("value", ["1", "true", "yes", "on", "TRUE", " True "])
    def test_true_words(self, value):
        assert parse_flag(value) is True

    @pytest.mark.parametrize("value", ["0", "false", "no", "off", "OFF", " 0 "])
    def test_false_words(self, value):
        assert parse_flag(value) is False

    @pytest.mark.parametrize("value", ["invalid", "2", "y"])
    def test_other_words_raise(self, value):
        with pytest.raises(ValueError):
            parse_flag(value)


class TestEnvValue:
    """Test env_value function."""

    def test_unset_uses_default(self):
        """Should return the default when the variable is not set."""
        with mock.patch.dict(os.environ, {}, clear=True):
            assert env_value("MAX_ATTEMPTS", int, 3) == 3

    def test_reads_prefixed_name(self):
        with mock.patch.dict(os.environ, {"AGE_SIGNALS_MAX_ATTEMPTS": "5"}, clear=True):
            assert env_value("MAX_ATTEMPTS", int, 3) == 5

    def test_unprefixed_name_is_ignored(self):
        with mock.patch.dict(os.environ, {"MAX_ATTEMPTS": "5"}, clear=True):
            assert env_value("MAX_ATTEMPTS", int, 3) == 3

    @pytest.mark.parametrize("value", ["", "   "])
    def test_blank_uses_default(self, value):
        with mock.patch.dict(os.environ, {"AGE_SIGNALS_TEST_MODE": value}, clear=True):
            assert env_value("TEST_MODE", parse_flag, True) is True

    @pytest.mark.parametrize(
        ("parse", "value", "default"),
        [(int, "five", 3), (int, "1.5", 3), (float, "soon", 1.0), (parse_flag, "maybe", False)],
    )
    def test_invalid_value_logs_and_uses_default(self, caplog, parse, value, default):
        with mock.patch.dict(os.environ, {"AGE_SIGNALS_SETTING": value}, clear=True):
            with caplog.at_level(logging.WARNING, logger="age-signals"):
                assert env_value("SETTING", parse, default) == default

        assert "Ignoring invalid AGE_SIGNALS_SETTING" in caplog.text


class TestReadClientConfig:
    def test_defaults(self):
        """Should fall back to the documented defaults."""
        with mock.patch.dict(os.environ, {}, clear=True):
            config = read_client_config()

        assert config == ClientConfig(
            bridge_url=None,
            test_mode=False,
            max_attempts=3,
            backoff_seconds=1.0,
            timeout_seconds=10.0,
        )

    def test_reads_environment(self):
        env_vars = {
            "AGE_SIGNALS_BRIDGE_URL": "http://localhost:9000",
            "AGE_SIGNALS_TEST_MODE": "yes",
            "AGE_SIGNALS_MAX_ATTEMPTS": "5",
            "AGE_SIGNALS_BACKOFF_SECONDS": "0.5",
            "AGE_SIGNALS_TIMEOUT_SECONDS": "2",
        }
        with mock.patch.dict(os.environ, env_vars, clear=True):
            config = read_client_config()

        assert config.bridge_url == "http://localhost:9000"
        assert config.test_mode is True
        assert config.max_attempts == 5
        assert config.backoff_seconds == 0.5
        assert config.timeout_seconds == 2.0

    def test_negative_values_are_clamped(self):
        env_vars = {
            "AGE_SIGNALS_MAX_ATTEMPTS": "-2",
            "AGE_SIGNALS_BACKOFF_SECONDS": "-1",
        }
        with mock.patch.dict(os.environ, env_vars, clear=True):
            config = read_client_config()

        assert config.max_attempts == 0
        assert config.backoff_seconds == 0.0

    def test_config_is_frozen(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            config = read_client_config()
        with pytest.raises(AttributeError):
            config.test_mode = True  # type: ignore[misc]

    def test_invalid_values_fall_back(self):
        env_vars = {
            "AGE_SIGNALS_TEST_MODE": "sometimes",
            "AGE_SIGNALS_MAX_ATTEMPTS": "many",
            "AGE_SIGNALS_TIMEOUT_SECONDS": "slow",
        }
        with mock.patch.dict(os.environ, env_vars, clear=True):
            config = read_client_config()

        assert config.test_mode is False
        assert config.max_attempts == 3
        assert config.timeout_seconds == 10.0

    def test_blank_bridge_url_means_none(self):
        with mock.patch.dict(os.environ, {"AGE_SIGNALS_BRIDGE_URL": "  "}, clear=True):
            assert read_client_config().bridge_url is None
