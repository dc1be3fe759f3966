"""Tests for configuration loading."""

from pathlib import Path

import pytest

from s3migrate.config import Config, default_max_workers
from s3migrate.exceptions import ConfigurationError


class TestConfig:
    def test_from_env_defaults(self, env_vars):
        config = Config.from_env()

        assert config.page_size == 32
        assert config.max_workers == default_max_workers()
        assert config.initial_backoff == 5
        assert config.max_backoff == 60
        assert config.max_attempts is None
        assert config.region is None

    def test_from_env_credentials_path(self, env_vars):
        config = Config.from_env()

        assert config.credentials_path == Path(env_vars["S3MIGRATE_CREDENTIALS_FILE"])

    def test_from_env_custom_values(self, env_vars, monkeypatch):
        monkeypatch.setenv("S3MIGRATE_PAGE_SIZE", "100")
        monkeypatch.setenv("S3MIGRATE_MAX_WORKERS", "4")
        monkeypatch.setenv("S3MIGRATE_MAX_ATTEMPTS", "10")
        monkeypatch.setenv("S3MIGRATE_REGION", "us-west-2")
        config = Config.from_env()

        assert config.page_size == 100
        assert config.max_workers == 4
        assert config.max_attempts == 10
        assert config.region == "us-west-2"

    def test_zero_max_attempts_means_unbounded(self, env_vars, monkeypatch):
        monkeypatch.setenv("S3MIGRATE_MAX_ATTEMPTS", "0")

        assert Config.from_env().max_attempts is None

    @pytest.mark.parametrize(
        "variable,value",
        [
            ("S3MIGRATE_PAGE_SIZE", "lots"),
            ("S3MIGRATE_PAGE_SIZE", "0"),
            ("S3MIGRATE_MAX_WORKERS", "-2"),
            ("S3MIGRATE_MAX_ATTEMPTS", "-1"),
        ],
    )
    def test_from_env_invalid_value(self, env_vars, monkeypatch, variable, value):
        monkeypatch.setenv(variable, value)

        with pytest.raises(ConfigurationError, match=variable):
            Config.from_env()

    def test_backoff_bounds_checked(self, env_vars, monkeypatch):
        monkeypatch.setenv("S3MIGRATE_INITIAL_BACKOFF", "30")
        monkeypatch.setenv("S3MIGRATE_MAX_BACKOFF", "10")

        with pytest.raises(ConfigurationError, match="backoff"):
            Config.from_env()

    def test_config_is_frozen(self, env_vars):
        config = Config.from_env()

        with pytest.raises(AttributeError):
            config.page_size = 1
