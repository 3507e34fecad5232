"""Tests for configuration models and YAML loading."""

from pathlib import Path
from textwrap import dedent
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from jobagent.core.config import (
    DEFAULT_MODEL,
    ApiConfig,
    BudgetConfig,
    SearchStageConfig,
    Settings,
)
from jobagent.core.errors import ConfigurationError


class TestApiConfig:
    def test_defaults(self) -> None:
        api = ApiConfig()
        assert api.model == DEFAULT_MODEL
        assert api.base_url == ""
        assert api.timeout_s == 60.0

    def test_require_passes(self) -> None:
        ApiConfig(base_url="https://api.test/v1", api_key="k").require()

    def test_require_missing_key(self) -> None:
        with pytest.raises(ConfigurationError, match="api_key"):
            ApiConfig(base_url="https://api.test/v1").require()

    def test_require_missing_both(self) -> None:
        with pytest.raises(ConfigurationError, match="base_url, api_key"):
            ApiConfig().require()

    def test_whitespace_counts_as_missing(self) -> None:
        with pytest.raises(ConfigurationError):
            ApiConfig(base_url="  ", api_key="k").require()

    def test_configuration_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            ApiConfig().require()

    def test_timeout_positive(self) -> None:
        with pytest.raises(ValidationError):
            ApiConfig(timeout_s=0)


class TestBudgetConfig:
    def test_defaults(self) -> None:
        b = BudgetConfig()
        assert b.context_ceiling == 128_000
        assert b.completion_ceiling == 1500
        assert b.safety_buffer == 3000


class TestSearchStageConfig:
    def test_defaults(self) -> None:
        s = SearchStageConfig()
        assert s.max_tokens == 4000
        assert s.analyze_delay_s == 1.0
        assert s.rank_delay_s == 0.8

    def test_negative_delay_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SearchStageConfig(rank_delay_s=-1)


class TestSettingsYaml:
    def test_from_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text(dedent("""\
            api:
              base_url: "https://api.test/v1"
              api_key: "secret"
            search:
              analyze_delay_s: 0
              rank_delay_s: 0
            database:
              path: "/tmp/x.db"
              enabled: false
        """))
        settings = Settings.from_yaml(path)
        assert settings.api.base_url == "https://api.test/v1"
        assert settings.search.analyze_delay_s == 0
        assert settings.database.enabled is False
        assert settings.budget.context_ceiling == 128_000

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            Settings.from_yaml(tmp_path / "nope.yaml")

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert Settings.from_yaml(path) == Settings()


class TestSettingsLoad:
    def test_env_fills_gaps(self) -> None:
        env = {"IO_NET_BASE_URL": "https://env.test/v1", "IOINTELLIGENCE_API_KEY": "env-key"}
        with patch.dict("os.environ", env, clear=True):
            settings = Settings.load()
        assert settings.api.base_url == "https://env.test/v1"
        assert settings.api.api_key == "env-key"

    def test_file_wins_over_env(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text('api:\n  api_key: "file-key"\n')
        env = {"IO_NET_BASE_URL": "https://env.test/v1", "IOINTELLIGENCE_API_KEY": "env-key"}
        with patch.dict("os.environ", env, clear=True):
            settings = Settings.load(path)
        assert settings.api.api_key == "file-key"
        assert settings.api.base_url == "https://env.test/v1"

    def test_no_env_no_file(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            settings = Settings.load()
        with pytest.raises(ConfigurationError):
            settings.api.require()
