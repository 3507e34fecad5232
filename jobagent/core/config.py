"""Configuration models and YAML loader for the job agent."""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from jobagent.core.errors import ConfigurationError

DEFAULT_MODEL = "meta-llama/Llama-3.3-70B-Instruct"

# Read once by Settings.load, never per request.
ENV_BASE_URL = "IO_NET_BASE_URL"
ENV_API_KEY = "IOINTELLIGENCE_API_KEY"


class ApiConfig(BaseModel):
    """Completion endpoint location and credential."""

    base_url: str = ""
    api_key: str = ""
    model: str = DEFAULT_MODEL
    timeout_s: float = Field(default=60.0, gt=0.0)

    @field_validator("base_url", "api_key")
    @classmethod
    def strip_value(cls, v: str) -> str:
        return v.strip()

    def require(self) -> None:
        """Raise ConfigurationError unless both base URL and key are set."""
        missing = [
            name
            for name, value in (("base_url", self.base_url), ("api_key", self.api_key))
            if not value
        ]
        if missing:
            msg = f"Missing API configuration: {', '.join(missing)}"
            raise ConfigurationError(msg)


class BudgetConfig(BaseModel):
    """Token admission limits for the resume parsing request."""

    context_ceiling: int = Field(default=128_000, ge=1)
    completion_ceiling: int = Field(default=1500, ge=1)
    safety_buffer: int = Field(default=3000, ge=0)


class SearchStageConfig(BaseModel):
    """Job search request parameters and progress pacing."""

    max_tokens: int = Field(default=4000, ge=1)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    analyze_delay_s: float = Field(default=1.0, ge=0.0)
    rank_delay_s: float = Field(default=0.8, ge=0.0)


class CoverLetterConfig(BaseModel):
    """Cover letter request parameters."""

    max_tokens: int = Field(default=1500, ge=1)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/job_agent.db"
    enabled: bool = True


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    api: ApiConfig = Field(default_factory=ApiConfig)
    budget: BudgetConfig = Field(default_factory=BudgetConfig)
    search: SearchStageConfig = Field(default_factory=SearchStageConfig)
    cover_letter: CoverLetterConfig = Field(default_factory=CoverLetterConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)

    @classmethod
    def load(cls, path: str | Path | None = None) -> "Settings":
        """Load settings from YAML (if given) and fill API gaps from the environment.

        Values present in the file win over environment variables.
        """
        settings = cls.from_yaml(path) if path is not None else cls()
        api = settings.api
        updates: dict[str, str] = {}
        if not api.base_url and os.environ.get(ENV_BASE_URL):
            updates["base_url"] = os.environ[ENV_BASE_URL].strip()
        if not api.api_key and os.environ.get(ENV_API_KEY):
            updates["api_key"] = os.environ[ENV_API_KEY].strip()
        if updates:
            settings = settings.model_copy(update={"api": api.model_copy(update=updates)})
        return settings
