"""Configuration for IR construction and the command line."""

from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BuildConfig(BaseModel):
    """Options of a single IR construction run."""

    pagination: bool = True
    pagination_rules: Path | None = None  # defaults to the packaged rules file
    flatten_error_responses: bool = False
    reserved_names: frozenset[str] = frozenset()
    response_analyzer: str | None = None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SDK_IR_", case_sensitive=False)

    log_level: str = Field(default="WARNING")
    pagination_rules: Path | None = Field(default=None)
    response_analyzer: str | None = Field(default=None)

    def build_config(self, **overrides) -> BuildConfig:
        values = {
            "pagination_rules": self.pagination_rules,
            "response_analyzer": self.response_analyzer,
        }
        values.update(overrides)
        return BuildConfig(**values)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
