"""
ecom-synth
Runtime Settings

Environment-driven settings for the command-line layer using Pydantic
settings. The generation core never reads these; it receives a SynthConfig
and a seed explicitly.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeneratorSettings(BaseSettings):
    """Dataset generation defaults"""

    model_config = SettingsConfigDict(env_prefix="ECOM_SYNTH_")

    scale: str = Field(default="medium", description="Scale preset name")
    seed: Optional[int] = Field(default=None, description="Random seed for reproducible runs")
    output_dir: str = Field(default="./data", description="Export root directory")
    formats: List[str] = Field(default=["all"], description="Export formats")
    validate_output: bool = Field(default=False, description="Run dataset quality checks after generation")

    @field_validator("formats")
    @classmethod
    def validate_formats(cls, v: List[str]) -> List[str]:
        """Validate export format names"""
        allowed = ["csv", "json", "parquet", "sql", "all"]
        invalid = [f for f in v if f.lower() not in allowed]
        if invalid:
            raise ValueError(f"Formats must be among: {allowed}, got {invalid}")
        return [f.lower() for f in v]


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="text", alias="LOG_FORMAT", description="Log format: json or text")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing runtime configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = Field(default="ecom-synth", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    version: str = Field(default="1.0.0", description="Application version")

    generator: GeneratorSettings = Field(default_factory=GeneratorSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
