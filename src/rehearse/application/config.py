from datetime import tzinfo
from pathlib import Path
from typing import Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from rehearse.domain.constants import CACHE_TTL_SECONDS

CONFIG_FILES = [
    Path.home() / ".config/rehearse/config.toml",
    Path.home() / ".rehearse.toml",
]


class AppConfig(BaseSettings):
    """
    Configuration model for rehearse.
    Supports loading from:
    1. Environment variables (REHEARSE_*)
    2. Config file (~/.config/rehearse/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="REHEARSE_",
        extra="ignore",
    )

    # Storage
    backend: Literal["sqlite", "memory"] = "sqlite"
    db_path: Path = Field(default_factory=lambda: Path.home() / ".config/rehearse/reviews.db")

    # Scheduling
    timezone: str = "UTC"
    cache_ttl_seconds: float = Field(default=CACHE_TTL_SECONDS, gt=0)

    # Server
    host: str = "127.0.0.1"
    port: int = 8778

    verbose: int = 1

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # First existing file wins
        toml_file = next((f for f in CONFIG_FILES if f.exists()), None)

        # Later sources have lower priority: overrides beat env beat file.
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("db_path", mode="before")
    @classmethod
    def resolve_path(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @property
    def tz(self) -> tzinfo:
        return ZoneInfo(self.timezone)


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/rehearse/config.toml (if exists)
    3. Environment variables (REHEARSE_*)
    4. cli_overrides (passed from Typer)
    """
    # Typer passes None for options the user did not set.
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
