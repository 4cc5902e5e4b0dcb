from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from lingosrs.domain.constants import MAX_WRITE_RETRIES, NEW_CARDS_PER_SESSION


def config_files() -> list[Path]:
    return [
        Path.home() / ".config/lingosrs/config.toml",
        Path.home() / ".lingosrs.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for lingosrs.
    Supports loading from:
    1. Environment variables (LINGOSRS_*)
    2. Config file (~/.config/lingosrs/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="LINGOSRS_",
        extra="ignore",
    )

    # Store
    store_backend: Literal["memory", "sqlite"] = "sqlite"
    store_path: Path = Field(
        default_factory=lambda: Path.home() / ".local/share/lingosrs/cards.db",
        validate_default=True,
    )
    max_write_retries: int = Field(default=MAX_WRITE_RETRIES, ge=0)

    # Sessions
    user_id: str = "local"
    default_language: str = "fr"
    new_cards_per_session: int = Field(default=NEW_CARDS_PER_SESSION, ge=0)
    max_reviews: int | None = Field(default=None, ge=0)

    # Output
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

        # First existing file wins; CLI overrides beat env beat file
        toml_file = next((f for f in config_files() if f.exists()), None)

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

    @field_validator("store_path", mode="before")
    @classmethod
    def resolve_store_path(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()

    @field_validator("default_language", mode="before")
    @classmethod
    def normalize_language(cls, v: Any) -> str:
        return str(v).strip().lower()


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/lingosrs/config.toml (if exists)
    3. Environment variables (LINGOSRS_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
