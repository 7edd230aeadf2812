from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from noetica.domain.constants import (
    DEFAULT_NEW_CARD_LIMIT,
    DEFAULT_PERSIST_RETRIES,
    DEFAULT_RETRY_DELAY,
)


def _config_files() -> list[Path]:
    return [
        Path.home() / ".config/noetica/config.toml",
        Path.home() / ".noetica.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for noetica.
    Supports loading from:
    1. Environment variables (NOETICA_*)
    2. Config file (~/.config/noetica/config.toml or ~/.noetica.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="NOETICA_",
        extra="ignore",
    )

    # Storage
    backend: Literal["memory", "yaml"] = "yaml"
    store_path: Path = Field(
        default_factory=lambda: Path.home() / ".local/share/noetica/store.yaml"
    )
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".config/noetica/logs")

    # Scheduling
    new_card_limit: int = Field(default=DEFAULT_NEW_CARD_LIMIT, ge=0)

    # Persistence retries
    persist_retries: int = Field(default=DEFAULT_PERSIST_RETRIES, ge=0)
    retry_delay: float = Field(default=DEFAULT_RETRY_DELAY, ge=0.0)

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
        toml_file = next((f for f in _config_files() if f.exists()), None)

        # Init settings (CLI overrides) take precedence over env, env over file.
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

    @field_validator("store_path", "log_dir", mode="before")
    @classmethod
    def resolve_path(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/noetica/config.toml (if exists)
    3. Environment variables (NOETICA_*)
    4. cli_overrides (passed from Typer); None values are ignored
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
