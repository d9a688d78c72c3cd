from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from cadence.domain.constants import (
    DEFAULT_MAX_REVIEWS_PER_DAY,
    DEFAULT_NEW_CARDS_PER_DAY,
    DEFAULT_REINSERT_DISTANCE,
    REINSERT_DISTANCES,
)
from cadence.domain.intervals import CUSTOM_PRESET, DEFAULT_PRESET, PRESETS


def config_file() -> Path:
    return Path.home() / ".config/cadence/config.toml"


class AppConfig(BaseSettings):
    """
    Configuration model for cadence.
    Supports loading from:
    1. Environment variables (CADENCE_*)
    2. Config file (~/.config/cadence/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="CADENCE_",
        extra="ignore",
    )

    # Persistence
    outbox_backend: Literal["memory", "jsonl"] = "jsonl"
    outbox_path: Path = Field(
        default_factory=lambda: Path.home() / ".local/share/cadence/outbox.jsonl"
    )

    # Mastery drill
    reinsert_distance: int = DEFAULT_REINSERT_DISTANCE

    # Confidence queue
    interval_preset: str = DEFAULT_PRESET

    # Review-due defaults for decks without their own settings
    new_cards_per_day: int = Field(default=DEFAULT_NEW_CARDS_PER_DAY, ge=0)
    max_reviews_per_day: int = Field(default=DEFAULT_MAX_REVIEWS_PER_DAY, ge=0)
    shuffle_seed: int | None = None

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

        # First source wins: CLI > env > file
        toml_file = config_file()
        if toml_file.exists():
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("outbox_path", mode="before")
    @classmethod
    def resolve_outbox_path(cls, v: Any) -> Path:
        return Path(v).expanduser()

    @field_validator("reinsert_distance")
    @classmethod
    def check_reinsert_distance(cls, v: int) -> int:
        if v not in REINSERT_DISTANCES:
            raise ValueError(f"reinsert_distance must be one of {REINSERT_DISTANCES}, got {v}")
        return v

    @field_validator("interval_preset")
    @classmethod
    def check_interval_preset(cls, v: str) -> str:
        if v not in PRESETS and v != CUSTOM_PRESET:
            raise ValueError(f"Unknown interval preset '{v}'")
        return v


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/cadence/config.toml (if exists)
    3. Environment variables (CADENCE_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
