"""Configuration management using Pydantic Settings."""

import logging
import os
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from media_reconcile.path_utils import (
    DEFAULT_EXTENSION_TABLE,
    ExtensionTable,
    normalize_extension,
)

# Fields read from the environment as comma-separated strings, not JSON
LIST_FIELDS = frozenset(
    {
        "extra_video_extensions",
        "extra_subtitle_extensions",
        "extra_audio_extensions",
        "extra_image_extensions",
    }
)


class CustomEnvSettings(PydanticBaseSettingsSource):
    """Custom environment settings source that handles comma-separated lists."""

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        env_name = field_name.upper()
        env_val = os.getenv(env_name)
        if env_val is None:
            return None, env_name, False
        return env_val, env_name, False

    def prepare_field_value(
        self, field_name: str, field: Any, value: Any, value_is_complex: bool
    ) -> Any:
        """Prepare field value, skipping JSON parsing for list fields."""
        if field_name in LIST_FIELDS:
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)

    def __call__(self) -> dict[str, Any]:
        """Load settings from environment variables."""
        d: dict[str, Any] = {}

        for field_name, field_info in self.settings_cls.model_fields.items():
            field_value, _, value_is_complex = self.get_field_value(
                field_info, field_name
            )
            if field_value is not None:
                d[field_name] = self.prepare_field_value(
                    field_name, field_info, field_value, value_is_complex
                )

        return d


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to use custom environment handler."""
        return (
            init_settings,
            CustomEnvSettings(settings_cls),
            dotenv_settings,
            file_secret_settings,
        )

    # Metadata store
    cache_dir: Path = Field(
        default=Path("./cache"),
        description="Directory of the persisted media folder metadata",
    )

    # Descriptor files
    folder_descriptor_name: str = Field(
        default="tvshow.nfo", description="File name of the folder-level descriptor"
    )
    descriptor_read_timeout_seconds: float = Field(
        default=3.0, description="How long to retry an unreadable descriptor"
    )
    descriptor_read_retry_interval_seconds: float = Field(
        default=0.5, description="Delay between descriptor read attempts"
    )

    # Extension table additions (comma-separated)
    extra_video_extensions: list[str] = Field(
        default_factory=list, description="Additional video extensions"
    )
    extra_subtitle_extensions: list[str] = Field(
        default_factory=list, description="Additional subtitle extensions"
    )
    extra_audio_extensions: list[str] = Field(
        default_factory=list, description="Additional audio track extensions"
    )
    extra_image_extensions: list[str] = Field(
        default_factory=list, description="Additional poster image extensions"
    )

    log_level: str = Field(default="INFO", description="Root logging level")

    @field_validator(
        "extra_video_extensions",
        "extra_subtitle_extensions",
        "extra_audio_extensions",
        "extra_image_extensions",
        mode="before",
    )
    @classmethod
    def parse_extensions(cls, v: str | list[str]) -> list[str]:
        """Parse extensions from a comma-separated string or list."""
        if isinstance(v, str):
            v = v.split(",")
        if not isinstance(v, list):
            raise ValueError("extensions must be a comma-separated string or list")
        return [normalize_extension(ext) for ext in v if ext.strip()]

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level against the standard level names."""
        level = v.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"log_level must be a standard logging level, got {v!r}")
        return level

    def extension_table(self) -> ExtensionTable:
        """Built-in extension table extended with the configured additions."""
        return DEFAULT_EXTENSION_TABLE.extended(
            video=self.extra_video_extensions,
            subtitle=self.extra_subtitle_extensions,
            audio=self.extra_audio_extensions,
            poster=self.extra_image_extensions,
        )


def get_settings() -> Settings:
    """Get application settings."""
    try:
        return Settings()
    except ValidationError as e:
        raise ValueError(f"Configuration error: {e}") from e
