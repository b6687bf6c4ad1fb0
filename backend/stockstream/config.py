"""Runtime settings read from environment variables."""

from __future__ import annotations

from pydantic import Field, PositiveFloat, PositiveInt, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError


class Settings(BaseSettings):
    """Service configuration.

    Built once at startup via ``Settings.from_env()``; tests construct it
    directly to point the snapshot at a temp file and shorten the tick.
    ``HOST`` and ``PORT`` are read without the ``STOCKSTREAM_`` prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="STOCKSTREAM_",
        env_ignore_empty=True,
        populate_by_name=True,
        frozen=True,
    )

    data_file: str = "user_data.json"
    tick_interval: PositiveFloat = 1.0
    outbound_queue_size: PositiveInt = Field(
        default=64, validation_alias="STOCKSTREAM_OUTBOUND_QUEUE"
    )
    cors_origins: str = "*"  # comma-separated
    log_level: str = "INFO"
    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: PositiveInt = Field(default=5000, validation_alias="PORT")

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"

    @property
    def allowed_origins(self) -> tuple[str, ...]:
        origins = tuple(o.strip() for o in self.cors_origins.split(",") if o.strip())
        return origins or ("*",)

    @classmethod
    def from_env(cls) -> Settings:
        try:
            return cls()
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}") from exc
