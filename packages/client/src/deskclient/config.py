# This project was developed with assistance from AI tools.
"""Client configuration via pydantic-settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Connection and resilience settings -- reads ``DESK_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="DESK_", extra="ignore")

    base_url: str = Field(
        default="http://localhost:8000/api/v1",
        description="REST root of the Visa Desk backend.",
    )
    timeout: float = 30.0

    # -- Retry (idempotent verbs only) --
    max_retries: int = Field(default=2, ge=0)
    retry_base_delay_ms: int = 500
    retry_max_delay_ms: int = 8000
    retry_jitter_ms: int = 200

    # -- Status polling --
    poll_interval: float = Field(default=5.0, gt=0)
    poll_window: float = Field(default=600.0, gt=0)

    token_file: str | None = Field(
        default=None,
        description="Persist the signed-in session to this JSON file (CLI use).",
    )
