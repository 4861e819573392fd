"""Centralized configuration for the formlens client.

Values come from the environment or a ``.env`` file in the working directory
via pydantic-settings. Unknown variables are ignored.
"""

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings for rendering, extraction requests and the form lifecycle."""

    # Gateway Configuration
    formlens_gateway_url: str | None = Field(
        None,
        alias="FORMLENS_GATEWAY_URL",
        description="Full gateway URL (overrides host/port if set)",
    )
    formlens_gateway_host: str = Field(
        "localhost",
        alias="FORMLENS_GATEWAY_HOST",
        description="Gateway hostname",
    )
    formlens_gateway_port: int = Field(
        8000,
        alias="FORMLENS_GATEWAY_PORT",
        description="Gateway port number",
    )

    # Rendering and extraction
    render_scale: float = Field(
        2.0,
        gt=0,
        alias="FORMLENS_RENDER_SCALE",
        description="Multiplier applied to native page size for display and extraction",
    )
    max_images: int = Field(
        3,
        ge=1,
        alias="FORMLENS_MAX_IMAGES",
        description="Page images sent per extraction request",
    )
    request_timeout: float = Field(
        120.0,
        alias="FORMLENS_REQUEST_TIMEOUT",
        description="Seconds to wait for the extraction proxy",
    )

    # Form lifecycle
    submit_delay: float = Field(
        1.0,
        ge=0,
        alias="FORMLENS_SUBMIT_DELAY",
        description="Simulated submission latency in seconds",
    )
    notification_seconds: float = Field(
        5.0,
        ge=0,
        alias="FORMLENS_NOTIFICATION_SECONDS",
        description="How long the submit success notification stays up",
    )

    # Logging
    log_level: str = Field(
        "INFO",
        alias="FORMLENS_LOG_LEVEL",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )

    @computed_field
    @property
    def gateway_url(self) -> str:
        """Compute the full gateway URL from components."""
        if self.formlens_gateway_url:
            return self.formlens_gateway_url.rstrip("/")
        return f"http://{self.formlens_gateway_host}:{self.formlens_gateway_port}"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
        "populate_by_name": True,
    }


# Singleton imported throughout the package
settings = Settings()
