from pydantic_settings import BaseSettings
from pydantic import Field


# ---------------------------------------------------------------------------
# Runtime configuration for the formlens extraction gateway.  Unknown
# environment variables are tolerated (`extra = "ignore"`).  The API key is
# declared here but not required at startup: the gateway reads
# it per request and answers with a configuration error when it is missing.
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    # API Keys
    openai_api_key: str | None = Field(None, alias="OPENAI_API_KEY")

    # Vision model used for field extraction
    extraction_model: str = Field("gpt-4o", alias="FORMLENS_EXTRACTION_MODEL")
    upstream_timeout: float = Field(120.0, alias="FORMLENS_UPSTREAM_TIMEOUT")

    # Gateway network settings (used when the process binds its socket)
    formlens_gateway_host: str = Field("0.0.0.0", alias="FORMLENS_GATEWAY_HOST")
    formlens_gateway_port: int = Field(8000, alias="FORMLENS_GATEWAY_PORT")

    # Logging
    log_level: str = Field("INFO", alias="FORMLENS_LOG_LEVEL")

    # Parsed-response cache bounds
    cache_ttl_seconds: float = Field(600.0, alias="FORMLENS_CACHE_TTL_SECONDS")
    cache_max_entries: int = Field(128, alias="FORMLENS_CACHE_MAX_ENTRIES")

    # Upper bound on page images forwarded to the model per request
    max_forwarded_images: int = Field(10, alias="FORMLENS_MAX_FORWARDED_IMAGES")

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
        "extra": "ignore",  # Ignore undeclared env vars
        "populate_by_name": True,
    }


settings = Settings()
