"""Centralized OpenAI client management.

The API key is resolved on every call rather than once at import time so that
a missing credential surfaces as a per-request ``ConfigError`` and a key added
to the environment is picked up without a restart.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from openai import AsyncOpenAI

from formlens.errors import ConfigError

from .config import settings

logger = logging.getLogger(__name__)


def get_openai_api_key() -> str:
    """Return the OpenAI API key, prioritising explicit project settings.

    The precedence order is:

    1. `settings.openai_api_key` – value injected via *pydantic-settings* which
       already resolves `.env` files and regular environment variables.
    2. ``OPENAI_API_KEY`` environment variable – fallback for a key exported
       after the settings object was created.

    Raises:
        ConfigError: If neither source provides a key
    """

    if settings.openai_api_key:
        logger.debug("Using OpenAI API key from Settings")
        return settings.openai_api_key

    env_key = os.environ.get("OPENAI_API_KEY")
    if env_key:
        logger.debug("Using OpenAI API key from environment variable")
        return env_key

    raise ConfigError("OpenAI API key not configured on server")


def has_api_key() -> bool:
    try:
        get_openai_api_key()
    except ConfigError:
        return False
    return True


@lru_cache(maxsize=4)
def get_async_openai_client(api_key: str, timeout: float | None = None) -> AsyncOpenAI:
    """Get an AsyncOpenAI client for ``api_key``, reused across requests.

    Retries are disabled: extraction failures are reported, never retried.
    """
    client = AsyncOpenAI(
        api_key=api_key,
        timeout=timeout or settings.upstream_timeout,
        max_retries=0,
    )
    logger.info("Initialized AsyncOpenAI client")
    return client
