"""Configuration management for Deckflow.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the DECKFLOW_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (DECKFLOW_* prefix)
2. .env file in the project root
3. Default values defined in DeckflowConfig

Example .env file:
    DECKFLOW_API_KEY=sk-or-v1-...
    DECKFLOW_OUTLINE_MODEL=qwen/qwen2.5-vl-3b-instruct:free
    DECKFLOW_REQUEST_TIMEOUT=45
    DECKFLOW_SERVER_PORT=5001

Credentials
-----------
``api_key`` has no default.  Building a :class:`DeckflowConfig` without it
raises :class:`pydantic.ValidationError`, which aborts application startup.
A missing key is therefore never seen by a request handler.

Lazy Global Instance
--------------------
Unlike a module-level singleton, the configuration is built on the first call
to :func:`get_config` and cached afterwards.  Importing ``deckflow`` does not
require credentials to be present, which keeps the test-suite and tooling
independent of the environment.

Usage Example
-------------
    from deckflow.core.config import get_config

    config = get_config()
    print(config.outline_model)
    print(config.request_timeout)
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DeckflowConfig(BaseSettings):
    """Main configuration for Deckflow.

    Attributes
    ----------
    Upstream Settings:
        api_key : SecretStr
            Key for the OpenAI-compatible completion endpoint (required)
        base_url : str
            Base URL of the completion endpoint (OpenRouter by default)
        outline_model : str
            Model identifier used for slide outlines
        diagram_model : str
            Model identifier used for Mermaid diagrams
        request_timeout : float
            Upper bound in seconds for a single completion call
        app_url : str
            Sent as the ``HTTP-Referer`` attribution header

    Server Settings:
        server_host : str
            Bind address for uvicorn
        server_port : int
            Port for uvicorn (1024-65535)
        cors_origin : str
            Allowed CORS origin (``*`` for any)
        log_level : Literal["DEBUG", "INFO", "WARNING", "ERROR"]
            Root logging level applied by the CLI entry point

    Examples
    --------
        >>> cfg = DeckflowConfig(api_key="test-key", request_timeout=5)
        >>> cfg.outline_model
        'qwen/qwen2.5-vl-3b-instruct:free'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DECKFLOW_",
        case_sensitive=False,
    )

    # Upstream completion endpoint
    api_key: SecretStr = Field(
        ...,
        description="API key for the completion endpoint (never logged)",
    )
    base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="Base URL of the OpenAI-compatible completion endpoint",
    )
    outline_model: str = Field(
        default="qwen/qwen2.5-vl-3b-instruct:free",
        description="Model identifier for slide outline generation",
    )
    diagram_model: str = Field(
        default="openrouter/quasar-alpha",
        description="Model identifier for Mermaid diagram generation",
    )
    request_timeout: float = Field(
        default=60.0,
        description="Timeout in seconds for one completion call",
        ge=1,
        le=600,
    )
    app_url: str = Field(
        default="http://localhost:3000",
        description="Site URL sent as the HTTP-Referer attribution header",
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    server_port: int = Field(
        default=5001,
        description="Server port",
        ge=1024,
        le=65535,
    )
    cors_origin: str = Field(
        default="*",
        description="Allowed CORS origin",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root logging level",
    )


@lru_cache(maxsize=1)
def get_config() -> DeckflowConfig:
    """Build the process configuration on first use and cache it.

    Returns:
        The shared :class:`DeckflowConfig` instance.

    Raises:
        pydantic.ValidationError: If ``DECKFLOW_API_KEY`` is not set or any
            value fails validation.  This is a startup-time fatal error.
    """
    return DeckflowConfig()
