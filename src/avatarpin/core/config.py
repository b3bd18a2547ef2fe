"""Configuration management for the Avatar Pin service.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the AVATARPIN_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (AVATARPIN_* prefix)
2. .env file in the project root
3. Default values defined in AvatarPinConfig

The two credentials also accept the unprefixed names used by the upstream
SDKs, so an existing ``.env`` with ``OPENAI_API_KEY`` and ``PINATA_JWT`` keeps
working.

Example .env file:
    OPENAI_API_KEY=sk-...
    PINATA_JWT=eyJhbGciOi...
    AVATARPIN_STORAGE_DIR=storage
    AVATARPIN_SERVER_PORT=3000
    AVATARPIN_MAX_RETRIES=2

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.

Usage Example
-------------
    from avatarpin.core.config import config

    print(config.image_model)
    print(config.storage_dir)

Downstream Call Policy
----------------------
Every call to the synthesis service, the image host and the pinning service
is bounded by ``request_timeout`` seconds.  ``max_retries`` extra attempts are
made after a failed call, sleeping ``retry_backoff`` seconds before the first
retry and doubling each time.  The default of zero retries means a single
failed attempt fails the request.
"""

from pathlib import Path

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_IMAGE_PROMPT = (
    "Create a new avatar image for a digital profile, themed around 'Simp Tease'. "
    "The avatar should exude charm and a sense of fun, featuring a sly smirk and "
    "twinkling eyes. The style should be lively and cartoonish, with playful and "
    "exaggerated features to emphasize its spirited nature. The background should "
    "be a gradient of pink and purple, creating a vibrant and playful atmosphere. "
    "The avatar should wear stylish, modern clothing and be gender-neutral, "
    "designed to appeal to a diverse audience."
)


class AvatarPinConfig(BaseSettings):
    """Main configuration for the Avatar Pin service.

    Values are loaded from environment variables with the AVATARPIN_ prefix,
    with fallback to defaults defined here.  ``storage_dir`` is created if it
    does not exist.

    Attributes
    ----------
    Credentials:
        openai_api_key : SecretStr | None
            Image-synthesis API key (also read from OPENAI_API_KEY)
        pinata_jwt : SecretStr | None
            Pinning-service bearer token (also read from PINATA_JWT)

    Image Generation:
        image_model : str
            Synthesis model identifier
        image_prompt : str
            Fixed prompt sent with every generation request
        openai_base_url : str | None
            Override for the OpenAI API base URL (SDK default when unset)

    Pinning:
        pinata_api_url : str
            Base URL of the pinning API
        ipfs_gateway_url : str
            Base URL used to build public gateway links

    Downstream Calls:
        request_timeout : float
            Timeout in seconds applied to each external call
        max_retries : int
            Retries after the first failed attempt (0 disables retrying)
        retry_backoff : float
            Initial sleep in seconds between attempts, doubled per retry

    Storage:
        storage_dir : Path
            Directory holding downloaded images and transient metadata files

    Server:
        server_host : str
            uvicorn bind address
        server_port : int
            uvicorn port
        serve_static : bool
            Mount ``storage_dir`` at ``/static``
        cors_origins : list[str]
            Allowed CORS origins
        log_level : str
            Root logging level applied by ``main()``

    Examples
    --------
        >>> custom_config = AvatarPinConfig(
        ...     storage_dir="/tmp/avatars",
        ...     max_retries=2,
        ... )
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="AVATARPIN_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Credentials
    openai_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("AVATARPIN_OPENAI_API_KEY", "OPENAI_API_KEY"),
        description="Image-synthesis API key",
    )
    pinata_jwt: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("AVATARPIN_PINATA_JWT", "PINATA_JWT"),
        description="Pinning-service bearer token",
    )

    # Image generation
    image_model: str = Field(
        default="dall-e-3",
        description="Image-synthesis model identifier",
    )
    image_prompt: str = Field(
        default=DEFAULT_IMAGE_PROMPT,
        description="Fixed prompt sent with every generation request",
    )
    openai_base_url: str | None = Field(
        default=None,
        description="Override for the OpenAI API base URL",
    )

    # Pinning
    pinata_api_url: str = Field(
        default="https://api.pinata.cloud",
        description="Base URL of the pinning API",
    )
    ipfs_gateway_url: str = Field(
        default="https://ipfs.io",
        description="Base URL of the public IPFS gateway",
    )

    # Downstream calls
    request_timeout: float = Field(
        default=60.0,
        description="Timeout in seconds for each external call",
        gt=0,
    )
    max_retries: int = Field(
        default=0,
        description="Retries after the first failed attempt",
        ge=0,
        le=5,
    )
    retry_backoff: float = Field(
        default=0.5,
        description="Initial backoff in seconds, doubled per retry",
        ge=0,
    )

    # Storage
    storage_dir: Path = Field(
        default=Path("storage"),
        description="Directory for downloaded images and metadata files",
    )

    # Server
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    server_port: int = Field(
        default=3000,
        description="Server port",
        ge=1,
        le=65535,
    )
    serve_static: bool = Field(
        default=True,
        description="Serve the storage directory at /static",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Allowed CORS origins",
    )
    log_level: str = Field(
        default="INFO",
        description="Root logging level",
    )

    def __init__(self, **kwargs):
        """Initialize configuration and create the storage directory.

        Args:
            **kwargs: Configuration overrides (typically from environment variables)
        """
        super().__init__(**kwargs)

        self.storage_dir.mkdir(parents=True, exist_ok=True)


# Global configuration instance
# Loads values from environment variables (AVATARPIN_* prefix) and .env file.
config = AvatarPinConfig()
