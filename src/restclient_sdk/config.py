"""
Configuration management for the REST client SDK.

This module provides RestClientSettings and IdentitySettings, which handle SDK
configuration with support for environment variables, .env files, and sensible
defaults.

Environment variables are automatically loaded with the RESTCLIENT_ prefix
(RESTCLIENT_IDENTITY_ for the identity authenticator).
Example: RESTCLIENT_BASE_URL=https://api.example.com
"""

from pydantic import Field
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict

DEFAULT_TIMEOUT = 60.0
DEFAULT_IDENTITY_URL = "https://identity.api.rackspacecloud.com"


class RestClientSettings(BaseSettings):
    """
    Configuration settings for RestClient with environment variable support.

    This class automatically loads configuration from:
    - Environment variables (with RESTCLIENT_ prefix)
    - .env files
    - Default values for optional settings

    A timeout of zero (or below) means "unset" and falls back to 60 seconds.

    Example:
        # From environment
        export RESTCLIENT_BASE_URL=https://api.example.com
        export RESTCLIENT_TIMEOUT=15

        # In code
        settings = RestClientSettings()
    """

    base_url: str | None = Field(
        default=None, description="Base URL that request paths are resolved against"
    )
    timeout: float = DEFAULT_TIMEOUT
    transport: str = "httpx"  # default, can be 'aiohttp' or 'requests'

    model_config = SettingsConfigDict(
        env_prefix="RESTCLIENT_", env_file=".env", extra="ignore"
    )

    @property
    def effective_timeout(self) -> float:
        return self.timeout if self.timeout > 0 else DEFAULT_TIMEOUT


class IdentitySettings(BaseSettings):
    """
    Credentials for the Identity v2.0 token authenticator.

    Either password or api_key must be set; api_key wins when both are.

    Example:
        export RESTCLIENT_IDENTITY_USERNAME=me
        export RESTCLIENT_IDENTITY_API_KEY=secret
    """

    identity_url: str = DEFAULT_IDENTITY_URL
    username: str = ""
    password: str = ""
    api_key: str = ""

    model_config = SettingsConfigDict(
        env_prefix="RESTCLIENT_IDENTITY_", env_file=".env", extra="ignore"
    )
