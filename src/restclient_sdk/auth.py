"""
This module provides IdentityV2Authenticator, an interceptor responsible for:
- obtaining a token from a Rackspace Cloud Identity v2.0 endpoint
- caching the token until its expiry and refreshing it once it has expired
- injecting the token as the x-auth-token header of every outgoing request.

The token request itself is made with a dedicated RestClient that has no
interceptors of its own, so authentication never re-enters the chain it is
part of.

Info about Identity v2.0 is available at https://developer.rackspace.com/docs/cloud-identity/v2/
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from datetime import timezone

from pydantic import BaseModel
from pydantic import Field

from restclient_sdk.client import RestClient
from restclient_sdk.config import IdentitySettings
from restclient_sdk.config import RestClientSettings
from restclient_sdk.entity import json_entity
from restclient_sdk.exceptions import AuthError
from restclient_sdk.exceptions import ConfigError
from restclient_sdk.exceptions import RestClientError
from restclient_sdk.exceptions import UrlError
from restclient_sdk.interceptor import NextCallback
from restclient_sdk.transport.base import BaseTransport
from restclient_sdk.transport.base import Request
from restclient_sdk.transport.base import UnifiedResponse

logger = logging.getLogger("restclient_sdk.auth")

AUTH_TIMEOUT = 60.0
TOKENS_PATH = "/v2.0/tokens"
AUTH_TOKEN_HEADER = "x-auth-token"


class ApiKeyCredentials(BaseModel):
    username: str
    api_key: str = Field(serialization_alias="apiKey")


class ApiKeyAuth(BaseModel):
    credentials: ApiKeyCredentials = Field(
        serialization_alias="RAX-KSKEY:apiKeyCredentials"
    )


class ApiKeyAuthRequest(BaseModel):
    auth: ApiKeyAuth


class PasswordCredentials(BaseModel):
    username: str
    password: str


class PasswordAuth(BaseModel):
    credentials: PasswordCredentials = Field(serialization_alias="passwordCredentials")


class PasswordAuthRequest(BaseModel):
    auth: PasswordAuth


class IdentityToken(BaseModel):
    id: str
    expires: datetime


class IdentityAccess(BaseModel):
    token: IdentityToken


class IdentityAuthResponse(BaseModel):
    """Only the fields needed; the rest of the Identity response is ignored."""

    access: IdentityAccess


@dataclass(frozen=True)
class TokenState:
    token: str | None
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.token is None or now >= self.expires_at


UNAUTHENTICATED = TokenState(token=None, expires_at=datetime.min.replace(tzinfo=timezone.utc))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IdentityV2Authenticator:
    """
    Token-caching interceptor for Identity v2.0.

    Either password or api_key must be given; when both are, the API key is used.

    Unless a transport is passed in, the authenticator opens its own HTTP client
    for token requests. The outer RestClient does not close it: call `aclose()`
    (or use the authenticator as an async context manager) when done.

    The check-then-refresh sequence runs under a lock, so concurrent exchanges
    that find the token expired trigger a single refresh and all reuse its
    result. The cached token and its expiry are swapped as one immutable value,
    so a reader never sees a token paired with another token's expiry.

    Args:
        identity_url (str): Base URL of the Identity endpoint, such as
            "https://identity.api.rackspacecloud.com".
        username (str): Identity user name.
        password (str): Password, or "" when using an API key.
        api_key (str): API key, or "" when using a password.
        transport (BaseTransport | None): Transport for the token request.
        clock (Callable[[], datetime] | None): Returns the current aware time.

    Raises:
        ConfigError: Missing username, missing credentials or invalid identity_url.
    """

    def __init__(
        self,
        identity_url: str,
        username: str,
        password: str = "",
        api_key: str = "",
        transport: BaseTransport | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        if not username:
            raise ConfigError("username is required")
        if not password and not api_key:
            raise ConfigError("password or api_key is required")
        if not identity_url:
            raise ConfigError("identity_url is required")

        self.username = username
        self._password = password
        self._api_key = api_key
        self._clock = clock or _utcnow
        self._state = UNAUTHENTICATED
        self._lock = asyncio.Lock()

        try:
            self._client = RestClient(
                RestClientSettings(
                    base_url=identity_url, timeout=AUTH_TIMEOUT, transport="httpx"
                ),
                transport=transport,
            )
        except UrlError as e:
            raise ConfigError(f"invalid Identity URL: {e}") from e

    async def __call__(self, request: Request, next: NextCallback) -> UnifiedResponse:
        token = await self._current_token()
        request.headers[AUTH_TOKEN_HEADER] = token
        return await next(request)

    async def _current_token(self) -> str:
        state = self._state
        if not state.is_expired(self._clock()):
            return state.token

        async with self._lock:
            # another exchange may have refreshed while we waited
            state = self._state
            if state.is_expired(self._clock()):
                logger.debug("No valid token. Refreshing...")
                state = await self._authenticate()
                self._state = state
            return state.token

    def _build_auth_request(self) -> BaseModel:
        if self._api_key:
            return ApiKeyAuthRequest(
                auth=ApiKeyAuth(
                    credentials=ApiKeyCredentials(
                        username=self.username, api_key=self._api_key
                    )
                )
            )
        return PasswordAuthRequest(
            auth=PasswordAuth(
                credentials=PasswordCredentials(
                    username=self.username, password=self._password
                )
            )
        )

    async def _authenticate(self) -> TokenState:
        reply = json_entity(IdentityAuthResponse)
        try:
            await self._client.exchange(
                "POST",
                TOKENS_PATH,
                request_entity=json_entity(self._build_auth_request()),
                response_entity=reply,
            )
        except RestClientError as e:
            logger.error(f"Token request for {self.username} failed: {e}")
            raise AuthError(f"failed to issue token request: {e}") from e

        token: IdentityToken = reply.content.access.token
        expires_at = token.expires
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        logger.debug(f"New token acquired for {self.username} (expires {expires_at.isoformat()})")
        return TokenState(token=token.id, expires_at=expires_at)

    async def aclose(self):
        """Close the HTTP client used for token requests, if the authenticator created it."""
        await self._client.aclose()

    async def __aenter__(self) -> "IdentityV2Authenticator":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()


def identity_v2_authenticator(
    identity_url: str,
    username: str,
    password: str = "",
    api_key: str = "",
    transport: BaseTransport | None = None,
) -> IdentityV2Authenticator:
    """
    Create an interceptor implementing the Identity v2.0 authentication flow.

    Example:
        authenticator = identity_v2_authenticator(
            "https://identity.api.rackspacecloud.com", "username", "", "apikey"
        )
        client.add_interceptor(authenticator)
        # exchanges now carry x-auth-token automatically
        ...
        await authenticator.aclose()
    """
    return IdentityV2Authenticator(
        identity_url, username, password, api_key, transport=transport
    )


def identity_v2_authenticator_from_settings(
    settings: IdentitySettings | None = None, transport: BaseTransport | None = None
) -> IdentityV2Authenticator:
    settings = settings or IdentitySettings()
    return identity_v2_authenticator(
        settings.identity_url,
        settings.username,
        settings.password,
        settings.api_key,
        transport=transport,
    )
