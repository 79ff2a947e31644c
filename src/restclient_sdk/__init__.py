"""
REST client SDK - Async-first client for calling REST APIs.

This SDK provides:
- Async client with a synchronous wrapper
- Relative URL building and canonical query encoding
- JSON/text/bytes/stream request and response entities
- Conversion of non-2xx responses into structured errors
- Interceptor chain for auth tokens, logging, etc.
- Identity v2.0 token authenticator with token caching
- Multiple HTTP transport support
"""

from .auth import IdentityV2Authenticator
from .auth import identity_v2_authenticator
from .auth import identity_v2_authenticator_from_settings
from .client import RestClient
from .client_sync import RestClientSync
from .config import IdentitySettings
from .config import RestClientSettings
from .entity import ContentKind
from .entity import Entity
from .entity import MimeType
from .entity import json_entity
from .entity import text_entity
from .exceptions import AuthError
from .exceptions import CancellationError
from .exceptions import ConfigError
from .exceptions import DecodeError
from .exceptions import ExchangeTimeoutError
from .exceptions import FailedResponseError
from .exceptions import RestClientError
from .exceptions import TransportError
from .exceptions import UnsupportedEntityError
from .exceptions import UrlError
from .interceptor import Interceptor
from .interceptor import NextCallback
from .interceptor import basic_auth
from .logging_interceptor import LoggingInterceptor
from .transport import Request
from .transport import UnifiedResponse

__version__ = "1.0.0"

__all__ = [
    "RestClient",
    "RestClientSync",
    "RestClientSettings",
    "IdentitySettings",
    "Entity",
    "ContentKind",
    "MimeType",
    "json_entity",
    "text_entity",
    "Interceptor",
    "NextCallback",
    "Request",
    "UnifiedResponse",
    "basic_auth",
    "LoggingInterceptor",
    "IdentityV2Authenticator",
    "identity_v2_authenticator",
    "identity_v2_authenticator_from_settings",
    "RestClientError",
    "UrlError",
    "UnsupportedEntityError",
    "TransportError",
    "ExchangeTimeoutError",
    "CancellationError",
    "FailedResponseError",
    "DecodeError",
    "ConfigError",
    "AuthError",
]
