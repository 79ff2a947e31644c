"""
Logging interceptor for the REST client SDK.

This module provides LoggingInterceptor, a built-in interceptor that logs
all HTTP requests and responses with timing information. Useful for
debugging, monitoring, and understanding SDK behavior.

Features:
- Request logging with method, URL and headers
- Response logging with status line and timing
- Failures of the rest of the chain are logged before being re-raised
- Configurable log level
"""

import logging
import time

from restclient_sdk.interceptor import NextCallback
from restclient_sdk.transport.base import Request
from restclient_sdk.transport.base import UnifiedResponse

logger = logging.getLogger("restclient_sdk.interceptors.logging")

REDACTED_HEADERS = frozenset({"authorization", "x-auth-token"})


class LoggingInterceptor:
    """
    Interceptor for logging HTTP requests and responses in RestClient.
    Uses standard Python logging.

    Timing lives on the call stack, so one instance can be shared by
    concurrent exchanges.
    """

    def __init__(self, level: int = logging.INFO):
        self.level = level

    async def __call__(self, request: Request, next: NextCallback) -> UnifiedResponse:
        headers = {
            key: ("***" if key.lower() in REDACTED_HEADERS else value)
            for key, value in request.headers.items()
        }
        logger.log(
            self.level, f"Request: {request.method} {request.url} | headers={headers}"
        )

        start_time = time.monotonic()
        try:
            response = await next(request)
        except Exception as e:
            elapsed = time.monotonic() - start_time
            logger.log(
                self.level,
                f"Request failed: {request.method} {request.url} | error={e} | elapsed={elapsed:.3f}s",
            )
            raise

        elapsed = time.monotonic() - start_time
        logger.log(
            self.level, f"Response: {response.status_line} | elapsed={elapsed:.3f}s"
        )
        return response
