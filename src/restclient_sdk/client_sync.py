"""
Synchronous wrapper for RestClient.

This module provides a synchronous interface on top of the async RestClient
to support users who need blocking calls. All calls run on one private event
loop owned by the wrapper, so connections and the authenticator's lock stay
bound to a single loop for the wrapper's lifetime.
"""

import asyncio

from .client import RestClient
from .config import RestClientSettings
from .entity import Entity
from .exchange import QueryParams
from .interceptor import Interceptor
from .transport.base import BaseTransport


class RestClientSync:
    """
    Synchronous wrapper for RestClient.

    Example:
        with RestClientSync(RestClientSettings(base_url="https://api.example.com")) as client:
            reply = json_entity(dict)
            client.exchange("GET", "/db", {"q": "select all"}, response_entity=reply)
    """

    def __init__(
        self,
        settings: RestClientSettings | None = None,
        transport: BaseTransport | None = None,
        interceptors: list[Interceptor] | None = None,
    ):
        """
        Initialize the synchronous client.

        Args:
            settings: Client configuration (base URL, timeout, transport)
            transport: Optional transport instance to use instead of settings.transport
            interceptors: Initial interceptors, in order
        """
        self._runner = asyncio.Runner()
        self._async_client = RestClient(
            settings=settings, transport=transport, interceptors=interceptors
        )

    @property
    def base_url(self):
        return self._async_client.base_url

    def add_interceptor(self, interceptor: Interceptor) -> None:
        self._async_client.add_interceptor(interceptor)

    def set_base_url(self, raw_url: str) -> None:
        """
        Raises:
            UrlError: If the URL cannot be parsed
        """
        self._async_client.set_base_url(raw_url)

    def exchange(
        self,
        method: str,
        url: str,
        query: QueryParams | None = None,
        request_entity: Entity | None = None,
        response_entity: Entity | None = None,
    ) -> None:
        """
        Synchronous exchange. See RestClient.exchange.

        Raises:
            RestClientError: On any exchange failure
        """
        self._runner.run(
            self._async_client.exchange(
                method, url, query, request_entity, response_entity
            )
        )

    def close(self):
        """
        Synchronous cleanup of client resources.
        """
        try:
            self._runner.run(self._async_client.aclose())
        finally:
            self._runner.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
