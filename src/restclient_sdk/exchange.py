"""
Request building for a single exchange.

Turns (method, url, query, request entity, expected response entity) into the
`Request` that is handed to the interceptor chain.
"""

from collections.abc import Iterable, Mapping, Sequence
from urllib.parse import urlencode

import httpx

from restclient_sdk.entity import Entity
from restclient_sdk.entity import encode_body
from restclient_sdk.exceptions import UrlError
from restclient_sdk.transport.base import Request

QueryValue = str | int | float | bool
QueryParams = Mapping[str, QueryValue | Sequence[QueryValue]]

HEADER_CONTENT_TYPE = "Content-Type"
HEADER_ACCEPT = "Accept"


def parse_url(raw_url: str) -> httpx.URL:
    try:
        return httpx.URL(raw_url)
    except (httpx.InvalidURL, TypeError) as e:
        raise UrlError(f"failed to parse given url {raw_url!r}: {e}") from e


def encode_query(query: QueryParams) -> str:
    """
    Canonical query string: keys sorted, repeated values kept in given order,
    spaces as '+'. Scalars other than str are rendered with str().

    >>> encode_query({"q": "select all", "filter": ["apple", "orange"]})
    'filter=apple&filter=orange&q=select+all'
    """
    pairs = []
    for key in sorted(query):
        values = query[key]
        if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
            values = [values]
        pairs.extend((key, value) for value in values)
    return urlencode(pairs)


def build_url(
    url: str, query: QueryParams | None = None, base_url: httpx.URL | None = None
) -> str:
    """
    Resolve `url` against `base_url` (RFC 3986 reference resolution) when a
    base is configured, otherwise use it as given. A non-empty `query`
    replaces any query already present on the URL.
    """
    target = parse_url(url)
    if base_url is not None:
        try:
            target = base_url.join(target)
        except (httpx.InvalidURL, ValueError) as e:
            raise UrlError(f"failed to parse given url relative to base: {e}") from e
    if query:
        target = target.copy_with(query=encode_query(query).encode("ascii"))
    return str(target)


def build_request(
    method: str,
    url: str,
    query: QueryParams | None = None,
    request_entity: Entity | None = None,
    response_entity: Entity | None = None,
    base_url: httpx.URL | None = None,
) -> Request:
    headers = httpx.Headers()
    if request_entity is not None and request_entity.content_type:
        headers[HEADER_CONTENT_TYPE] = request_entity.content_type
    if response_entity is not None and response_entity.content_type:
        headers[HEADER_ACCEPT] = response_entity.content_type

    return Request(
        method=method.upper(),
        url=build_url(url, query, base_url),
        headers=headers,
        body=encode_body(request_entity),
    )
