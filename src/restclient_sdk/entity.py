"""
Typed request/response payloads.

An `Entity` pairs a content type with an in-memory payload. The same type is
used for what is sent and for what is expected back:

- outgoing, the content decides how the request body is produced
  (text and bytes verbatim, a readable stream passed through, a structured
  value serialized as JSON);
- incoming, the content that was pre-set decides how the response body is
  captured (as text, as bytes, into a writable sink, or decoded into a
  target type).

The shape of the content is resolved once, when the entity is built, into a
`ContentKind`. Nothing downstream inspects the payload type again.
"""

from enum import Enum
from enum import StrEnum
from typing import Any
from typing import get_origin

from pydantic import BaseModel
from pydantic import PydanticSchemaGenerationError
from pydantic import TypeAdapter
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError
from pydantic_core import to_json

from restclient_sdk.exceptions import DecodeError
from restclient_sdk.exceptions import UnsupportedEntityError
from restclient_sdk.transport.base import UnifiedResponse


class MimeType(StrEnum):
    JSON = "application/json"
    TEXT = "text/plain"


class ContentKind(Enum):
    TEXT = "text"
    RAW = "raw"
    STREAM = "stream"
    TYPED = "typed"


def _is_stream(content: Any) -> bool:
    return callable(getattr(content, "read", None)) or callable(
        getattr(content, "write", None)
    )


def _is_json_type(content_type: str | None) -> bool:
    if not content_type:
        return False
    return content_type.split(";", 1)[0].strip().lower() == MimeType.JSON


def _is_decode_target(content: Any) -> bool:
    """True for a class or a parameterized type such as ``list[str]`` or ``int | None``."""
    return (
        isinstance(content, type) or content is Any or get_origin(content) is not None
    )


class Entity:
    """
    Content-type tag plus payload, used for both request and response bodies.

    Args:
        content_type (str | None): Media type, e.g. "application/json". Sent as
            Content-Type on requests and as Accept for expected responses.
        content (Any): str, bytes, a file-like stream, or, for JSON entities, a
            value to serialize (request) or a type to decode into (response).

    Raises:
        UnsupportedEntityError: If the content matches none of the supported shapes.
    """

    __slots__ = ("content_type", "content", "kind")

    def __init__(self, content_type: str | None, content: Any):
        self.content_type = str(content_type) if content_type else None
        self.content = content
        self.kind = self._resolve_kind(self.content_type, content)

    @staticmethod
    def _resolve_kind(content_type: str | None, content: Any) -> ContentKind:
        if isinstance(content, str):
            return ContentKind.TEXT
        if isinstance(content, (bytes, bytearray)):
            return ContentKind.RAW
        if _is_stream(content):
            return ContentKind.STREAM
        if _is_json_type(content_type) and content is not None:
            return ContentKind.TYPED
        raise UnsupportedEntityError(
            f"unsupported combination of content {type(content).__name__} and type {content_type!r}"
        )

    @classmethod
    def raw(cls, content: bytes = b"", content_type: str | None = None) -> "Entity":
        return cls(content_type, bytes(content))

    @classmethod
    def stream(cls, handle: Any, content_type: str | None = None) -> "Entity":
        if not _is_stream(handle):
            raise UnsupportedEntityError("stream content must be readable or writable")
        return cls(content_type, handle)

    def __repr__(self) -> str:
        return f"Entity(content_type={self.content_type!r}, kind={self.kind.name})"


def json_entity(content: Any) -> Entity:
    """
    JSON entity.

    Pass a value (dict, list, pydantic model, dataclass...) to send it, or a
    type (``MyModel``, ``dict``, ``list[str]``...) to have a response decoded
    into it. After the exchange the decoded value replaces ``entity.content``.
    """
    return Entity(MimeType.JSON, content)


def text_entity(content: str) -> Entity:
    """Plain-text entity. Use ``text_entity("")`` as a placeholder to receive text."""
    return Entity(MimeType.TEXT, content)


def encode_body(entity: Entity | None) -> Any:
    """
    Produce the request body for an entity.

    Returns:
        bytes, a readable file-like object, or None when there is no entity.
    """
    if entity is None:
        return None
    if entity.kind is ContentKind.TEXT:
        return entity.content.encode("utf-8")
    if entity.kind is ContentKind.RAW:
        return bytes(entity.content)
    if entity.kind is ContentKind.STREAM:
        if not callable(getattr(entity.content, "read", None)):
            raise UnsupportedEntityError("request stream content must be readable")
        return entity.content

    value = entity.content
    try:
        if isinstance(value, BaseModel):
            return value.model_dump_json(by_alias=True).encode("utf-8")
        return to_json(value)
    except (PydanticSerializationError, TypeError, ValueError) as e:
        raise UnsupportedEntityError(f"failed to encode body: {e}") from e


async def decode_into(entity: Entity, response: UnifiedResponse) -> None:
    """
    Drain the response body into the entity according to its kind.

    The caller remains responsible for closing the response.
    """
    if entity.kind is ContentKind.TEXT:
        body = await response.aread()
        try:
            entity.content = body.decode(response.charset or "utf-8", errors="replace")
        except LookupError:
            # unknown charset label
            entity.content = body.decode("utf-8", errors="replace")
    elif entity.kind is ContentKind.RAW:
        entity.content = await response.aread()
    elif entity.kind is ContentKind.STREAM:
        write = getattr(entity.content, "write", None)
        if not callable(write):
            raise UnsupportedEntityError("response stream content must be writable")
        async for chunk in response.aiter_bytes():
            write(chunk)
    else:
        if not _is_decode_target(entity.content):
            raise UnsupportedEntityError(
                f"unsupported decode target {entity.content!r}: expected a type"
            )
        try:
            adapter = TypeAdapter(entity.content)
        except (TypeError, PydanticSchemaGenerationError) as e:
            raise UnsupportedEntityError(
                f"unsupported decode target {entity.content!r}: {e}"
            ) from e
        body = await response.aread()
        try:
            entity.content = adapter.validate_json(body)
        except ValidationError as e:
            raise DecodeError(f"failed to decode response: {e}", details=e.errors()) from e
