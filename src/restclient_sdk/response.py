"""
Response classification.

A response below `FAILURE_STATUS_THRESHOLD` is a success and, when the caller
supplied a response entity, its body is decoded into it. Anything at or above
the threshold becomes a `FailedResponseError` carrying the full body.

The response is always closed before returning, whichever path is taken. A
failure to close is reported only if nothing else already went wrong.
"""

import logging

from restclient_sdk.entity import Entity
from restclient_sdk.entity import decode_into
from restclient_sdk.exceptions import FailedResponseError
from restclient_sdk.exceptions import TransportError
from restclient_sdk.transport.base import UnifiedResponse

logger = logging.getLogger("restclient_sdk.response")

FAILURE_STATUS_THRESHOLD = 300


def is_failure(status_code: int) -> bool:
    return status_code >= FAILURE_STATUS_THRESHOLD


async def build_failed_response_error(response: UnifiedResponse) -> FailedResponseError:
    try:
        body = await response.aread()
    except TransportError as e:
        logger.debug(f"Could not capture body of failed response: {e}")
        body = b""
    return FailedResponseError(
        status_code=response.status_code,
        status_line=response.status_line,
        entity=Entity.raw(body, content_type=response.content_type),
    )


async def process_response(
    response: UnifiedResponse, response_entity: Entity | None = None
) -> None:
    """
    Classify the response and decode it into `response_entity`.

    Raises:
        FailedResponseError: Status code at or above 300.
        DecodeError: The body could not be decoded into the entity's target.
        UnsupportedEntityError: The entity cannot receive a response body.
        TransportError: Reading or closing the body failed.
    """
    try:
        if is_failure(response.status_code):
            raise await build_failed_response_error(response)
        if response_entity is not None:
            await decode_into(response_entity, response)
    except BaseException:
        try:
            await response.aclose()
        except Exception as close_error:
            logger.debug(f"Failed to close response body after error: {close_error}")
        raise

    try:
        await response.aclose()
    except Exception as e:
        raise TransportError(f"failed to close response body: {e}") from e
