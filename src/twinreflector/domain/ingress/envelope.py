"""Read the headers and body of an inbound delivery."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import ValidationError

from twinreflector.domain.errors import IngressValidationError
from twinreflector.domain.model import ErrorCode, IngressMessage, MessageType
from twinreflector.domain.ports import HEADER_CORRELATION_ID, HEADER_MESSAGE_TYPE

if TYPE_CHECKING:
    from collections.abc import Mapping


def read_correlation_id(headers: Mapping[str, str]) -> UUID | None:
    """Return the correlation id header, or ``None`` when absent or not a UUID."""

    raw = headers.get(HEADER_CORRELATION_ID)
    if raw is None:
        return None
    try:
        return UUID(raw.strip())
    except ValueError:
        return None


def read_message_type(headers: Mapping[str, str]) -> MessageType:
    raw = headers.get(HEADER_MESSAGE_TYPE)
    if raw is None or not raw.strip():
        raise IngressValidationError(
            ErrorCode.UNSUPPORTED_MESSAGE_TYPE, f"missing {HEADER_MESSAGE_TYPE} header"
        )
    try:
        return MessageType(raw.strip().upper())
    except ValueError:
        raise IngressValidationError(
            ErrorCode.UNSUPPORTED_MESSAGE_TYPE, f"unsupported message type {raw!r}"
        ) from None


def parse_message(body: bytes | str) -> IngressMessage:
    try:
        return IngressMessage.model_validate_json(body)
    except ValidationError as exc:
        raise IngressValidationError(
            ErrorCode.MALFORMED_PAYLOAD,
            f"payload rejected ({exc.error_count()} error(s)): {exc.errors()[0]['msg']}",
        ) from exc
