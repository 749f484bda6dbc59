from __future__ import annotations

from uuid import uuid4

import pytest

from twinreflector.domain.errors import IngressValidationError
from twinreflector.domain.ingress import parse_message, read_correlation_id, read_message_type
from twinreflector.domain.model import ErrorCode, MessageType


def test_read_correlation_id_accepts_uuid_header() -> None:
    correlation_id = uuid4()

    assert read_correlation_id({"correlationId": f" {correlation_id} "}) == correlation_id


@pytest.mark.parametrize("headers", [{}, {"correlationId": "not-a-uuid"}, {"correlationId": ""}])
def test_read_correlation_id_rejects_missing_or_invalid(headers: dict[str, str]) -> None:
    assert read_correlation_id(headers) is None


def test_read_message_type_is_case_insensitive() -> None:
    assert read_message_type({"messageType": "sensor_create"}) is MessageType.SENSOR_CREATE


@pytest.mark.parametrize("headers", [{}, {"messageType": "DEVICE_REBOOT"}, {"messageType": " "}])
def test_read_message_type_rejects_unknown(headers: dict[str, str]) -> None:
    with pytest.raises(IngressValidationError) as excinfo:
        read_message_type(headers)

    assert excinfo.value.code is ErrorCode.UNSUPPORTED_MESSAGE_TYPE


def test_parse_message_reads_wire_names() -> None:
    message = parse_message(
        b'{"hardwareId": "dev-1", "gatewayId": "gw-1", "attributes": {"type": "Thermostat"}}'
    )

    assert message.hardware_id == "dev-1"
    assert message.gateway_id == "gw-1"
    assert message.attribute("type") == "Thermostat"


@pytest.mark.parametrize(
    "body",
    [b"{not json", b'{"hardwareId": 12}', b'{"unexpected": true}', b'{"spaceId": "x"}'],
)
def test_parse_message_rejects_malformed_payloads(body: bytes) -> None:
    with pytest.raises(IngressValidationError) as excinfo:
        parse_message(body)

    assert excinfo.value.code is ErrorCode.MALFORMED_PAYLOAD


def test_parse_message_accepts_scalar_attribute_values() -> None:
    message = parse_message(
        b'{"attributes": {"type": 5, "ratio": 0.5, "enabled": true, "name": "  "}}'
    )

    assert message.attribute("type") == "5"
    assert message.attribute("ratio") == "0.5"
    assert message.attribute("enabled") == "true"
    assert message.attribute("name") is None
    assert message.attribute("missing") is None
