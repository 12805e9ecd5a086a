"""Unit tests for verification tickets"""

import uuid
import pytest
from datetime import datetime, timezone
from authgate.security.tickets import (
    TicketType,
    generate_ticket,
    generate_ticket_expires_at,
    get_ticket_type,
    is_ticket_of_type,
)


@pytest.mark.unit
@pytest.mark.parametrize("ticket_type", list(TicketType))
def test_generate_ticket_carries_type_prefix(ticket_type):
    ticket = generate_ticket(ticket_type)
    prefix, token = ticket.split(":", 1)

    assert prefix == ticket_type.value
    assert uuid.UUID(token).version == 4
    assert get_ticket_type(ticket) == ticket_type


@pytest.mark.unit
def test_tickets_are_unique():
    assert generate_ticket(TicketType.VERIFY_EMAIL) != generate_ticket(TicketType.VERIFY_EMAIL)


@pytest.mark.unit
@pytest.mark.parametrize("ticket", [
    "",
    "emailVerify",
    "emailVerify:",
    "emailVerify:not-a-uuid",
    f"unknownType:{uuid.uuid4()}",
    str(uuid.uuid4()),
])
def test_get_ticket_type_rejects_malformed_tickets(ticket):
    assert get_ticket_type(ticket) is None


@pytest.mark.unit
def test_is_ticket_of_type_requires_matching_prefix():
    ticket = generate_ticket(TicketType.PASSWORD_RESET)

    assert is_ticket_of_type(ticket, TicketType.PASSWORD_RESET)
    assert not is_ticket_of_type(ticket, TicketType.VERIFY_EMAIL)


@pytest.mark.unit
def test_generate_ticket_expires_at_is_in_the_future():
    before = datetime.now(timezone.utc)
    expires_at = generate_ticket_expires_at(3600)

    assert expires_at.tzinfo is not None
    assert 3599 <= (expires_at - before).total_seconds() <= 3601
