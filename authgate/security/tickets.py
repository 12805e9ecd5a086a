"""
Verification tickets.

A ticket is ``"<type>:<uuid4>"``. It lives in the account's single ``ticket``
column next to ``ticket_expires_at``; the prefix records which flow issued it
so a password-reset ticket can never be redeemed as an email verification.
"""

import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional


class TicketType(str, Enum):
    VERIFY_EMAIL = "emailVerify"
    CONFIRM_EMAIL_CHANGE = "emailConfirmChange"
    SIGNIN_PASSWORDLESS = "signinPasswordless"
    PASSWORD_RESET = "passwordReset"
    MFA_TOTP = "mfaTotp"


# Ticket types that may be redeemed through an emailed link
LINK_TICKET_TYPES = (
    TicketType.VERIFY_EMAIL,
    TicketType.CONFIRM_EMAIL_CHANGE,
    TicketType.SIGNIN_PASSWORDLESS,
    TicketType.PASSWORD_RESET,
)


def generate_ticket(ticket_type: TicketType) -> str:
    return f"{ticket_type.value}:{uuid.uuid4()}"


def generate_ticket_expires_at(seconds: int) -> datetime:
    return datetime.now(timezone.utc) + timedelta(seconds=seconds)


def get_ticket_type(ticket: str) -> Optional[TicketType]:
    """Return the type encoded in a ticket, or None if the ticket is malformed"""
    prefix, separator, token = ticket.partition(":")
    if not separator or not token:
        return None
    try:
        uuid.UUID(token)
    except ValueError:
        return None
    try:
        return TicketType(prefix)
    except ValueError:
        return None


def is_ticket_of_type(ticket: str, ticket_type: TicketType) -> bool:
    return get_ticket_type(ticket) == ticket_type
