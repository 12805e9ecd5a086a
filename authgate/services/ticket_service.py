"""Ticket lifecycle: issue, email and redeem verification tickets"""

from typing import Optional, Dict, Any
import structlog

from authgate.config import settings
from authgate.database.models import Account
from authgate.database.store import AccountStore
from authgate.exceptions import BadRequestError, TicketError
from authgate.monitoring import metrics
from authgate.security.tickets import (
    TicketType,
    generate_ticket,
    generate_ticket_expires_at,
    get_ticket_type,
)
from authgate.services.notification_service import NotificationService

logger = structlog.get_logger()


class TicketService:
    """
    Issues and redeems the single ticket stored on an account.

    Issuing a ticket overwrites whatever ticket the account held before.
    Redeeming is a conditional mutation in the store, so a ticket can only
    be redeemed once even when two requests race.
    """

    def __init__(self, store: AccountStore, notifications: NotificationService):
        self.store = store
        self.notifications = notifications

    async def issue_ticket(
        self,
        account: Account,
        ticket_type: TicketType,
        expires_in: Optional[int] = None,
        changes: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Store a fresh ticket on an account.

        Args:
            account: Account receiving the ticket
            ticket_type: Flow the ticket belongs to
            expires_in: Lifetime in seconds, defaults to TICKET_EXPIRE_SECONDS
            changes: Extra columns written in the same mutation (e.g. new_email)

        Returns:
            The ticket
        """
        ticket = generate_ticket(ticket_type)
        expires_at = generate_ticket_expires_at(expires_in or settings.TICKET_EXPIRE_SECONDS)
        await self.store.update_account(
            account.id,
            {"ticket": ticket, "ticket_expires_at": expires_at, **(changes or {})},
        )
        metrics.tickets.labels(ticket_type=ticket_type.value, outcome="issued").inc()
        logger.debug("ticket_issued", account_id=account.id, ticket_type=ticket_type.value)
        return ticket

    async def send_ticket(
        self,
        account: Account,
        ticket_type: TicketType,
        redirect_to: str,
        recipient: Optional[str] = None,
        changes: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Issue a ticket and email its verification link"""
        ticket = await self.issue_ticket(account, ticket_type, changes=changes)
        await self.notifications.send_ticket_email(
            recipient=recipient or account.email,
            ticket=ticket,
            ticket_type=ticket_type,
            redirect_to=redirect_to,
            display_name=account.user.display_name,
            locale=account.locale,
        )
        return ticket

    async def redeem_ticket(self, ticket: str, ticket_type: TicketType) -> Account:
        """
        Validate and consume a ticket.

        The ticket prefix must match ``ticket_type`` and the ticket must be
        live. Consumption applies the side effect of the flow:

        * emailVerify, signinPasswordless: the account becomes active
        * emailConfirmChange: new_email replaces email
        * passwordReset, mfaTotp: nothing besides clearing the ticket

        Returns:
            The account after consumption

        Raises:
            TicketError: Wrong type, unknown, expired or already consumed ticket
            BadRequestError: The new email was taken since the change was requested
        """
        if get_ticket_type(ticket) != ticket_type:
            metrics.tickets.labels(ticket_type=ticket_type.value, outcome="type_mismatch").inc()
            raise TicketError("Invalid ticket type")

        account = await self.store.get_account_by_ticket(ticket)
        if not account:
            metrics.tickets.labels(ticket_type=ticket_type.value, outcome="invalid").inc()
            raise TicketError("Invalid or expired ticket")

        changes: Dict[str, Any] = {}
        if ticket_type in (TicketType.VERIFY_EMAIL, TicketType.SIGNIN_PASSWORDLESS):
            changes["active"] = True
        elif ticket_type == TicketType.CONFIRM_EMAIL_CHANGE:
            if not account.new_email:
                raise TicketError("Invalid or expired ticket")
            owner = await self.store.get_account_by_email(account.new_email)
            if owner and owner.id != account.id:
                metrics.tickets.labels(ticket_type=ticket_type.value, outcome="conflict").inc()
                raise BadRequestError("Email already in use")
            changes["email"] = account.new_email
            changes["new_email"] = None

        consumed = await self.store.consume_ticket(ticket, changes)
        if not consumed:
            metrics.tickets.labels(ticket_type=ticket_type.value, outcome="invalid").inc()
            raise TicketError("Invalid or expired ticket")

        metrics.tickets.labels(ticket_type=ticket_type.value, outcome="consumed").inc()
        logger.info(
            "ticket_consumed",
            account_id=consumed.id,
            user_id=consumed.user_id,
            ticket_type=ticket_type.value,
        )
        return consumed
