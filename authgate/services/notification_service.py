"""Notification service for sending ticket emails"""

import asyncio
import html
import re
from typing import Optional, Dict, Any, Tuple
from urllib.parse import urlencode
import structlog

from authgate.config import settings
from authgate.exceptions import EmailDeliveryError
from authgate.monitoring import metrics
from authgate.security.tickets import TicketType
from authgate.services.postmark_email_service import PostmarkEmailService
from authgate.services.smtp_email_service import SmtpEmailService
from authgate.templates import (
    EMAIL_TEMPLATES,
    EMAIL_VERIFY,
    EMAIL_CONFIRM_CHANGE,
    SIGNIN_PASSWORDLESS,
    PASSWORD_RESET,
)

logger = structlog.get_logger()

TEMPLATE_FOR_TICKET = {
    TicketType.VERIFY_EMAIL: EMAIL_VERIFY,
    TicketType.CONFIRM_EMAIL_CHANGE: EMAIL_CONFIRM_CHANGE,
    TicketType.SIGNIN_PASSWORDLESS: SIGNIN_PASSWORDLESS,
    TicketType.PASSWORD_RESET: PASSWORD_RESET,
}


class TemplateNotFoundError(Exception):
    """Raised when a template cannot be found."""
    pass


def render_template(
    name: str,
    locale: Optional[str],
    variables: Dict[str, Any],
) -> Tuple[str, str, str]:
    """
    Render a template with ``{{variable}}`` substitution.

    Falls back to DEFAULT_LOCALE when the locale has no such template.
    Values are HTML-escaped in the html body only.

    Returns:
        Tuple of (subject, text body, html body)
    """
    template = EMAIL_TEMPLATES.get(locale or "", {}).get(name)
    if template is None:
        template = EMAIL_TEMPLATES.get(settings.DEFAULT_LOCALE, {}).get(name)
    if template is None:
        raise TemplateNotFoundError(f"Template '{name}' not found for locale '{locale}'")

    def substitute(content: str, escape: bool = False) -> str:
        def replacer(match):
            value = str(variables.get(match.group(1), ""))
            return html.escape(value) if escape else value

        return re.sub(r'\{\{(\w+)\}\}', replacer, content)

    return (
        substitute(template["subject"]),
        substitute(template["text"]),
        substitute(template["html"], escape=True),
    )


def build_verify_link(ticket: str, ticket_type: TicketType, redirect_to: str) -> str:
    query = urlencode({
        "ticket": ticket,
        "type": ticket_type.value,
        "redirect_to": redirect_to,
    })
    return f"{settings.SERVER_URL.rstrip('/')}/verify?{query}"


class NotificationService:
    """
    Sends the emails that carry verification tickets.

    Delivery errors are not swallowed: a request that needed an email fails
    when the email could not be sent.
    """

    def __init__(self):
        self.smtp = SmtpEmailService()
        self.postmark = PostmarkEmailService()

    @property
    def enabled(self) -> bool:
        return settings.emails_enabled

    async def send_email(
        self,
        recipient: str,
        subject: str,
        body: str,
        html_body: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        """Hand a rendered message to the configured transport"""
        if settings.EMAIL_BACKEND == "postmark":
            await self.postmark.send_email(
                recipient, subject, body, html_body,
                from_name=settings.EMAIL_FROM_NAME, headers=headers,
            )
        elif settings.EMAIL_BACKEND == "smtp":
            await asyncio.to_thread(
                self.smtp.send_email,
                recipient, subject, body, html_body,
                None, settings.EMAIL_FROM_NAME, headers,
            )
        else:
            raise EmailDeliveryError("Email settings unavailable")

    async def send_ticket_email(
        self,
        recipient: str,
        ticket: str,
        ticket_type: TicketType,
        redirect_to: str,
        display_name: Optional[str] = None,
        locale: Optional[str] = None,
    ) -> None:
        """
        Render and send the email for a ticket.

        Args:
            recipient: Address the link is sent to
            ticket: The ticket stored on the account
            ticket_type: Flow that issued the ticket, selects the template
            redirect_to: Where /verify sends the browser afterwards
            display_name: Greeting name, defaults to the recipient address
            locale: Template locale
        """
        template_name = TEMPLATE_FOR_TICKET[ticket_type]
        locale = locale or settings.DEFAULT_LOCALE
        variables = {
            "link": build_verify_link(ticket, ticket_type, redirect_to),
            "display_name": display_name or recipient,
            "ticket": ticket,
            "redirect_to": redirect_to,
            "locale": locale,
            "server_url": settings.SERVER_URL,
            "client_url": settings.CLIENT_URL,
        }
        subject, text, html = render_template(template_name, locale, variables)
        headers = {
            "x-ticket": ticket,
            "x-redirect-to": redirect_to,
            "x-email-template": template_name,
        }

        try:
            await self.send_email(recipient, subject, text, html, headers=headers)
        except EmailDeliveryError:
            metrics.emails.labels(template=template_name, status="failed").inc()
            raise

        metrics.emails.labels(template=template_name, status="sent").inc()
        logger.info(
            "ticket_email_sent",
            recipient=recipient,
            template=template_name,
            ticket_type=ticket_type.value,
        )


notification_service = NotificationService()


def get_notification_service() -> NotificationService:
    """FastAPI dependency returning the shared notification service"""
    return notification_service
