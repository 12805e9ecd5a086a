"""Postmark email service for production email delivery."""

from typing import Optional, Dict
import httpx
import structlog
from authgate.config import settings
from authgate.exceptions import EmailDeliveryError

logger = structlog.get_logger()


class PostmarkEmailService:
    """Email service using Postmark API for production email delivery."""

    def __init__(self):
        self.api_key = settings.POSTMARK_API_KEY
        self.base_url = "https://api.postmarkapp.com"

    @property
    def enabled(self) -> bool:
        """Check if Postmark is configured."""
        return bool(self.api_key)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        body: str,
        html_body: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> str:
        """
        Send an email via Postmark API.

        Returns:
            Postmark message id

        Raises:
            EmailDeliveryError: If Postmark is not configured or rejects the message
        """
        if not self.enabled:
            raise EmailDeliveryError("POSTMARK_API_KEY is not set")

        from_email = from_email or settings.EMAIL_FROM
        from_field = f"{from_name} <{from_email}>" if from_name else from_email

        payload = {
            "From": from_field,
            "To": to_email,
            "Subject": subject,
            "TextBody": body,
            "MessageStream": "outbound",
        }
        if html_body:
            payload["HtmlBody"] = html_body
        if headers:
            payload["Headers"] = [{"Name": name, "Value": value} for name, value in headers.items()]

        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.post(
                    f"{self.base_url}/email",
                    headers={
                        "X-Postmark-Server-Token": self.api_key,
                        "Content-Type": "application/json",
                        "Accept": "application/json",
                    },
                    json=payload,
                )
        except httpx.RequestError as e:
            logger.error("postmark_request_failed", error=str(e))
            raise EmailDeliveryError(f"Postmark request failed: {e}") from e

        if response.status_code != 200:
            logger.error(
                "postmark_email_failed",
                status_code=response.status_code,
                response=response.text[:500],
            )
            raise EmailDeliveryError(f"Postmark returned HTTP {response.status_code}")

        message_id = response.json().get("MessageID", "")
        logger.info("postmark_email_sent", message_id=message_id, subject=subject)
        return message_id
