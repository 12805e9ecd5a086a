"""Email delivery over SMTP"""

import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional, Dict
import structlog
from authgate.config import settings
from authgate.exceptions import EmailDeliveryError

logger = structlog.get_logger()


class SmtpEmailService:
    """Send emails through an SMTP relay"""

    def __init__(self):
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.user = settings.SMTP_USER
        self.password = settings.SMTP_PASSWORD
        self.secure = settings.SMTP_SECURE

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    def send_email(
        self,
        to_email: str,
        subject: str,
        body: str,
        html_body: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        """
        Send an email via SMTP.

        Raises:
            EmailDeliveryError: If SMTP is not configured or the relay rejects the message
        """
        if not self.enabled:
            raise EmailDeliveryError("SMTP_HOST is not set")

        from_email = from_email or settings.EMAIL_FROM

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{from_name} <{from_email}>" if from_name else from_email
        msg["To"] = to_email
        for name, value in (headers or {}).items():
            msg[name] = value

        msg.attach(MIMEText(body, "plain"))
        if html_body:
            msg.attach(MIMEText(html_body, "html"))

        try:
            with smtplib.SMTP(self.host, self.port) as server:
                if self.secure:
                    server.starttls()
                if self.user and self.password:
                    server.login(self.user, self.password)
                server.sendmail(from_email, to_email, msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error("smtp_email_failed", error=str(e), smtp_host=self.host)
            raise EmailDeliveryError(f"SMTP delivery failed: {e}") from e

        logger.info("smtp_email_sent", subject=subject, smtp_host=self.host)
