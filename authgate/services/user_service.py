"""User service: account operations for signed-in users and recovery flows"""

from typing import Optional, Dict, Any
import structlog

from authgate.config import settings
from authgate.database.models import Account
from authgate.database.store import AccountStore
from authgate.exceptions import (
    AuthServiceError,
    BadRequestError,
    ForbiddenError,
    UnauthorizedError,
)
from authgate.security.password import hash_password
from authgate.security.policy import is_allowed_email
from authgate.security.tickets import TicketType
from authgate.security.two_fa import (
    generate_qr_code,
    generate_totp_secret,
    get_totp_uri,
    verify_totp_code,
)
from authgate.services.auth_service import check_new_password, check_redirect
from authgate.services.notification_service import NotificationService
from authgate.services.session_service import SessionService
from authgate.services.ticket_service import TicketService

logger = structlog.get_logger()


class UserService:
    """User management service"""

    def __init__(self, store: AccountStore, notifications: NotificationService):
        self.store = store
        self.notifications = notifications
        self.tickets = TicketService(store, notifications)
        self.sessions = SessionService(store)

    async def get_account(self, user_id: str) -> Account:
        """Get the account of a signed-in user"""
        account = await self.store.get_account_by_user_id(user_id)
        if not account:
            raise UnauthorizedError("User not found")
        return account

    async def request_email_change(
        self,
        user_id: str,
        new_email: str,
        redirect_to: Optional[str] = None,
    ) -> None:
        """
        Start an email change.

        The new address is parked in ``new_email`` and only replaces the
        current one once the emailConfirmChange link sent to it is followed.
        """
        new_email = new_email.lower()
        redirect_to = check_redirect(redirect_to)

        if not is_allowed_email(new_email):
            raise UnauthorizedError("Email not allowed")
        if await self.store.get_account_by_email(new_email):
            raise BadRequestError("Email already in use")

        account = await self.store.get_account_by_user_id(user_id)
        if not account:
            raise AuthServiceError("Unable to get user", status_code=500)

        await self.tickets.send_ticket(
            account,
            TicketType.CONFIRM_EMAIL_CHANGE,
            redirect_to,
            recipient=new_email,
            changes={"new_email": new_email},
        )
        logger.info("email_change_requested", user_id=user_id)

    async def send_verification_email(self, email: str, redirect_to: Optional[str] = None) -> None:
        """Re-send the emailVerify link. Silent when there is nothing to verify."""
        redirect_to = check_redirect(redirect_to)
        account = await self.store.get_account_by_email(email)
        if not account or account.active:
            return
        await self.tickets.send_ticket(account, TicketType.VERIFY_EMAIL, redirect_to)

    async def request_password_reset(self, email: str, redirect_to: Optional[str] = None) -> None:
        """Email a passwordReset link. Silent when the account does not exist."""
        redirect_to = check_redirect(redirect_to)
        account = await self.store.get_account_by_email(email)
        if not account or not account.active:
            logger.debug("password_reset_skipped", reason="no_active_account")
            return
        await self.tickets.send_ticket(account, TicketType.PASSWORD_RESET, redirect_to)
        logger.info("password_reset_requested", user_id=account.user_id)

    async def change_password(self, user_id: str, new_password: str) -> int:
        """
        Set a new password and revoke every refresh token of the account.

        Returns:
            Number of revoked refresh tokens
        """
        account = await self.get_account(user_id)
        await check_new_password(new_password)
        await self.store.update_account(account.id, {"password_hash": hash_password(new_password)})
        revoked = await self.sessions.sign_out_all(account.id)
        logger.info("password_changed", user_id=user_id, sessions_revoked=revoked)
        return revoked

    async def generate_totp(self, user_id: str) -> Dict[str, Any]:
        """Create a TOTP secret for the account; MFA stays off until activated"""
        if not settings.MFA_ENABLED:
            raise ForbiddenError("MFA is disabled")
        account = await self.get_account(user_id)
        if account.mfa_enabled:
            raise BadRequestError("MFA is already enabled")

        secret = generate_totp_secret()
        await self.store.update_account(account.id, {"otp_secret": secret})
        uri = get_totp_uri(secret, account.email, settings.MFA_TOTP_ISSUER)
        return {
            "totp_secret": secret,
            "image_url": generate_qr_code(uri),
        }

    async def set_mfa(self, user_id: str, code: str, active_mfa_type: Optional[str]) -> bool:
        """
        Enable (``"totp"``) or disable (``None``) MFA. Both require a valid code.

        Returns:
            The new mfa_enabled state
        """
        if not settings.MFA_ENABLED:
            raise ForbiddenError("MFA is disabled")
        if active_mfa_type not in (None, "totp"):
            raise BadRequestError("Unsupported MFA type")

        account = await self.get_account(user_id)
        if not account.otp_secret:
            raise BadRequestError("TOTP secret has not been generated")
        if not verify_totp_code(account.otp_secret, code):
            raise BadRequestError("Invalid MFA code")

        enable = active_mfa_type == "totp"
        changes: Dict[str, Any] = {"mfa_enabled": enable}
        if not enable:
            changes["otp_secret"] = None
        await self.store.update_account(account.id, changes)
        logger.info("mfa_updated", user_id=user_id, mfa_enabled=enable)
        return enable
