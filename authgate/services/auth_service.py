"""Authentication service: registration and sign-in flows"""

import hmac
from typing import Optional, List
import structlog

from authgate.config import settings
from authgate.database.models import Account, Session, UserData, MfaChallenge
from authgate.database.store import AccountStore
from authgate.exceptions import (
    BadRequestError,
    ConfigurationError,
    ForbiddenError,
    TicketError,
    UnauthorizedError,
)
from authgate.monitoring import metrics
from authgate.security.password import (
    hash_password,
    is_compromised_password,
    validate_password,
    verify_password,
)
from authgate.security.policy import (
    check_roles,
    get_gravatar_url,
    is_allowed_email,
    resolve_redirect,
)
from authgate.security.tickets import (
    TicketType,
    generate_ticket,
    generate_ticket_expires_at,
    is_ticket_of_type,
)
from authgate.security.two_fa import verify_totp_code
from authgate.services.notification_service import NotificationService
from authgate.services.session_service import SessionService
from authgate.services.ticket_service import TicketService

logger = structlog.get_logger()


async def check_new_password(password: str) -> None:
    """Apply the length and breach rules to a password chosen by a user"""
    try:
        validate_password(password)
    except ValueError as e:
        raise BadRequestError(str(e))
    if await is_compromised_password(password):
        raise BadRequestError("Password is too weak")


def check_locale(locale: Optional[str]) -> str:
    locale = locale or settings.DEFAULT_LOCALE
    if locale not in settings.allowed_locales_list:
        raise BadRequestError("Locale is not allowed")
    return locale


def check_redirect(redirect_to: Optional[str]) -> str:
    resolved = resolve_redirect(redirect_to)
    if resolved is None:
        raise BadRequestError("Redirect URL is not allowed")
    return resolved


class AuthService:
    """
    Registration and sign-in.

    Every flow ends either with a session (JWT + refresh token) or with a
    ticket emailed to the user, whose redemption through /verify issues
    the session later.
    """

    def __init__(self, store: AccountStore, notifications: NotificationService):
        self.store = store
        self.notifications = notifications
        self.tickets = TicketService(store, notifications)
        self.sessions = SessionService(store)

    def check_signup_allowed(self, email: str) -> None:
        if settings.DISABLE_SIGNUP:
            raise ForbiddenError("Sign up is disabled")
        if not is_allowed_email(email):
            raise UnauthorizedError("Email not allowed")

    async def create_account(
        self,
        email: str,
        password_hash: Optional[str],
        active: bool,
        locale: str,
        ticket_type: Optional[TicketType] = None,
        display_name: Optional[str] = None,
        avatar_url: Optional[str] = None,
        default_role: Optional[str] = None,
        allowed_roles: Optional[List[str]] = None,
    ) -> Account:
        """Insert an account with its user profile and an optional first ticket"""
        ticket = generate_ticket(ticket_type) if ticket_type else None
        ticket_expires_at = (
            generate_ticket_expires_at(settings.TICKET_EXPIRE_SECONDS) if ticket_type else None
        )
        return await self.store.insert_account(
            email=email,
            password_hash=password_hash,
            ticket=ticket,
            ticket_expires_at=ticket_expires_at,
            active=active,
            default_role=settings.DEFAULT_USER_ROLE if default_role is None else default_role,
            roles=settings.default_allowed_user_roles_list if allowed_roles is None else allowed_roles,
            locale=locale,
            display_name=display_name or email,
            avatar_url=avatar_url or get_gravatar_url(email),
        )

    async def register(
        self,
        email: str,
        password: Optional[str] = None,
        locale: Optional[str] = None,
        display_name: Optional[str] = None,
        avatar_url: Optional[str] = None,
        default_role: Optional[str] = None,
        allowed_roles: Optional[List[str]] = None,
        redirect_to: Optional[str] = None,
        admin_secret: Optional[str] = None,
    ) -> Session:
        """
        Register a new account.

        Without a password the account is a magic-link account: it is
        created inactive and a sign-in link is emailed. With a password the
        account is either activated right away (session returned) or waits
        for email verification (session without tokens returned).
        """
        magic_link = password is None

        if magic_link and not settings.MAGIC_LINK_ENABLED:
            raise BadRequestError("Magic link registration is disabled")

        if settings.DISABLE_SIGNUP:
            raise ForbiddenError("Sign up is disabled")

        if settings.ADMIN_ONLY_REGISTRATION:
            if not admin_secret or not hmac.compare_digest(
                admin_secret, settings.GRAPHQL_ADMIN_SECRET
            ):
                raise UnauthorizedError(f"Invalid {settings.ADMIN_SECRET_HEADER}")

        self.check_signup_allowed(email)

        if await self.store.get_account_by_email(email):
            raise BadRequestError("Account already exists")

        password_hash = None
        if not magic_link:
            await check_new_password(password)
            password_hash = hash_password(password)

        if default_role is None:
            default_role = settings.DEFAULT_USER_ROLE
        if allowed_roles is None:
            allowed_roles = settings.default_allowed_user_roles_list
        valid, reason = check_roles(default_role, allowed_roles)
        if not valid:
            logger.debug(
                "registration_invalid_roles",
                email=email,
                default_role=default_role,
                allowed_roles=allowed_roles,
                app_allowed_roles=settings.allowed_user_roles_list,
            )
            raise BadRequestError(reason)

        locale = check_locale(locale)
        redirect_to = check_redirect(redirect_to)

        needs_email = magic_link or (
            not settings.AUTO_ACTIVATE_NEW_USERS and settings.VERIFY_EMAILS
        )
        if needs_email and not self.notifications.enabled:
            raise ConfigurationError("Email settings unavailable")

        if magic_link:
            ticket_type = TicketType.SIGNIN_PASSWORDLESS
        elif needs_email:
            ticket_type = TicketType.VERIFY_EMAIL
        else:
            ticket_type = None

        account = await self.create_account(
            email=email,
            password_hash=password_hash,
            active=settings.AUTO_ACTIVATE_NEW_USERS,
            locale=locale,
            ticket_type=ticket_type,
            display_name=display_name,
            avatar_url=avatar_url,
            default_role=default_role,
            allowed_roles=allowed_roles,
        )
        metrics.registrations.labels(method="magic_link" if magic_link else "email_password").inc()
        logger.info(
            "account_registered",
            user_id=account.user_id,
            email=email,
            magic_link=magic_link,
        )

        if needs_email:
            await self.notifications.send_ticket_email(
                recipient=account.email,
                ticket=account.ticket,
                ticket_type=ticket_type,
                redirect_to=redirect_to,
                display_name=account.user.display_name,
                locale=account.locale,
            )
            return Session(user=UserData.from_account(account))

        return await self.sessions.issue_session(account)

    async def sign_in_email_password(self, email: str, password: str) -> Session:
        """
        Sign in with email and password.

        Accounts with MFA enabled get an mfaTotp ticket instead of tokens.
        """
        account = await self.store.get_account_by_email(email)
        if not account or not verify_password(password, account.password_hash):
            metrics.sign_ins.labels(method="email_password", status="invalid_credentials").inc()
            raise UnauthorizedError("Invalid email or password")

        if not account.active:
            metrics.sign_ins.labels(method="email_password", status="inactive").inc()
            raise UnauthorizedError("Account is not activated")

        if account.mfa_enabled:
            ticket = await self.tickets.issue_ticket(
                account, TicketType.MFA_TOTP, expires_in=settings.MFA_TICKET_EXPIRE_SECONDS
            )
            metrics.sign_ins.labels(method="email_password", status="mfa_required").inc()
            return Session(mfa=MfaChallenge(ticket=ticket))

        metrics.sign_ins.labels(method="email_password", status="success").inc()
        logger.info("user_signed_in", user_id=account.user_id, method="email_password")
        return await self.sessions.issue_session(account)

    async def sign_in_magic_link(
        self,
        email: str,
        locale: Optional[str] = None,
        redirect_to: Optional[str] = None,
    ) -> None:
        """
        Email a magic link.

        Unknown emails get a new inactive passwordless account, subject to the
        sign-up rules. The caller sees the same outcome either way.
        """
        if not settings.MAGIC_LINK_ENABLED:
            raise BadRequestError("Magic link sign in is disabled")
        if not self.notifications.enabled:
            raise ConfigurationError("Email settings unavailable")

        redirect_to = check_redirect(redirect_to)
        account = await self.store.get_account_by_email(email)

        if account:
            await self.tickets.send_ticket(account, TicketType.SIGNIN_PASSWORDLESS, redirect_to)
        else:
            self.check_signup_allowed(email)
            account = await self.create_account(
                email=email,
                password_hash=None,
                active=False,
                locale=check_locale(locale),
                ticket_type=TicketType.SIGNIN_PASSWORDLESS,
            )
            metrics.registrations.labels(method="magic_link").inc()
            await self.notifications.send_ticket_email(
                recipient=account.email,
                ticket=account.ticket,
                ticket_type=TicketType.SIGNIN_PASSWORDLESS,
                redirect_to=redirect_to,
                display_name=account.user.display_name,
                locale=account.locale,
            )

        metrics.sign_ins.labels(method="magic_link", status="link_sent").inc()

    async def sign_in_mfa_totp(self, ticket: str, code: str) -> Session:
        """Finish an MFA sign-in with the mfaTotp ticket and a TOTP code"""
        account = None
        if is_ticket_of_type(ticket, TicketType.MFA_TOTP):
            account = await self.store.get_account_by_ticket(ticket)

        if not account or not account.mfa_enabled:
            metrics.sign_ins.labels(method="mfa_totp", status="invalid_ticket").inc()
            raise UnauthorizedError("Invalid or expired MFA ticket")

        if not verify_totp_code(account.otp_secret, code):
            metrics.sign_ins.labels(method="mfa_totp", status="invalid_code").inc()
            raise UnauthorizedError("Invalid MFA code")

        try:
            account = await self.tickets.redeem_ticket(ticket, TicketType.MFA_TOTP)
        except TicketError:
            raise UnauthorizedError("Invalid or expired MFA ticket")

        metrics.sign_ins.labels(method="mfa_totp", status="success").inc()
        logger.info("user_signed_in", user_id=account.user_id, method="mfa_totp")
        return await self.sessions.issue_session(account)

