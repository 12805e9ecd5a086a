"""OAuth sign-in: provider redirect and callback handling"""

import secrets
from typing import Tuple
import structlog

from authgate.database.models import Account, Session
from authgate.database.store import AccountStore
from authgate.exceptions import NotFoundError, ProviderNotEnabledError, UnauthorizedError
from authgate.monitoring import metrics
from authgate.security.encryption import encrypt_data
from authgate.services.auth_service import AuthService, check_locale
from authgate.services.notification_service import NotificationService
from authgate.services.oauth import (
    OAuthProviderInterface,
    OAuthTokens,
    OAuthUserInfo,
    build_provider,
)

logger = structlog.get_logger()


def generate_state() -> str:
    """Generate the CSRF state sent to the provider"""
    return secrets.token_urlsafe(32)


class OAuthService:
    """
    Provider sign-in.

    The callback resolves the provider identity to an account in this order:
    an account already linked to it, an account with the same email (which
    gets linked), or a new account created under the sign-up rules.
    """

    def __init__(self, store: AccountStore, notifications: NotificationService):
        self.store = store
        self.auth = AuthService(store, notifications)

    def get_provider(self, provider_name: str) -> OAuthProviderInterface:
        try:
            provider = build_provider(provider_name)
        except ValueError:
            raise NotFoundError(f"Unknown provider: {provider_name}")
        if provider is None:
            raise ProviderNotEnabledError("The provider is not enabled")
        return provider

    def initiate(self, provider_name: str) -> Tuple[str, str]:
        """
        Start the authorization code flow.

        Returns:
            Tuple of (authorization_url, state)
        """
        provider = self.get_provider(provider_name)
        state = generate_state()
        logger.info("oauth_initiated", provider=provider_name)
        return provider.get_authorization_url(state), state

    async def complete(self, provider_name: str, code: str) -> Session:
        """
        Exchange the authorization code and sign the user in.

        Raises:
            OAuthError: The provider rejected the code or the profile fetch failed
            UnauthorizedError: No usable email, disallowed email, inactive account
        """
        provider = self.get_provider(provider_name)
        tokens = await provider.exchange_code_for_tokens(code)
        user_info = await provider.get_user_info(tokens.access_token)

        account = await self.resolve_account(provider_name, user_info, tokens)

        metrics.sign_ins.labels(method=f"oauth_{provider_name}", status="success").inc()
        logger.info(
            "user_signed_in",
            user_id=account.user_id,
            method="oauth",
            provider=provider_name,
        )
        return await self.auth.sessions.issue_session(account)

    async def resolve_account(
        self, provider_name: str, user_info: OAuthUserInfo, tokens: OAuthTokens
    ) -> Account:
        access_token = encrypt_data(tokens.access_token)
        refresh_token = encrypt_data(tokens.refresh_token)

        account = await self.store.get_account_by_provider(
            provider_name, user_info.provider_user_id
        )
        if account:
            await self.store.update_account_provider_tokens(
                provider_name, user_info.provider_user_id, access_token, refresh_token
            )
            return await self._ensure_active(account, user_info)

        if not user_info.email:
            metrics.sign_ins.labels(method=f"oauth_{provider_name}", status="no_email").inc()
            raise UnauthorizedError("Provider did not return an email address")

        account = await self.store.get_account_by_email(user_info.email)
        if account:
            # Only a provider-verified email may be linked to an existing account
            if not user_info.email_verified:
                metrics.sign_ins.labels(method=f"oauth_{provider_name}", status="unverified_email").inc()
                logger.warning(
                    "oauth_link_refused",
                    account_id=account.id,
                    provider=provider_name,
                    reason="unverified_email",
                )
                raise UnauthorizedError("Provider email is not verified")
            account = await self._ensure_active(account, user_info)
            logger.info(
                "oauth_provider_linked",
                account_id=account.id,
                provider=provider_name,
            )
        else:
            account = await self._create_account(provider_name, user_info)

        await self.store.insert_account_provider(
            account.id,
            provider_name,
            user_info.provider_user_id,
            access_token,
            refresh_token,
        )
        return account

    async def _ensure_active(self, account: Account, user_info: OAuthUserInfo) -> Account:
        """A provider-verified email activates a pending account"""
        if account.active:
            return account
        if not user_info.email_verified:
            raise UnauthorizedError("Account is not activated")
        return await self.store.update_account(account.id, {"active": True}) or account

    async def _create_account(self, provider_name: str, user_info: OAuthUserInfo) -> Account:
        self.auth.check_signup_allowed(user_info.email)
        account = await self.auth.create_account(
            email=user_info.email,
            password_hash=None,
            active=True,
            locale=check_locale(None),
            display_name=user_info.name,
            avatar_url=user_info.avatar_url,
        )
        metrics.registrations.labels(method=f"oauth_{provider_name}").inc()
        logger.info(
            "account_registered",
            user_id=account.user_id,
            email=account.email,
            provider=provider_name,
        )
        return account

