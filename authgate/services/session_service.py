"""Session issuance: access tokens and refresh tokens"""

from datetime import datetime, timedelta, timezone
import hashlib
import secrets
import structlog

from authgate.config import settings
from authgate.database.models import Account, Session, UserData
from authgate.database.store import AccountStore
from authgate.exceptions import UnauthorizedError
from authgate.monitoring import metrics
from authgate.security.jwt import create_access_token, jwt_expires_in

logger = structlog.get_logger()


def generate_refresh_token() -> str:
    """Generate an opaque refresh token"""
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    """Hash a token for storage"""
    return hashlib.sha256(token.encode()).hexdigest()


class SessionService:
    """
    Issues and rotates sessions.

    A session is a short-lived JWT plus an opaque refresh token. Only the
    SHA-256 of the refresh token is stored.
    """

    def __init__(self, store: AccountStore):
        self.store = store

    async def issue_session(self, account: Account) -> Session:
        """Create a refresh token and a JWT for an account"""
        refresh_token = generate_refresh_token()
        await self.store.insert_refresh_token(
            account.id,
            hash_token(refresh_token),
            datetime.now(timezone.utc) + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        )
        metrics.refresh_tokens.labels(operation="issue", status="success").inc()

        return Session(
            jwt_token=create_access_token(account),
            jwt_expires_in=jwt_expires_in(),
            refresh_token=refresh_token,
            user=UserData.from_account(account),
        )

    async def refresh_session(self, refresh_token: str) -> Session:
        """
        Exchange a refresh token for a new session.

        The presented token is deleted before a new one is issued; when the
        delete affects no row the token was already rotated by another request.
        """
        token_hash = hash_token(refresh_token)
        account = await self.store.get_account_by_refresh_token(token_hash)
        if not account or not account.active:
            metrics.refresh_tokens.labels(operation="rotate", status="invalid").inc()
            raise UnauthorizedError("Invalid or expired refresh token")

        if await self.store.delete_refresh_token(token_hash) != 1:
            metrics.refresh_tokens.labels(operation="rotate", status="reused").inc()
            logger.warning("refresh_token_reused", account_id=account.id)
            raise UnauthorizedError("Invalid or expired refresh token")

        session = await self.issue_session(account)
        metrics.refresh_tokens.labels(operation="rotate", status="success").inc()
        return session

    async def sign_out(self, refresh_token: str) -> bool:
        """Revoke one refresh token"""
        deleted = await self.store.delete_refresh_token(hash_token(refresh_token))
        metrics.refresh_tokens.labels(operation="revoke", status="success" if deleted else "missing").inc()
        return deleted > 0

    async def sign_out_all(self, account_id: str) -> int:
        """Revoke every refresh token of an account"""
        deleted = await self.store.delete_account_refresh_tokens(account_id)
        logger.info("refresh_tokens_revoked", account_id=account_id, count=deleted)
        return deleted
