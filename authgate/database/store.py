"""Account store backed by the GraphQL data layer"""

from datetime import datetime, timezone
from typing import Optional, List, Dict, Any
import structlog

from authgate.database import queries
from authgate.database.client import GraphQLClient, graphql_client
from authgate.database.models import Account

logger = structlog.get_logger()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _serialize(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _serialize_changes(changes: Dict[str, Any]) -> Dict[str, Any]:
    return {key: _serialize(value) for key, value in changes.items()}


class AccountStore:
    """
    Named queries and mutations over accounts, provider links and refresh tokens.

    Every method is a single GraphQL round trip; there is no caching and no
    client-side transaction.
    """

    def __init__(self, client: GraphQLClient):
        self.client = client

    @staticmethod
    def _first_account(rows: List[Dict[str, Any]]) -> Optional[Account]:
        if not rows:
            return None
        return Account.model_validate(rows[0])

    async def get_account_by_email(self, email: str) -> Optional[Account]:
        data = await self.client.execute(
            queries.SELECT_ACCOUNT_BY_EMAIL, {"email": email.lower()}
        )
        return self._first_account(data.get("auth_accounts", []))

    async def get_account_by_user_id(self, user_id: str) -> Optional[Account]:
        data = await self.client.execute(
            queries.SELECT_ACCOUNT_BY_USER_ID, {"user_id": user_id}
        )
        return self._first_account(data.get("auth_accounts", []))

    async def get_account_by_ticket(self, ticket: str) -> Optional[Account]:
        """Get the account holding a ticket that has not expired yet"""
        data = await self.client.execute(
            queries.SELECT_ACCOUNT_BY_TICKET,
            {"ticket": ticket, "now": _serialize(utcnow())},
        )
        return self._first_account(data.get("auth_accounts", []))

    async def get_account_by_provider(
        self, provider: str, provider_user_id: str
    ) -> Optional[Account]:
        data = await self.client.execute(
            queries.SELECT_ACCOUNT_BY_PROVIDER,
            {"provider": provider, "provider_user_id": provider_user_id},
        )
        links = data.get("auth_account_providers", [])
        return self._first_account([link["account"] for link in links if link.get("account")])

    async def insert_account(
        self,
        email: str,
        password_hash: Optional[str],
        ticket: Optional[str],
        ticket_expires_at: Optional[datetime],
        active: bool,
        default_role: str,
        roles: List[str],
        locale: str,
        display_name: str,
        avatar_url: Optional[str],
    ) -> Account:
        """Insert an account together with its roles and user profile"""
        account_input = {
            "email": email.lower(),
            "password_hash": password_hash,
            "ticket": ticket,
            "ticket_expires_at": _serialize(ticket_expires_at),
            "active": active,
            "default_role": default_role,
            "locale": locale,
            "account_roles": {"data": [{"role": role} for role in roles]},
            "user": {"data": {"display_name": display_name, "avatar_url": avatar_url}},
        }
        data = await self.client.execute(queries.INSERT_ACCOUNT, {"account": account_input})
        account = Account.model_validate(data["insert_auth_accounts"]["returning"][0])
        logger.debug("account_inserted", account_id=account.id, user_id=account.user_id)
        return account

    async def update_account(self, account_id: str, changes: Dict[str, Any]) -> Optional[Account]:
        data = await self.client.execute(
            queries.UPDATE_ACCOUNT,
            {"account_id": account_id, "changes": _serialize_changes(changes)},
        )
        return self._first_account(data["update_auth_accounts"]["returning"])

    async def consume_ticket(
        self, ticket: str, changes: Optional[Dict[str, Any]] = None
    ) -> Optional[Account]:
        """
        Clear a live ticket and apply ``changes`` in one conditional mutation.

        Returns the updated account, or None when no row matched: the ticket
        never existed, has expired, or was consumed by an earlier request.
        """
        set_input = {"ticket": None, "ticket_expires_at": None, **(changes or {})}
        data = await self.client.execute(
            queries.CONSUME_TICKET,
            {
                "ticket": ticket,
                "now": _serialize(utcnow()),
                "changes": _serialize_changes(set_input),
            },
        )
        result = data["update_auth_accounts"]
        if result["affected_rows"] != 1:
            return None
        return self._first_account(result["returning"])

    async def insert_account_provider(
        self,
        account_id: str,
        provider: str,
        provider_user_id: str,
        access_token: Optional[str],
        refresh_token: Optional[str],
    ) -> None:
        """Link a provider identity to an account. Tokens arrive already encrypted."""
        await self.client.execute(
            queries.INSERT_ACCOUNT_PROVIDER,
            {
                "account_provider": {
                    "account_id": account_id,
                    "auth_provider": provider,
                    "auth_provider_unique_id": provider_user_id,
                    "provider_access_token": access_token,
                    "provider_refresh_token": refresh_token,
                }
            },
        )

    async def update_account_provider_tokens(
        self,
        provider: str,
        provider_user_id: str,
        access_token: Optional[str],
        refresh_token: Optional[str],
    ) -> None:
        await self.client.execute(
            queries.UPDATE_ACCOUNT_PROVIDER_TOKENS,
            {
                "provider": provider,
                "provider_user_id": provider_user_id,
                "changes": {
                    "provider_access_token": access_token,
                    "provider_refresh_token": refresh_token,
                },
            },
        )

    async def insert_refresh_token(
        self, account_id: str, token_hash: str, expires_at: datetime
    ) -> None:
        await self.client.execute(
            queries.INSERT_REFRESH_TOKEN,
            {
                "refresh_token": {
                    "account_id": account_id,
                    "token_hash": token_hash,
                    "expires_at": _serialize(expires_at),
                }
            },
        )

    async def get_account_by_refresh_token(self, token_hash: str) -> Optional[Account]:
        data = await self.client.execute(
            queries.SELECT_ACCOUNT_BY_REFRESH_TOKEN,
            {"token_hash": token_hash, "now": _serialize(utcnow())},
        )
        rows = data.get("auth_refresh_tokens", [])
        return self._first_account([row["account"] for row in rows if row.get("account")])

    async def delete_refresh_token(self, token_hash: str) -> int:
        data = await self.client.execute(
            queries.DELETE_REFRESH_TOKEN, {"token_hash": token_hash}
        )
        return data["delete_auth_refresh_tokens"]["affected_rows"]

    async def delete_account_refresh_tokens(self, account_id: str) -> int:
        data = await self.client.execute(
            queries.DELETE_ACCOUNT_REFRESH_TOKENS, {"account_id": account_id}
        )
        return data["delete_auth_refresh_tokens"]["affected_rows"]


account_store = AccountStore(graphql_client)


def get_store() -> AccountStore:
    """FastAPI dependency returning the shared account store"""
    return account_store
