"""Unit tests for the GraphQL client and the account store on top of it"""

import pytest
import httpx
from unittest.mock import patch, MagicMock, AsyncMock

from authgate.database import queries
from authgate.database.client import GraphQLClient, GraphQLConfig
from authgate.database.store import AccountStore
from authgate.exceptions import GraphQLError


def _response(status_code: int = 200, payload: dict = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload or {}
    return response


def _account_row(**overrides) -> dict:
    row = {
        "id": "account-1",
        "email": "user@example.com",
        "active": True,
        "default_role": "user",
        "ticket": None,
        "ticket_expires_at": None,
        "account_roles": [{"role": "user"}],
        "user": {"id": "user-1", "display_name": "User", "avatar_url": None},
    }
    row.update(overrides)
    return row


@pytest.fixture
def client():
    return GraphQLClient(GraphQLConfig(
        url="http://graphql.test/v1/graphql",
        admin_secret="secret",
    ))


@pytest.mark.unit
@pytest.mark.asyncio
async def test_execute_returns_data(client):
    with patch("httpx.AsyncClient.post", return_value=_response(payload={"data": {"ok": True}})) as mock_post:
        data = await client.execute("query { ok }", {"a": 1})

    assert data == {"ok": True}
    call_kwargs = mock_post.call_args[1]
    assert call_kwargs["json"] == {"query": "query { ok }", "variables": {"a": 1}}
    assert call_kwargs["headers"]["x-hasura-admin-secret"] == "secret"
    await client.close()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_execute_raises_on_graphql_errors(client):
    payload = {"errors": [{"message": "field 'x' not found"}]}
    with patch("httpx.AsyncClient.post", return_value=_response(payload=payload)):
        with pytest.raises(GraphQLError, match="field 'x' not found") as exc_info:
            await client.execute("query { x }")

    assert exc_info.value.errors == payload["errors"]
    await client.close()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_execute_raises_on_http_error(client):
    with patch("httpx.AsyncClient.post", return_value=_response(status_code=500)):
        with pytest.raises(GraphQLError, match="HTTP 500"):
            await client.execute("query { x }")
    await client.close()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_execute_retries_connection_errors(client):
    mock_post = AsyncMock(side_effect=[
        httpx.ConnectError("connection refused"),
        _response(payload={"data": {"ok": True}}),
    ])
    with patch("httpx.AsyncClient.post", mock_post):
        data = await client.execute("query { ok }")

    assert data == {"ok": True}
    assert mock_post.call_count == 2
    await client.close()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_execute_does_not_retry_read_timeouts(client):
    mock_post = AsyncMock(side_effect=httpx.ReadTimeout("timed out"))
    with patch("httpx.AsyncClient.post", mock_post):
        with pytest.raises(httpx.ReadTimeout):
            await client.execute("mutation { x }")

    assert mock_post.call_count == 1
    await client.close()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_consume_ticket_requires_one_affected_row():
    graphql = MagicMock()
    graphql.execute = AsyncMock(return_value={
        "update_auth_accounts": {"affected_rows": 0, "returning": []}
    })
    store = AccountStore(graphql)

    assert await store.consume_ticket("emailVerify:x", {"active": True}) is None

    query, variables = graphql.execute.call_args[0]
    assert query == queries.CONSUME_TICKET
    assert variables["ticket"] == "emailVerify:x"
    assert variables["changes"] == {"ticket": None, "ticket_expires_at": None, "active": True}
    assert "now" in variables


@pytest.mark.unit
@pytest.mark.asyncio
async def test_consume_ticket_returns_updated_account():
    graphql = MagicMock()
    graphql.execute = AsyncMock(return_value={
        "update_auth_accounts": {"affected_rows": 1, "returning": [_account_row()]}
    })
    store = AccountStore(graphql)

    account = await store.consume_ticket("emailVerify:x")

    assert account.id == "account-1"
    assert account.user_id == "user-1"
    assert account.roles == ["user"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_account_by_email_lowercases():
    graphql = MagicMock()
    graphql.execute = AsyncMock(return_value={"auth_accounts": []})
    store = AccountStore(graphql)

    assert await store.get_account_by_email("User@Example.COM") is None
    assert graphql.execute.call_args[0][1] == {"email": "user@example.com"}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_insert_account_nests_roles_and_user():
    graphql = MagicMock()
    graphql.execute = AsyncMock(return_value={
        "insert_auth_accounts": {"returning": [_account_row()]}
    })
    store = AccountStore(graphql)

    await store.insert_account(
        email="User@Example.com",
        password_hash=None,
        ticket=None,
        ticket_expires_at=None,
        active=True,
        default_role="user",
        roles=["user", "me"],
        locale="en",
        display_name="User",
        avatar_url=None,
    )

    account_input = graphql.execute.call_args[0][1]["account"]
    assert account_input["email"] == "user@example.com"
    assert account_input["account_roles"] == {"data": [{"role": "user"}, {"role": "me"}]}
    assert account_input["user"] == {"data": {"display_name": "User", "avatar_url": None}}
