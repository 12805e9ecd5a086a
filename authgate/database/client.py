"""
GraphQL client for the authgate data layer.

All durable state lives behind a Hasura-style GraphQL endpoint. The client
authenticates with the admin secret and returns the ``data`` member of the
response, raising GraphQLError when the backend reports errors.
"""

from typing import Optional, Dict, Any
from dataclasses import dataclass
import httpx
import structlog
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from authgate.config import settings
from authgate.exceptions import GraphQLError

logger = structlog.get_logger()


@dataclass
class GraphQLConfig:
    """Configuration for the GraphQL client"""

    url: str
    admin_secret: Optional[str] = None
    timeout: float = 10.0
    admin_secret_header: str = "x-hasura-admin-secret"


class GraphQLClient:
    """
    Async client for the GraphQL backend.

    Only connection failures are retried: the request never reached the
    server, so replaying a mutation cannot apply it twice.

    Example:
        ```python
        client = GraphQLClient(GraphQLConfig(url="http://hasura:8080/v1/graphql"))
        data = await client.execute(SELECT_ACCOUNT_BY_EMAIL, {"email": email})
        ```
    """

    def __init__(self, config: GraphQLConfig):
        self.config = config
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout)
        return self._client

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.admin_secret:
            headers[self.config.admin_secret_header] = self.config.admin_secret
        return headers

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type((httpx.ConnectError, httpx.ConnectTimeout)),
        reraise=True,
    )
    async def execute(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Execute a query or mutation.

        Args:
            query: GraphQL document
            variables: Variables for the document

        Returns:
            The ``data`` object of the response

        Raises:
            GraphQLError: On HTTP errors or GraphQL ``errors``
        """
        client = self._get_client()
        response = await client.post(
            self.config.url,
            json={"query": query, "variables": variables or {}},
            headers=self._get_headers(),
        )

        if response.status_code >= 400:
            logger.error(
                "graphql_http_error",
                status_code=response.status_code,
                url=self.config.url,
            )
            raise GraphQLError(f"GraphQL endpoint returned HTTP {response.status_code}")

        payload = response.json()
        errors = payload.get("errors")
        if errors:
            message = errors[0].get("message", "Unknown GraphQL error")
            logger.error("graphql_error", message=message, error_count=len(errors))
            raise GraphQLError(message, errors=errors)

        return payload.get("data") or {}


graphql_client = GraphQLClient(
    GraphQLConfig(
        url=settings.GRAPHQL_URL,
        admin_secret=settings.GRAPHQL_ADMIN_SECRET,
        timeout=settings.GRAPHQL_TIMEOUT,
    )
)
