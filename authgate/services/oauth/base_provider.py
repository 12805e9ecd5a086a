"""Authorization-code OAuth 2.0 provider shared by the concrete providers"""

from abc import abstractmethod
from typing import Any, Dict, Optional
from urllib.parse import urlencode
import httpx
from .provider_interface import (
    OAuthProviderInterface,
    OAuthTokens,
    OAuthUserInfo,
    TokenExchangeError,
    UserInfoError,
)


class StandardOAuthProvider(OAuthProviderInterface):
    """
    OAuth 2.0 authorization code flow against a provider's REST endpoints.

    Subclasses set the endpoint URLs and scopes and turn the provider's
    profile payload into an OAuthUserInfo.
    """

    PROVIDER_NAME: str = ""
    AUTHORIZATION_URL: str = ""
    TOKEN_URL: str = ""
    USER_INFO_URL: str = ""
    DEFAULT_SCOPES: list[str] = []
    SCOPE_SEPARATOR: str = " "

    def __init__(self, client_id: str, client_secret: str, redirect_uri: str,
                 scopes: Optional[list[str]] = None):
        super().__init__(
            provider_name=self.PROVIDER_NAME,
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=redirect_uri,
            scopes=scopes or list(self.DEFAULT_SCOPES),
        )

    def authorization_params(self, state: str) -> Dict[str, str]:
        return {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": self.SCOPE_SEPARATOR.join(self.scopes),
            "state": state,
        }

    def get_authorization_url(self, state: str) -> str:
        return f"{self.AUTHORIZATION_URL}?{urlencode(self.authorization_params(state))}"

    def user_info_headers(self, access_token: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }

    @staticmethod
    def _error_details(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json() if response.text else {}
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        return {
            "status_code": response.status_code,
            "error": body.get("error"),
            "error_description": body.get("error_description"),
        }

    async def exchange_code_for_tokens(self, code: str) -> OAuthTokens:
        data = {
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
            "grant_type": "authorization_code",
        }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.TOKEN_URL, data=data, headers={"Accept": "application/json"}
                )
                response.raise_for_status()
                token_data = response.json()
        except httpx.HTTPStatusError as e:
            raise TokenExchangeError(
                f"Failed to exchange code for tokens: {e.response.status_code}",
                provider=self.provider_name,
                details=self._error_details(e.response),
            )
        except httpx.RequestError as e:
            raise TokenExchangeError(
                f"Token endpoint unreachable: {str(e)}",
                provider=self.provider_name,
                details={"error": str(e)},
            )

        if "access_token" not in token_data:
            raise TokenExchangeError(
                "Token response did not contain an access token",
                provider=self.provider_name,
                details={"error": token_data.get("error")},
            )

        return OAuthTokens(
            access_token=token_data["access_token"],
            refresh_token=token_data.get("refresh_token"),
            expires_in=token_data.get("expires_in"),
            token_type=token_data.get("token_type", "Bearer"),
        )

    async def fetch_profile(self, client: httpx.AsyncClient, access_token: str) -> Dict[str, Any]:
        response = await client.get(self.USER_INFO_URL, headers=self.user_info_headers(access_token))
        response.raise_for_status()
        return response.json()

    async def get_user_info(self, access_token: str) -> OAuthUserInfo:
        try:
            async with httpx.AsyncClient() as client:
                profile = await self.fetch_profile(client, access_token)
        except httpx.HTTPStatusError as e:
            raise UserInfoError(
                f"Failed to fetch user info: {e.response.status_code}",
                provider=self.provider_name,
                details=self._error_details(e.response),
            )
        except httpx.RequestError as e:
            raise UserInfoError(
                f"User info endpoint unreachable: {str(e)}",
                provider=self.provider_name,
                details={"error": str(e)},
            )

        try:
            return self.parse_profile(profile)
        except (KeyError, IndexError, TypeError) as e:
            raise UserInfoError(
                f"Unexpected profile payload: missing {e}",
                provider=self.provider_name,
            )

    @abstractmethod
    def parse_profile(self, profile: Dict[str, Any]) -> OAuthUserInfo:
        """Map the provider's profile payload to OAuthUserInfo"""
        pass
