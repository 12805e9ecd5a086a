"""Mock OAuth Provider for testing"""

import uuid
from typing import Any, Dict, Optional
from urllib.parse import urlencode
from .provider_interface import (
    OAuthProviderInterface,
    OAuthUserInfo,
    OAuthTokens,
    TokenExchangeError,
    UserInfoError,
)


class MockOAuthProvider(OAuthProviderInterface):
    """
    In-process OAuth provider for tests and local development.

    Codes are minted with create_mock_code() and can be exchanged once.
    Never registered when APP_ENV is production.
    """

    _mock_codes: Dict[str, Dict[str, Any]] = {}  # auth_code -> profile
    _mock_tokens: Dict[str, Dict[str, Any]] = {}  # access_token -> profile

    def __init__(self, client_id: str = "mock_client_id", client_secret: str = "mock_secret",
                 redirect_uri: str = "http://localhost:4000/signin/provider/mock/callback",
                 scopes: Optional[list[str]] = None):
        super().__init__("mock", client_id, client_secret, redirect_uri, scopes or ["email", "profile"])

    def get_authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "state": state,
        }
        return f"https://mock-oauth-provider.example.com/authorize?{urlencode(params)}"

    async def exchange_code_for_tokens(self, code: str) -> OAuthTokens:
        if code not in self._mock_codes:
            raise TokenExchangeError(
                "Invalid authorization code",
                provider=self.provider_name,
                details={"code": code},
            )

        profile = self._mock_codes.pop(code)  # One-time use

        access_token = f"mock_access_token_{uuid.uuid4().hex[:16]}"
        self._mock_tokens[access_token] = profile

        return OAuthTokens(
            access_token=access_token,
            refresh_token=f"mock_refresh_token_{uuid.uuid4().hex[:16]}",
            expires_in=3600,
        )

    async def get_user_info(self, access_token: str) -> OAuthUserInfo:
        if access_token not in self._mock_tokens:
            raise UserInfoError(
                "Invalid or expired access token",
                provider=self.provider_name,
                details={"token_prefix": access_token[:20]},
            )

        profile = self._mock_tokens[access_token]
        return OAuthUserInfo(
            provider_user_id=profile["user_id"],
            email=profile["email"],
            name=profile.get("name"),
            avatar_url=profile.get("avatar_url"),
            email_verified=profile.get("email_verified", True),
            raw_data=profile,
        )

    # Test helper methods

    @classmethod
    def create_mock_code(cls, user_id: str, email: Optional[str], name: Optional[str] = None,
                         avatar_url: Optional[str] = None, email_verified: bool = True) -> str:
        """
        Create an authorization code as if the provider had redirected back.

        Returns:
            Code accepted once by exchange_code_for_tokens()
        """
        code = f"mock_auth_code_{uuid.uuid4().hex[:16]}"
        cls._mock_codes[code] = {
            "user_id": user_id,
            "email": email,
            "name": name,
            "avatar_url": avatar_url,
            "email_verified": email_verified,
        }
        return code

    @classmethod
    def clear_mock_data(cls):
        """Clear all mock data (useful between tests)"""
        cls._mock_codes.clear()
        cls._mock_tokens.clear()
