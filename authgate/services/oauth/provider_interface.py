"""OAuth Provider Interface - Strategy Pattern for OAuth providers"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
from dataclasses import dataclass


@dataclass
class OAuthUserInfo:
    """Standardized user information from OAuth providers"""
    provider_user_id: str  # Unique ID from OAuth provider
    email: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    email_verified: bool = False
    raw_data: Optional[Dict[str, Any]] = None  # Full profile data from provider


@dataclass
class OAuthTokens:
    """OAuth tokens from provider"""
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None  # Seconds until expiration
    token_type: str = "Bearer"


class OAuthProviderInterface(ABC):
    """
    Abstract base class for OAuth providers.

    Each provider (Google, GitHub, ...) implements this interface, so the
    sign-in flow never needs to know which service it is talking to.
    """

    def __init__(self, provider_name: str, client_id: str, client_secret: str,
                 redirect_uri: str, scopes: list[str]):
        """
        Initialize OAuth provider.

        Args:
            provider_name: Name of the provider (e.g., "google", "github")
            client_id: OAuth client ID
            client_secret: OAuth client secret
            redirect_uri: Callback URL for OAuth flow
            scopes: List of OAuth scopes to request
        """
        self.provider_name = provider_name
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scopes = scopes

    @abstractmethod
    def get_authorization_url(self, state: str) -> str:
        """
        Generate the authorization URL for OAuth flow.

        Args:
            state: CSRF protection token

        Returns:
            Authorization URL to redirect user to
        """
        pass

    @abstractmethod
    async def exchange_code_for_tokens(self, code: str) -> OAuthTokens:
        """
        Exchange authorization code for access tokens.

        Raises:
            TokenExchangeError: If token exchange fails
        """
        pass

    @abstractmethod
    async def get_user_info(self, access_token: str) -> OAuthUserInfo:
        """
        Fetch user information from OAuth provider.

        Raises:
            UserInfoError: If user info fetch fails
        """
        pass


class OAuthError(Exception):
    """Base exception for OAuth-related errors"""

    def __init__(self, message: str, provider: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.provider = provider
        self.details = details or {}


class TokenExchangeError(OAuthError):
    """Error during token exchange"""
    pass


class UserInfoError(OAuthError):
    """Error fetching user info"""
    pass
