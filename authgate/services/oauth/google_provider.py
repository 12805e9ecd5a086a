"""Google OAuth Provider"""

from typing import Any, Dict
from .base_provider import StandardOAuthProvider
from .provider_interface import OAuthUserInfo


class GoogleOAuthProvider(StandardOAuthProvider):
    """
    Google OAuth 2.0 provider implementation.

    References:
    - https://developers.google.com/identity/protocols/oauth2/web-server
    """

    PROVIDER_NAME = "google"
    AUTHORIZATION_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    USER_INFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

    # Default scopes for basic profile and email
    DEFAULT_SCOPES = [
        "openid",
        "https://www.googleapis.com/auth/userinfo.email",
        "https://www.googleapis.com/auth/userinfo.profile",
    ]

    def authorization_params(self, state: str) -> Dict[str, str]:
        params = super().authorization_params(state)
        params["access_type"] = "offline"  # Request refresh token
        params["prompt"] = "consent"
        return params

    def parse_profile(self, profile: Dict[str, Any]) -> OAuthUserInfo:
        return OAuthUserInfo(
            provider_user_id=str(profile["id"]),
            email=profile.get("email"),
            name=profile.get("name"),
            avatar_url=profile.get("picture"),
            email_verified=profile.get("verified_email", False),
            raw_data=profile,
        )
