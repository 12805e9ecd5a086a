"""GitHub OAuth Provider"""

from typing import Any, Dict
import httpx
from .base_provider import StandardOAuthProvider
from .provider_interface import OAuthUserInfo


class GitHubOAuthProvider(StandardOAuthProvider):
    """
    GitHub OAuth app provider.

    GitHub leaves ``email`` empty on the profile when the user keeps it
    private, so the primary verified address is read from /user/emails.
    """

    PROVIDER_NAME = "github"
    AUTHORIZATION_URL = "https://github.com/login/oauth/authorize"
    TOKEN_URL = "https://github.com/login/oauth/access_token"
    USER_INFO_URL = "https://api.github.com/user"
    USER_EMAILS_URL = "https://api.github.com/user/emails"
    DEFAULT_SCOPES = ["user:email"]

    async def fetch_profile(self, client: httpx.AsyncClient, access_token: str) -> Dict[str, Any]:
        profile = await super().fetch_profile(client, access_token)

        response = await client.get(self.USER_EMAILS_URL, headers=self.user_info_headers(access_token))
        response.raise_for_status()
        primary = next(
            (entry for entry in response.json() if entry.get("primary") and entry.get("verified")),
            None,
        )
        profile["primary_email"] = primary["email"] if primary else None
        return profile

    def parse_profile(self, profile: Dict[str, Any]) -> OAuthUserInfo:
        email = profile.get("primary_email")
        return OAuthUserInfo(
            provider_user_id=str(profile["id"]),
            email=email or profile.get("email"),
            name=profile.get("name") or profile.get("login"),
            avatar_url=profile.get("avatar_url"),
            email_verified=email is not None,
            raw_data=profile,
        )
