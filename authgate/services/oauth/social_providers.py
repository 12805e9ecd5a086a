"""Providers whose flow is the plain authorization code grant"""

from typing import Any, Dict, Optional
from urllib.parse import urlencode
from .base_provider import StandardOAuthProvider
from .provider_interface import OAuthUserInfo


class FacebookOAuthProvider(StandardOAuthProvider):
    PROVIDER_NAME = "facebook"
    AUTHORIZATION_URL = "https://www.facebook.com/v19.0/dialog/oauth"
    TOKEN_URL = "https://graph.facebook.com/v19.0/oauth/access_token"
    USER_INFO_URL = "https://graph.facebook.com/me?" + urlencode(
        {"fields": "id,name,email,picture.type(large)"}
    )
    DEFAULT_SCOPES = ["email", "public_profile"]
    SCOPE_SEPARATOR = ","

    def parse_profile(self, profile: Dict[str, Any]) -> OAuthUserInfo:
        picture = (profile.get("picture") or {}).get("data") or {}
        return OAuthUserInfo(
            provider_user_id=str(profile["id"]),
            email=profile.get("email"),
            name=profile.get("name"),
            avatar_url=picture.get("url"),
            # Facebook only returns confirmed addresses
            email_verified=bool(profile.get("email")),
            raw_data=profile,
        )


class GitLabOAuthProvider(StandardOAuthProvider):
    PROVIDER_NAME = "gitlab"
    DEFAULT_SCOPES = ["read_user"]

    def __init__(self, client_id: str, client_secret: str, redirect_uri: str,
                 scopes: Optional[list[str]] = None, base_url: str = "https://gitlab.com"):
        base_url = base_url.rstrip("/")
        self.AUTHORIZATION_URL = f"{base_url}/oauth/authorize"
        self.TOKEN_URL = f"{base_url}/oauth/token"
        self.USER_INFO_URL = f"{base_url}/api/v4/user"
        super().__init__(client_id, client_secret, redirect_uri, scopes)

    def parse_profile(self, profile: Dict[str, Any]) -> OAuthUserInfo:
        return OAuthUserInfo(
            provider_user_id=str(profile["id"]),
            email=profile.get("email"),
            name=profile.get("name") or profile.get("username"),
            avatar_url=profile.get("avatar_url"),
            email_verified=profile.get("confirmed_at") is not None,
            raw_data=profile,
        )


class DiscordOAuthProvider(StandardOAuthProvider):
    PROVIDER_NAME = "discord"
    AUTHORIZATION_URL = "https://discord.com/oauth2/authorize"
    TOKEN_URL = "https://discord.com/api/oauth2/token"
    USER_INFO_URL = "https://discord.com/api/users/@me"
    DEFAULT_SCOPES = ["identify", "email"]

    def parse_profile(self, profile: Dict[str, Any]) -> OAuthUserInfo:
        avatar = profile.get("avatar")
        avatar_url = (
            f"https://cdn.discordapp.com/avatars/{profile['id']}/{avatar}.png" if avatar else None
        )
        return OAuthUserInfo(
            provider_user_id=str(profile["id"]),
            email=profile.get("email"),
            name=profile.get("global_name") or profile.get("username"),
            avatar_url=avatar_url,
            email_verified=profile.get("verified", False),
            raw_data=profile,
        )


class LinkedInOAuthProvider(StandardOAuthProvider):
    """Sign In with LinkedIn using OpenID Connect"""

    PROVIDER_NAME = "linkedin"
    AUTHORIZATION_URL = "https://www.linkedin.com/oauth/v2/authorization"
    TOKEN_URL = "https://www.linkedin.com/oauth/v2/accessToken"
    USER_INFO_URL = "https://api.linkedin.com/v2/userinfo"
    DEFAULT_SCOPES = ["openid", "profile", "email"]

    def parse_profile(self, profile: Dict[str, Any]) -> OAuthUserInfo:
        return OAuthUserInfo(
            provider_user_id=str(profile["sub"]),
            email=profile.get("email"),
            name=profile.get("name"),
            avatar_url=profile.get("picture"),
            email_verified=profile.get("email_verified", False),
            raw_data=profile,
        )


class SpotifyOAuthProvider(StandardOAuthProvider):
    PROVIDER_NAME = "spotify"
    AUTHORIZATION_URL = "https://accounts.spotify.com/authorize"
    TOKEN_URL = "https://accounts.spotify.com/api/token"
    USER_INFO_URL = "https://api.spotify.com/v1/me"
    DEFAULT_SCOPES = ["user-read-email"]

    def parse_profile(self, profile: Dict[str, Any]) -> OAuthUserInfo:
        images = profile.get("images") or []
        return OAuthUserInfo(
            provider_user_id=str(profile["id"]),
            email=profile.get("email"),
            name=profile.get("display_name"),
            avatar_url=images[0].get("url") if images else None,
            # Spotify does not say whether the address was confirmed
            email_verified=False,
            raw_data=profile,
        )


class TwitchOAuthProvider(StandardOAuthProvider):
    PROVIDER_NAME = "twitch"
    AUTHORIZATION_URL = "https://id.twitch.tv/oauth2/authorize"
    TOKEN_URL = "https://id.twitch.tv/oauth2/token"
    USER_INFO_URL = "https://api.twitch.tv/helix/users"
    DEFAULT_SCOPES = ["user:read:email"]

    def user_info_headers(self, access_token: str) -> Dict[str, str]:
        headers = super().user_info_headers(access_token)
        headers["Client-Id"] = self.client_id
        return headers

    def parse_profile(self, profile: Dict[str, Any]) -> OAuthUserInfo:
        user = profile["data"][0]
        return OAuthUserInfo(
            provider_user_id=str(user["id"]),
            email=user.get("email"),
            name=user.get("display_name") or user.get("login"),
            avatar_url=user.get("profile_image_url"),
            # Twitch only exposes the email once it has been verified
            email_verified=bool(user.get("email")),
            raw_data=user,
        )
