"""Unit tests for OAuth providers"""

import httpx
import pytest
from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs, urlparse

from authgate.config import settings
from authgate.services.oauth import (
    MockOAuthProvider,
    OAuthProviderFactory,
    OAuthProviderInterface,
    TokenExchangeError,
    UserInfoError,
    build_provider,
    enabled_providers,
    register_default_providers,
)
from authgate.services.oauth.github_provider import GitHubOAuthProvider
from authgate.services.oauth.google_provider import GoogleOAuthProvider
from authgate.services.oauth.social_providers import (
    DiscordOAuthProvider,
    FacebookOAuthProvider,
    GitLabOAuthProvider,
    LinkedInOAuthProvider,
    SpotifyOAuthProvider,
    TwitchOAuthProvider,
)

REDIRECT_URI = "http://localhost:4000/signin/provider/test/callback"


def _response(method: str, url: str, status_code: int = 200, payload=None) -> httpx.Response:
    return httpx.Response(status_code, json=payload, request=httpx.Request(method, url))


@pytest.fixture
def isolated_registry():
    """Empty provider registry, restored after the test"""
    saved = dict(OAuthProviderFactory._providers)
    OAuthProviderFactory.clear_registry()
    yield
    OAuthProviderFactory.clear_registry()
    OAuthProviderFactory._providers.update(saved)


class TestMockOAuthProvider:
    """Tests for MockOAuthProvider"""

    def setup_method(self):
        """Clear mock data before each test"""
        MockOAuthProvider.clear_mock_data()

    @pytest.mark.unit
    def test_get_authorization_url(self):
        """Test generating authorization URL"""
        url = MockOAuthProvider().get_authorization_url("test_state_123")

        assert "mock-oauth-provider.example.com/authorize" in url
        assert "state=test_state_123" in url
        assert "client_id=mock_client_id" in url

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_exchange_and_get_user_info(self):
        """Test a full code exchange followed by a profile fetch"""
        provider = MockOAuthProvider()
        code = MockOAuthProvider.create_mock_code(
            user_id="mock_123456",
            email="test@example.com",
            name="Test User",
            avatar_url="https://example.com/avatar.jpg",
        )

        tokens = await provider.exchange_code_for_tokens(code)
        user_info = await provider.get_user_info(tokens.access_token)

        assert tokens.access_token.startswith("mock_access_token_")
        assert tokens.refresh_token.startswith("mock_refresh_token_")
        assert tokens.expires_in == 3600
        assert user_info.provider_user_id == "mock_123456"
        assert user_info.email == "test@example.com"
        assert user_info.name == "Test User"
        assert user_info.email_verified is True

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_exchange_invalid_code(self):
        """Test exchanging invalid authorization code"""
        with pytest.raises(TokenExchangeError) as exc_info:
            await MockOAuthProvider().exchange_code_for_tokens("invalid_code")

        assert "Invalid authorization code" in str(exc_info.value)
        assert exc_info.value.provider == "mock"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_code_is_single_use(self):
        """An authorization code can only be exchanged once"""
        provider = MockOAuthProvider()
        code = MockOAuthProvider.create_mock_code(user_id="mock_1", email="test@example.com")
        await provider.exchange_code_for_tokens(code)

        with pytest.raises(TokenExchangeError):
            await provider.exchange_code_for_tokens(code)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_get_user_info_invalid_token(self):
        """Test fetching user info with invalid token"""
        with pytest.raises(UserInfoError, match="Invalid or expired access token"):
            await MockOAuthProvider().get_user_info("invalid_token")


class TestOAuthProviderFactory:
    """Tests for the provider registry"""

    @pytest.mark.unit
    def test_register_and_create(self, isolated_registry):
        """Test registering a provider and creating an instance"""
        OAuthProviderFactory.register("mock", MockOAuthProvider)

        provider = OAuthProviderFactory.create("mock")

        assert isinstance(provider, MockOAuthProvider)
        assert OAuthProviderFactory.list_providers() == ["mock"]

    @pytest.mark.unit
    def test_register_duplicate(self, isolated_registry):
        """Test registering the same name twice"""
        OAuthProviderFactory.register("mock", MockOAuthProvider)

        with pytest.raises(ValueError, match="already registered"):
            OAuthProviderFactory.register("mock", MockOAuthProvider)

    @pytest.mark.unit
    def test_register_invalid_class(self, isolated_registry):
        """Test registering a class that does not implement the interface"""
        with pytest.raises(ValueError, match="must implement OAuthProviderInterface"):
            OAuthProviderFactory.register("bogus", dict)

    @pytest.mark.unit
    def test_create_unknown(self, isolated_registry):
        """Test creating a provider that was never registered"""
        with pytest.raises(ValueError, match="not found"):
            OAuthProviderFactory.create("myspace")

    @pytest.mark.unit
    def test_unregister(self, isolated_registry):
        OAuthProviderFactory.register("mock", MockOAuthProvider)
        OAuthProviderFactory.unregister("mock")

        assert not OAuthProviderFactory.is_registered("mock")

    @pytest.mark.unit
    def test_register_default_providers(self, isolated_registry):
        """Test the built-in providers, mock included outside production"""
        register_default_providers()

        assert set(OAuthProviderFactory.list_providers()) == {
            "google", "github", "facebook", "gitlab", "discord",
            "linkedin", "spotify", "twitch", "mock",
        }
        for name in OAuthProviderFactory.list_providers():
            assert issubclass(OAuthProviderFactory._providers[name], OAuthProviderInterface)

    @pytest.mark.unit
    def test_mock_provider_left_out_in_production(self, isolated_registry, monkeypatch):
        monkeypatch.setattr(settings, "APP_ENV", "production")

        register_default_providers()

        assert not OAuthProviderFactory.is_registered("mock")

    @pytest.mark.unit
    def test_build_provider_uses_settings(self, isolated_registry, monkeypatch):
        """Test that credentials and callback URL come from configuration"""
        monkeypatch.setattr(settings, "GITHUB_CLIENT_ID", "gh-id")
        monkeypatch.setattr(settings, "GITHUB_CLIENT_SECRET", "gh-secret")
        monkeypatch.setattr(settings, "SERVER_URL", "https://auth.example.com/")
        register_default_providers()

        provider = build_provider("github")

        assert isinstance(provider, GitHubOAuthProvider)
        assert provider.client_id == "gh-id"
        assert provider.client_secret == "gh-secret"
        assert provider.redirect_uri == "https://auth.example.com/signin/provider/github/callback"

    @pytest.mark.unit
    def test_build_unconfigured_provider(self, isolated_registry, monkeypatch):
        monkeypatch.setattr(settings, "GOOGLE_CLIENT_ID", "")
        register_default_providers()

        assert build_provider("google") is None
        with pytest.raises(ValueError):
            build_provider("myspace")

    @pytest.mark.unit
    def test_build_gitlab_with_self_hosted_url(self, isolated_registry, monkeypatch):
        monkeypatch.setattr(settings, "GITLAB_CLIENT_ID", "gl-id")
        monkeypatch.setattr(settings, "GITLAB_CLIENT_SECRET", "gl-secret")
        monkeypatch.setattr(settings, "GITLAB_BASE_URL", "https://git.example.com/")
        register_default_providers()

        provider = build_provider("gitlab")

        assert provider.get_authorization_url("s").startswith("https://git.example.com/oauth/authorize?")
        assert provider.USER_INFO_URL == "https://git.example.com/api/v4/user"

    @pytest.mark.unit
    def test_enabled_providers(self, isolated_registry, monkeypatch):
        monkeypatch.setattr(settings, "SPOTIFY_CLIENT_ID", "sp-id")
        monkeypatch.setattr(settings, "SPOTIFY_CLIENT_SECRET", "sp-secret")
        for name in ("GOOGLE", "GITHUB", "FACEBOOK", "GITLAB", "DISCORD", "LINKEDIN", "TWITCH"):
            monkeypatch.setattr(settings, f"{name}_CLIENT_ID", "")
        register_default_providers()

        assert sorted(enabled_providers()) == ["mock", "spotify"]


class TestStandardOAuthProvider:
    """Tests for the shared authorization code flow"""

    @pytest.mark.unit
    def test_google_authorization_url(self):
        """Test Google asks for offline access"""
        provider = GoogleOAuthProvider("google-id", "secret", REDIRECT_URI)

        url = provider.get_authorization_url("state-1")
        query = parse_qs(urlparse(url).query)

        assert url.startswith("https://accounts.google.com/o/oauth2/v2/auth?")
        assert query["client_id"] == ["google-id"]
        assert query["redirect_uri"] == [REDIRECT_URI]
        assert query["response_type"] == ["code"]
        assert query["state"] == ["state-1"]
        assert query["access_type"] == ["offline"]
        assert "openid" in query["scope"][0].split(" ")

    @pytest.mark.unit
    def test_facebook_scope_separator(self):
        provider = FacebookOAuthProvider("fb-id", "secret", REDIRECT_URI)

        query = parse_qs(urlparse(provider.get_authorization_url("s")).query)

        assert query["scope"] == ["email,public_profile"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_exchange_code(self):
        """Test the token request and response mapping"""
        provider = GoogleOAuthProvider("google-id", "secret", REDIRECT_URI)
        response = _response("POST", provider.TOKEN_URL, payload={
            "access_token": "at", "refresh_token": "rt", "expires_in": 3599,
        })

        with patch("httpx.AsyncClient.post", AsyncMock(return_value=response)) as mock_post:
            tokens = await provider.exchange_code_for_tokens("code-1")

        assert (tokens.access_token, tokens.refresh_token, tokens.expires_in) == ("at", "rt", 3599)
        data = mock_post.call_args[1]["data"]
        assert data["code"] == "code-1"
        assert data["grant_type"] == "authorization_code"
        assert data["redirect_uri"] == REDIRECT_URI

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_exchange_code_rejected(self):
        """Test a 4xx from the token endpoint"""
        provider = GoogleOAuthProvider("google-id", "secret", REDIRECT_URI)
        response = _response("POST", provider.TOKEN_URL, 400, {
            "error": "invalid_grant", "error_description": "Bad code",
        })

        with patch("httpx.AsyncClient.post", AsyncMock(return_value=response)):
            with pytest.raises(TokenExchangeError) as exc_info:
                await provider.exchange_code_for_tokens("code-1")

        assert exc_info.value.provider == "google"
        assert exc_info.value.details["error"] == "invalid_grant"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_exchange_code_without_access_token(self):
        provider = GitHubOAuthProvider("gh-id", "secret", REDIRECT_URI)
        # GitHub answers 200 with an error body for bad codes
        response = _response("POST", provider.TOKEN_URL, payload={"error": "bad_verification_code"})

        with patch("httpx.AsyncClient.post", AsyncMock(return_value=response)):
            with pytest.raises(TokenExchangeError, match="did not contain an access token"):
                await provider.exchange_code_for_tokens("code-1")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_token_endpoint_unreachable(self):
        provider = GoogleOAuthProvider("google-id", "secret", REDIRECT_URI)

        with patch("httpx.AsyncClient.post", AsyncMock(side_effect=httpx.ConnectError("refused"))):
            with pytest.raises(TokenExchangeError, match="unreachable"):
                await provider.exchange_code_for_tokens("code-1")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_user_info_rejected(self):
        provider = GoogleOAuthProvider("google-id", "secret", REDIRECT_URI)
        response = _response("GET", provider.USER_INFO_URL, 401, {"error": "invalid_token"})

        with patch("httpx.AsyncClient.get", AsyncMock(return_value=response)):
            with pytest.raises(UserInfoError):
                await provider.get_user_info("expired")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_github_reads_primary_verified_email(self):
        """Test GitHub private emails are read from /user/emails"""
        provider = GitHubOAuthProvider("gh-id", "secret", REDIRECT_URI)
        mock_get = AsyncMock(side_effect=[
            _response("GET", provider.USER_INFO_URL, payload={
                "id": 42, "login": "octocat", "name": None, "email": None, "avatar_url": "https://a",
            }),
            _response("GET", provider.USER_EMAILS_URL, payload=[
                {"email": "old@example.com", "primary": False, "verified": True},
                {"email": "octo@example.com", "primary": True, "verified": True},
            ]),
        ])

        with patch("httpx.AsyncClient.get", mock_get):
            user_info = await provider.get_user_info("gh-token")

        assert user_info.provider_user_id == "42"
        assert user_info.email == "octo@example.com"
        assert user_info.email_verified is True
        assert user_info.name == "octocat"
        assert mock_get.call_args_list[1][1]["headers"]["Authorization"] == "Bearer gh-token"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_twitch_sends_client_id(self):
        provider = TwitchOAuthProvider("twitch-id", "secret", REDIRECT_URI)
        response = _response("GET", provider.USER_INFO_URL, payload={"data": [{
            "id": "7", "login": "streamer", "display_name": "Streamer",
            "email": "s@example.com", "profile_image_url": "https://img",
        }]})

        with patch("httpx.AsyncClient.get", AsyncMock(return_value=response)) as mock_get:
            user_info = await provider.get_user_info("tw-token")

        assert mock_get.call_args[1]["headers"]["Client-Id"] == "twitch-id"
        assert user_info.provider_user_id == "7"
        assert user_info.email_verified is True

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unexpected_profile_payload(self):
        provider = TwitchOAuthProvider("twitch-id", "secret", REDIRECT_URI)
        response = _response("GET", provider.USER_INFO_URL, payload={"data": []})

        with patch("httpx.AsyncClient.get", AsyncMock(return_value=response)):
            with pytest.raises(UserInfoError, match="Unexpected profile payload"):
                await provider.get_user_info("tw-token")


class TestProfileParsing:
    """Tests for provider profile mapping"""

    @pytest.mark.unit
    def test_google(self):
        user_info = GoogleOAuthProvider("id", "secret", REDIRECT_URI).parse_profile({
            "id": "g-1", "email": "g@example.com", "name": "G", "picture": "https://p",
            "verified_email": True,
        })

        assert (user_info.provider_user_id, user_info.avatar_url) == ("g-1", "https://p")
        assert user_info.email_verified is True

    @pytest.mark.unit
    def test_github_without_verified_email(self):
        user_info = GitHubOAuthProvider("id", "secret", REDIRECT_URI).parse_profile({
            "id": 1, "login": "octocat", "email": "public@example.com", "primary_email": None,
        })

        assert user_info.email == "public@example.com"
        assert user_info.email_verified is False

    @pytest.mark.unit
    def test_facebook(self):
        user_info = FacebookOAuthProvider("id", "secret", REDIRECT_URI).parse_profile({
            "id": "fb-1", "name": "F", "email": "f@example.com",
            "picture": {"data": {"url": "https://fb/p.jpg"}},
        })

        assert user_info.avatar_url == "https://fb/p.jpg"
        assert user_info.email_verified is True

    @pytest.mark.unit
    def test_gitlab_unconfirmed(self):
        user_info = GitLabOAuthProvider("id", "secret", REDIRECT_URI).parse_profile({
            "id": 9, "username": "gl", "email": "gl@example.com", "confirmed_at": None,
        })

        assert user_info.name == "gl"
        assert user_info.email_verified is False

    @pytest.mark.unit
    def test_discord_avatar(self):
        user_info = DiscordOAuthProvider("id", "secret", REDIRECT_URI).parse_profile({
            "id": "55", "username": "d", "avatar": "abc", "email": "d@example.com", "verified": True,
        })

        assert user_info.avatar_url == "https://cdn.discordapp.com/avatars/55/abc.png"
        assert user_info.email_verified is True

    @pytest.mark.unit
    def test_linkedin_uses_subject(self):
        user_info = LinkedInOAuthProvider("id", "secret", REDIRECT_URI).parse_profile({
            "sub": "li-1", "email": "l@example.com", "email_verified": True,
        })

        assert user_info.provider_user_id == "li-1"

    @pytest.mark.unit
    def test_spotify_email_never_verified(self):
        user_info = SpotifyOAuthProvider("id", "secret", REDIRECT_URI).parse_profile({
            "id": "sp-1", "display_name": "S", "email": "s@example.com",
            "images": [{"url": "https://i"}],
        })

        assert user_info.avatar_url == "https://i"
        assert user_info.email_verified is False
