"""OAuth Provider Factory - Registry pattern for managing providers"""

from typing import Dict, Type, Optional
import structlog
from authgate.config import settings
from .provider_interface import OAuthProviderInterface

logger = structlog.get_logger()


class OAuthProviderFactory:
    """
    Registry of OAuth provider classes keyed by the name used in the URL.

    Usage:
        OAuthProviderFactory.register("google", GoogleOAuthProvider)
        provider = OAuthProviderFactory.create("google", client_id="...", ...)
    """

    _providers: Dict[str, Type[OAuthProviderInterface]] = {}

    @classmethod
    def register(cls, provider_name: str, provider_class: Type[OAuthProviderInterface]):
        """
        Register an OAuth provider class.

        Raises:
            ValueError: If provider is already registered or doesn't implement interface
        """
        if not issubclass(provider_class, OAuthProviderInterface):
            raise ValueError(
                f"Provider class {provider_class.__name__} must implement OAuthProviderInterface"
            )

        if provider_name in cls._providers:
            raise ValueError(f"Provider '{provider_name}' is already registered")

        cls._providers[provider_name] = provider_class

    @classmethod
    def unregister(cls, provider_name: str):
        cls._providers.pop(provider_name, None)

    @classmethod
    def create(cls, provider_name: str, **kwargs) -> OAuthProviderInterface:
        """
        Create an instance of a registered OAuth provider.

        Raises:
            ValueError: If provider is not registered
        """
        if provider_name not in cls._providers:
            available = ", ".join(cls._providers.keys())
            raise ValueError(
                f"Provider '{provider_name}' not found. "
                f"Available providers: {available or 'none'}"
            )

        return cls._providers[provider_name](**kwargs)

    @classmethod
    def is_registered(cls, provider_name: str) -> bool:
        return provider_name in cls._providers

    @classmethod
    def list_providers(cls) -> list[str]:
        return list(cls._providers.keys())

    @classmethod
    def clear_registry(cls):
        cls._providers.clear()


def get_redirect_uri(provider_name: str) -> str:
    """Callback URL registered with the provider"""
    return f"{settings.SERVER_URL.rstrip('/')}/signin/provider/{provider_name}/callback"


def get_provider_credentials(provider_name: str) -> Optional[Dict[str, str]]:
    """
    Read ``<NAME>_CLIENT_ID`` / ``<NAME>_CLIENT_SECRET`` from settings.

    Returns None when the provider has not been configured.
    """
    if provider_name == "mock":
        return {}

    prefix = provider_name.upper()
    client_id = getattr(settings, f"{prefix}_CLIENT_ID", "")
    client_secret = getattr(settings, f"{prefix}_CLIENT_SECRET", "")
    if not client_id or not client_secret:
        return None

    credentials = {"client_id": client_id, "client_secret": client_secret}
    if provider_name == "gitlab":
        credentials["base_url"] = settings.GITLAB_BASE_URL
    return credentials


def build_provider(provider_name: str) -> Optional[OAuthProviderInterface]:
    """
    Instantiate a registered provider with its configured credentials.

    Returns None when the provider is registered but not configured.

    Raises:
        ValueError: If provider is not registered
    """
    if not OAuthProviderFactory.is_registered(provider_name):
        raise ValueError(f"Provider '{provider_name}' not found")

    credentials = get_provider_credentials(provider_name)
    if credentials is None:
        return None

    return OAuthProviderFactory.create(
        provider_name,
        redirect_uri=get_redirect_uri(provider_name),
        **credentials,
    )


def enabled_providers() -> list[str]:
    """Registered providers that have credentials"""
    return [
        name for name in OAuthProviderFactory.list_providers()
        if get_provider_credentials(name) is not None
    ]


def register_default_providers():
    """
    Register the built-in OAuth providers.

    Called during application startup. The mock provider is left out in
    production.
    """
    from .google_provider import GoogleOAuthProvider
    from .github_provider import GitHubOAuthProvider
    from .mock_provider import MockOAuthProvider
    from .social_providers import (
        DiscordOAuthProvider,
        FacebookOAuthProvider,
        GitLabOAuthProvider,
        LinkedInOAuthProvider,
        SpotifyOAuthProvider,
        TwitchOAuthProvider,
    )

    defaults = {
        "google": GoogleOAuthProvider,
        "github": GitHubOAuthProvider,
        "facebook": FacebookOAuthProvider,
        "gitlab": GitLabOAuthProvider,
        "discord": DiscordOAuthProvider,
        "linkedin": LinkedInOAuthProvider,
        "spotify": SpotifyOAuthProvider,
        "twitch": TwitchOAuthProvider,
    }
    if settings.APP_ENV != "production":
        defaults["mock"] = MockOAuthProvider

    for name, provider_class in defaults.items():
        if not OAuthProviderFactory.is_registered(name):
            OAuthProviderFactory.register(name, provider_class)

    logger.info("oauth_providers_registered", enabled=enabled_providers())
