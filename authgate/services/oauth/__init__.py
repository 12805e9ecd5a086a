"""OAuth providers and registry"""

from .provider_interface import (
    OAuthProviderInterface,
    OAuthUserInfo,
    OAuthTokens,
    OAuthError,
    TokenExchangeError,
    UserInfoError,
)
from .provider_factory import (
    OAuthProviderFactory,
    build_provider,
    enabled_providers,
    register_default_providers,
)
from .mock_provider import MockOAuthProvider

__all__ = [
    "OAuthProviderInterface",
    "OAuthUserInfo",
    "OAuthTokens",
    "OAuthError",
    "TokenExchangeError",
    "UserInfoError",
    "OAuthProviderFactory",
    "build_provider",
    "enabled_providers",
    "register_default_providers",
    "MockOAuthProvider",
]
