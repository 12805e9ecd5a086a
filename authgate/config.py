"""Configuration settings for authgate"""

from pydantic_settings import BaseSettings
from typing import List
import os


def _split(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    # Hosting platforms may provide PORT dynamically
    PORT: int = int(os.getenv("PORT", "4000"))
    SERVER_URL: str = "http://localhost:4000"  # Public URL of this service, used in email links
    CLIENT_URL: str = "http://localhost:3000"  # Default redirect target after verification

    # JWT
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    JWT_CLAIMS_NAMESPACE: str = "https://hasura.io/jwt/claims"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30

    # GraphQL backend
    GRAPHQL_URL: str
    GRAPHQL_ADMIN_SECRET: str
    GRAPHQL_TIMEOUT: float = 10.0
    ADMIN_SECRET_HEADER: str = "x-admin-secret"

    # Redis
    # Runtime may provide REDIS_URL
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://redis:6379/0")

    # Encryption (provider tokens at rest)
    ENCRYPTION_KEY: str

    # Registration
    DISABLE_SIGNUP: bool = False
    ADMIN_ONLY_REGISTRATION: bool = False
    AUTO_ACTIVATE_NEW_USERS: bool = False
    VERIFY_EMAILS: bool = True
    DEFAULT_USER_ROLE: str = "user"
    DEFAULT_ALLOWED_USER_ROLES: str = "user,me"
    ALLOWED_USER_ROLES: str = "user,me"
    ALLOWED_EMAILS: str = ""  # Empty means every email is allowed
    ALLOWED_EMAIL_DOMAINS: str = ""
    DEFAULT_LOCALE: str = "en"
    ALLOWED_LOCALES: str = "en,fr"

    # Passwords
    PASSWORD_MIN_LENGTH: int = 8
    PASSWORD_HIBP_ENABLED: bool = False
    HIBP_API_URL: str = "https://api.pwnedpasswords.com"

    # Gravatar
    GRAVATAR_ENABLED: bool = True
    GRAVATAR_DEFAULT: str = "blank"
    GRAVATAR_RATING: str = "g"

    # Tickets
    TICKET_EXPIRE_SECONDS: int = 3600
    MFA_TICKET_EXPIRE_SECONDS: int = 300

    # Magic link / MFA
    MAGIC_LINK_ENABLED: bool = False
    MFA_ENABLED: bool = False
    MFA_TOTP_ISSUER: str = "authgate"

    # Redirects
    ALLOWED_REDIRECT_URLS: str = ""  # Additional redirect bases besides CLIENT_URL

    # Email
    EMAIL_BACKEND: str = ""  # "smtp", "postmark" or empty to disable emails
    EMAIL_FROM: str = os.getenv("EMAIL_FROM", "noreply@authgate.local")
    EMAIL_FROM_NAME: str = "authgate"
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_SECURE: bool = True
    POSTMARK_API_KEY: str = ""

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # OAuth
    OAUTH_STATE_COOKIE_NAME: str = "oauth_state"
    OAUTH_REDIRECT_COOKIE_NAME: str = "oauth_redirect_to"
    OAUTH_STATE_COOKIE_MAX_AGE: int = 600  # 10 minutes

    # OAuth providers (a provider is enabled once its client id is set)
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GITHUB_CLIENT_ID: str = ""
    GITHUB_CLIENT_SECRET: str = ""
    FACEBOOK_CLIENT_ID: str = ""
    FACEBOOK_CLIENT_SECRET: str = ""
    GITLAB_CLIENT_ID: str = ""
    GITLAB_CLIENT_SECRET: str = ""
    GITLAB_BASE_URL: str = "https://gitlab.com"
    DISCORD_CLIENT_ID: str = ""
    DISCORD_CLIENT_SECRET: str = ""
    LINKEDIN_CLIENT_ID: str = ""
    LINKEDIN_CLIENT_SECRET: str = ""
    SPOTIFY_CLIENT_ID: str = ""
    SPOTIFY_CLIENT_SECRET: str = ""
    TWITCH_CLIENT_ID: str = ""
    TWITCH_CLIENT_SECRET: str = ""

    # Monitoring
    SENTRY_DSN: str = ""

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return _split(self.CORS_ORIGINS)

    @property
    def default_allowed_user_roles_list(self) -> List[str]:
        return _split(self.DEFAULT_ALLOWED_USER_ROLES)

    @property
    def allowed_user_roles_list(self) -> List[str]:
        return _split(self.ALLOWED_USER_ROLES)

    @property
    def allowed_emails_list(self) -> List[str]:
        return [email.lower() for email in _split(self.ALLOWED_EMAILS)]

    @property
    def allowed_email_domains_list(self) -> List[str]:
        return [domain.lower() for domain in _split(self.ALLOWED_EMAIL_DOMAINS)]

    @property
    def allowed_locales_list(self) -> List[str]:
        return _split(self.ALLOWED_LOCALES)

    @property
    def allowed_redirect_urls_list(self) -> List[str]:
        """CLIENT_URL is always an allowed redirect base"""
        return [self.CLIENT_URL, *_split(self.ALLOWED_REDIRECT_URLS)]

    @property
    def emails_enabled(self) -> bool:
        return self.EMAIL_BACKEND in ("smtp", "postmark")

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
