"""Registration and redirect policies driven by configuration"""

import hashlib
from typing import List, Optional, Tuple
from urllib.parse import urlencode, urlsplit
from authgate.config import settings


def is_allowed_email(email: str) -> bool:
    """
    Check an email against ALLOWED_EMAILS and ALLOWED_EMAIL_DOMAINS.

    When neither list is configured every email is allowed.
    """
    allowed_emails = settings.allowed_emails_list
    allowed_domains = settings.allowed_email_domains_list
    if not allowed_emails and not allowed_domains:
        return True

    normalized = email.strip().lower()
    if normalized in allowed_emails:
        return True
    domain = normalized.rsplit("@", 1)[-1]
    return domain in allowed_domains


def is_allowed_redirect(url: str) -> bool:
    """
    A redirect target must be on CLIENT_URL or one of ALLOWED_REDIRECT_URLS.

    Scheme and host must equal the allowed entry's, and the path must be the
    entry's path or below it.
    """
    target = urlsplit(url)
    for allowed in settings.allowed_redirect_urls_list:
        if not allowed:
            continue
        base = urlsplit(allowed)
        if target.scheme.lower() != base.scheme.lower():
            continue
        if target.netloc.lower() != base.netloc.lower():
            continue
        base_path = base.path.rstrip("/")
        if not base_path or target.path == base_path or target.path.startswith(base_path + "/"):
            return True
    return False


def resolve_redirect(url: Optional[str]) -> Optional[str]:
    """Return the redirect target to use, or None when it is not allowed"""
    if not url:
        return settings.CLIENT_URL
    return url if is_allowed_redirect(url) else None


def get_gravatar_url(email: str) -> Optional[str]:
    if not settings.GRAVATAR_ENABLED:
        return None
    digest = hashlib.md5(email.strip().lower().encode("utf-8")).hexdigest()
    query = urlencode({"r": settings.GRAVATAR_RATING, "default": settings.GRAVATAR_DEFAULT})
    return f"https://www.gravatar.com/avatar/{digest}?{query}"


def check_roles(default_role: str, allowed_roles: List[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate requested roles.

    Returns:
        (True, None) when valid, otherwise (False, reason)
    """
    if default_role not in allowed_roles:
        return False, "Default role must be part of allowed roles"
    app_roles = settings.allowed_user_roles_list
    if not all(role in app_roles for role in allowed_roles):
        return False, "Allowed roles must be a subset of ALLOWED_ROLES"
    return True, None


def append_query(url: str, params: dict) -> str:
    """Append query parameters to a URL that may already carry some"""
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{urlencode(params)}"
