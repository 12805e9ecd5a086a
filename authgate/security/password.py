"""Password hashing and strength checks"""

import hashlib
import httpx
import structlog
from passlib.context import CryptContext
from authgate.config import settings

logger = structlog.get_logger()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a password"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash"""
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def validate_password(password: str) -> None:
    """Raise ValueError when the password does not meet the length rules"""
    if len(password) < settings.PASSWORD_MIN_LENGTH:
        raise ValueError(
            f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters"
        )
    # bcrypt only looks at the first 72 bytes
    if len(password.encode("utf-8")) > 72:
        raise ValueError("Password must be at most 72 bytes")


async def is_compromised_password(password: str) -> bool:
    """
    Check a password against Have I Been Pwned using the k-anonymity range API.

    Only the first five characters of the SHA-1 digest leave the process.
    Always False when the check is disabled.
    """
    if not settings.PASSWORD_HIBP_ENABLED:
        return False

    digest = hashlib.sha1(password.encode("utf-8")).hexdigest().upper()
    prefix, suffix = digest[:5], digest[5:]

    async with httpx.AsyncClient(timeout=5.0) as client:
        response = await client.get(
            f"{settings.HIBP_API_URL}/range/{prefix}",
            headers={"Add-Padding": "true"},
        )
        response.raise_for_status()

    for line in response.text.splitlines():
        candidate, _, count = line.partition(":")
        if candidate.strip() == suffix and int(count.strip() or 0) > 0:
            logger.info("compromised_password_rejected")
            return True
    return False
