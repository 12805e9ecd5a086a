"""JWT issuance and decoding"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from authgate.config import settings
from authgate.database.models import Account


def jwt_expires_in() -> int:
    """Lifetime of an access token in seconds"""
    return settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60


def build_claims(account: Account) -> Dict[str, Any]:
    """Role claims consumed by the GraphQL engine"""
    return {
        "x-hasura-allowed-roles": account.roles,
        "x-hasura-default-role": account.default_role,
        "x-hasura-user-id": account.user_id,
        "x-hasura-user-is-anonymous": "false",
    }


def create_access_token(account: Account, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed access token for an account"""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(seconds=jwt_expires_in()))
    to_encode = {
        "sub": account.user_id,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
        "type": "access",
        settings.JWT_CLAIMS_NAMESPACE: build_claims(account),
    }
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode and verify a token. Returns None if the signature or expiry is invalid."""
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
