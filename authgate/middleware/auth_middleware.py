"""Authentication middleware"""

from typing import Optional, List
from fastapi import Request, HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from authgate.config import settings
from authgate.security.jwt import decode_token

security = HTTPBearer(auto_error=False)


class AuthContext:
    """Identity carried by the bearer access token"""
    def __init__(
        self,
        user_id: Optional[str] = None,
        default_role: Optional[str] = None,
        allowed_roles: Optional[List[str]] = None,
    ):
        self.user_id = user_id
        self.default_role = default_role
        self.allowed_roles = allowed_roles or []

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


async def get_auth_context(request: Request) -> AuthContext:
    """Get authentication context from request - use as dependency"""
    credentials: Optional[HTTPAuthorizationCredentials] = await security(request)
    if not credentials:
        return AuthContext()

    payload = decode_token(credentials.credentials)
    if not payload or payload.get("type") != "access":
        return AuthContext()

    claims = payload.get(settings.JWT_CLAIMS_NAMESPACE, {})
    return AuthContext(
        user_id=payload.get("sub"),
        default_role=claims.get("x-hasura-default-role"),
        allowed_roles=claims.get("x-hasura-allowed-roles"),
    )


async def require_user(auth_context: AuthContext = Depends(get_auth_context)) -> AuthContext:
    """Dependency rejecting requests without a valid access token"""
    if not auth_context.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return auth_context
