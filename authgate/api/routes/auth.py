"""Registration, sign-in, session and ticket verification routes"""

from fastapi import APIRouter, Depends, HTTPException, status, Request, Header, Query
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, EmailStr, field_validator
from typing import Optional, List
import structlog

from authgate.api.dependencies import get_auth_service, http_error
from authgate.config import settings
from authgate.database.models import Session
from authgate.exceptions import AuthServiceError, TicketError
from authgate.middleware.auth_middleware import AuthContext, get_auth_context
from authgate.middleware.rate_limiting import RateLimiter
from authgate.security.policy import append_query, resolve_redirect
from authgate.security.tickets import LINK_TICKET_TYPES, TicketType
from authgate.services.auth_service import AuthService

logger = structlog.get_logger()

router = APIRouter()

RATE_LIMIT_SIGNIN = RateLimiter("auth:signin", limit=10, window=60)
RATE_LIMIT_REGISTER = RateLimiter("auth:register", limit=5, window=60)
RATE_LIMIT_MAGIC_LINK = RateLimiter("auth:magic_link", limit=3, window=60)
RATE_LIMIT_MFA = RateLimiter("auth:mfa", limit=5, window=60)
RATE_LIMIT_TOKEN = RateLimiter("auth:token", limit=30, window=60)
RATE_LIMIT_VERIFY = RateLimiter("auth:verify", limit=10, window=60)


class UserDataInput(BaseModel):
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None

    @field_validator('display_name')
    @classmethod
    def validate_display_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Display name cannot be empty")
        if len(v) > 100:
            raise ValueError("Display name must be at most 100 characters")
        return v


class RegisterOptions(BaseModel):
    default_role: Optional[str] = None
    allowed_roles: Optional[List[str]] = None


class RegisterRequest(BaseModel):
    email: EmailStr
    password: Optional[str] = None
    locale: Optional[str] = None
    user_data: Optional[UserDataInput] = None
    register_options: Optional[RegisterOptions] = None
    redirect_to: Optional[str] = None


class EmailPasswordRequest(BaseModel):
    email: EmailStr
    password: str


class MagicLinkRequest(BaseModel):
    email: EmailStr
    locale: Optional[str] = None
    redirect_to: Optional[str] = None


class MfaTotpRequest(BaseModel):
    ticket: str
    otp: str


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class SignOutRequest(BaseModel):
    refresh_token: Optional[str] = None
    all: bool = False


@router.post("/register", response_model=Session)
async def register(
    request: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
    admin_secret: Optional[str] = Header(None, alias=settings.ADMIN_SECRET_HEADER),
    _rate_limit: None = Depends(RATE_LIMIT_REGISTER)
):
    """
    Register a new user.

    Without a password a magic link is emailed instead. The session carries
    tokens only when the account is usable right away.
    """
    user_data = request.user_data or UserDataInput()
    options = request.register_options or RegisterOptions()
    try:
        return await service.register(
            email=request.email,
            password=request.password,
            locale=request.locale,
            display_name=user_data.display_name,
            avatar_url=user_data.avatar_url,
            default_role=options.default_role,
            allowed_roles=options.allowed_roles,
            redirect_to=request.redirect_to,
            admin_secret=admin_secret,
        )
    except AuthServiceError as e:
        raise http_error(e)


@router.post("/signin/email-password", response_model=Session)
async def signin_email_password(
    request: EmailPasswordRequest,
    raw_request: Request,
    service: AuthService = Depends(get_auth_service),
):
    """Sign in with email and password"""
    await RATE_LIMIT_SIGNIN.hit(raw_request, identifier=request.email)

    try:
        return await service.sign_in_email_password(request.email, request.password)
    except AuthServiceError as e:
        raise http_error(e)


@router.post("/signin/magic-link")
async def signin_magic_link(
    request: MagicLinkRequest,
    service: AuthService = Depends(get_auth_service),
    _rate_limit: None = Depends(RATE_LIMIT_MAGIC_LINK)
):
    """Email a sign-in link"""
    try:
        await service.sign_in_magic_link(request.email, request.locale, request.redirect_to)
    except AuthServiceError as e:
        raise http_error(e)
    return {"message": "If the email is valid, a sign-in link has been sent"}


@router.post("/signin/mfa/totp", response_model=Session)
async def signin_mfa_totp(
    request: MfaTotpRequest,
    service: AuthService = Depends(get_auth_service),
    _rate_limit: None = Depends(RATE_LIMIT_MFA)
):
    """Finish a sign-in that required a TOTP code"""
    try:
        return await service.sign_in_mfa_totp(request.ticket, request.otp)
    except AuthServiceError as e:
        raise http_error(e)


@router.post("/token", response_model=Session)
async def refresh_token(
    request: RefreshTokenRequest,
    service: AuthService = Depends(get_auth_service),
    _rate_limit: None = Depends(RATE_LIMIT_TOKEN)
):
    """Rotate a refresh token and get a new access token"""
    try:
        return await service.sessions.refresh_session(request.refresh_token)
    except AuthServiceError as e:
        raise http_error(e)


@router.post("/signout")
async def signout(
    request: SignOutRequest,
    service: AuthService = Depends(get_auth_service),
    auth_context: AuthContext = Depends(get_auth_context),
):
    """Revoke the given refresh token, or every token of the user with ``all``"""
    if request.all:
        if not auth_context.is_authenticated:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication required"
            )
        account = await service.store.get_account_by_user_id(auth_context.user_id)
        if account:
            await service.sessions.sign_out_all(account.id)
        return {"message": "Signed out"}

    if not request.refresh_token:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="refresh_token is required"
        )
    await service.sessions.sign_out(request.refresh_token)
    return {"message": "Signed out"}


def _error_redirect(redirect_to: str, error: str, description: str) -> RedirectResponse:
    return RedirectResponse(
        url=append_query(redirect_to, {"error": error, "error_description": description}),
        status_code=status.HTTP_302_FOUND,
    )


@router.get("/verify")
async def verify(
    ticket: str = Query(...),
    type_: str = Query(..., alias="type"),
    redirect_to: Optional[str] = Query(None),
    service: AuthService = Depends(get_auth_service),
    _rate_limit: None = Depends(RATE_LIMIT_VERIFY)
):
    """
    Redeem an emailed ticket.

    Always answers with a redirect to ``redirect_to``: with ``refresh_token``
    and ``type`` on success, with ``error`` and ``error_description``
    otherwise.
    """
    target = resolve_redirect(redirect_to)
    if target is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Redirect URL is not allowed"
        )

    try:
        ticket_type = TicketType(type_)
    except ValueError:
        ticket_type = None
    if ticket_type not in LINK_TICKET_TYPES:
        return _error_redirect(target, "invalid-request", "Unknown ticket type")

    try:
        account = await service.tickets.redeem_ticket(ticket, ticket_type)
    except TicketError as e:
        return _error_redirect(target, "invalid-ticket", e.message)
    except AuthServiceError as e:
        return _error_redirect(target, "invalid-request", e.message)

    session = await service.sessions.issue_session(account)
    logger.info("ticket_verified", user_id=account.user_id, ticket_type=ticket_type.value)
    return RedirectResponse(
        url=append_query(target, {"refresh_token": session.refresh_token, "type": ticket_type.value}),
        status_code=status.HTTP_302_FOUND,
    )
