"""Routes for the signed-in user, plus the unauthenticated recovery flows"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr
from typing import Optional

from authgate.api.dependencies import get_user_service, http_error
from authgate.database.models import UserData
from authgate.exceptions import AuthServiceError
from authgate.middleware.auth_middleware import AuthContext, require_user
from authgate.middleware.rate_limiting import RateLimiter
from authgate.services.user_service import UserService

router = APIRouter()

RATE_LIMIT_EMAIL_CHANGE = RateLimiter("user:email_change", limit=3, window=60)
RATE_LIMIT_RESEND = RateLimiter("user:resend_verification", limit=3, window=60)
RATE_LIMIT_RESET = RateLimiter("user:password_reset", limit=3, window=60)
RATE_LIMIT_MFA = RateLimiter("user:mfa", limit=5, window=60)


class EmailChangeRequest(BaseModel):
    new_email: EmailStr
    redirect_to: Optional[str] = None


class EmailRequest(BaseModel):
    email: EmailStr
    redirect_to: Optional[str] = None


class NewPasswordRequest(BaseModel):
    new_password: str


class SetMfaRequest(BaseModel):
    code: str
    active_mfa_type: Optional[str] = None


@router.get("/user", response_model=UserData)
async def get_user(
    auth_context: AuthContext = Depends(require_user),
    service: UserService = Depends(get_user_service),
):
    """Get the signed-in user"""
    try:
        account = await service.get_account(auth_context.user_id)
    except AuthServiceError as e:
        raise http_error(e)
    return UserData.from_account(account)


@router.post("/user/email/change")
async def change_email(
    request: EmailChangeRequest,
    auth_context: AuthContext = Depends(require_user),
    service: UserService = Depends(get_user_service),
    _rate_limit: None = Depends(RATE_LIMIT_EMAIL_CHANGE)
):
    """Email a confirmation link to the new address"""
    try:
        await service.request_email_change(
            auth_context.user_id, request.new_email, request.redirect_to
        )
    except AuthServiceError as e:
        raise http_error(e)
    return {"message": "A confirmation link has been sent to the new email address"}


@router.post("/user/email/send-verification-email")
async def send_verification_email(
    request: EmailRequest,
    service: UserService = Depends(get_user_service),
    _rate_limit: None = Depends(RATE_LIMIT_RESEND)
):
    """Re-send the verification link of an inactive account"""
    try:
        await service.send_verification_email(request.email, request.redirect_to)
    except AuthServiceError as e:
        raise http_error(e)
    return {"message": "If the account needs verification, an email has been sent"}


@router.post("/user/password/reset")
async def reset_password(
    request: EmailRequest,
    service: UserService = Depends(get_user_service),
    _rate_limit: None = Depends(RATE_LIMIT_RESET)
):
    """Email a password reset link"""
    try:
        await service.request_password_reset(request.email, request.redirect_to)
    except AuthServiceError as e:
        raise http_error(e)
    return {"message": "If the email exists, a password reset link has been sent"}


@router.post("/user/password")
async def change_password(
    request: NewPasswordRequest,
    auth_context: AuthContext = Depends(require_user),
    service: UserService = Depends(get_user_service),
):
    """Set a new password; every refresh token of the user is revoked"""
    try:
        await service.change_password(auth_context.user_id, request.new_password)
    except AuthServiceError as e:
        raise http_error(e)
    return {"message": "Password changed"}


@router.get("/mfa/totp/generate")
async def generate_totp(
    auth_context: AuthContext = Depends(require_user),
    service: UserService = Depends(get_user_service),
):
    """Create a TOTP secret and its QR code"""
    try:
        return await service.generate_totp(auth_context.user_id)
    except AuthServiceError as e:
        raise http_error(e)


@router.post("/user/mfa")
async def set_mfa(
    request: SetMfaRequest,
    auth_context: AuthContext = Depends(require_user),
    service: UserService = Depends(get_user_service),
    _rate_limit: None = Depends(RATE_LIMIT_MFA)
):
    """Enable (``totp``) or disable (null) MFA"""
    try:
        enabled = await service.set_mfa(
            auth_context.user_id, request.code, request.active_mfa_type
        )
    except AuthServiceError as e:
        raise http_error(e)
    return {"mfa_enabled": enabled}
