"""OAuth provider sign-in routes"""

import hmac

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel
from typing import Optional
import structlog

from authgate.api.dependencies import get_oauth_service, http_error
from authgate.config import settings
from authgate.exceptions import AuthServiceError
from authgate.security.policy import append_query
from authgate.services.auth_service import check_redirect
from authgate.services.oauth import OAuthError, enabled_providers
from authgate.services.oauth_service import OAuthService

logger = structlog.get_logger()

router = APIRouter(prefix="/signin", tags=["OAuth"])


class OAuthCallbackRequest(BaseModel):
    """Callback for providers that POST the authorization code"""
    code: str
    state: str


@router.get("/providers")
async def list_oauth_providers():
    """Providers that are registered and have credentials"""
    return {"providers": enabled_providers()}


@router.get("/provider/{provider}")
async def oauth_signin(
    provider: str,
    redirect_to: Optional[str] = None,
    service: OAuthService = Depends(get_oauth_service),
):
    """
    Redirect to the provider's authorization page.

    The state and the final redirect target are kept in HTTP-only cookies
    until the provider calls back.
    """
    try:
        target = check_redirect(redirect_to)
        auth_url, state = service.initiate(provider)
    except AuthServiceError as e:
        raise http_error(e)

    response = RedirectResponse(url=auth_url, status_code=status.HTTP_302_FOUND)
    for key, value in (
        (settings.OAUTH_STATE_COOKIE_NAME, state),
        (settings.OAUTH_REDIRECT_COOKIE_NAME, target),
    ):
        response.set_cookie(
            key=key,
            value=value,
            max_age=settings.OAUTH_STATE_COOKIE_MAX_AGE,
            httponly=True,
            samesite="lax",
            secure=settings.APP_ENV == "production",
        )
    return response


async def _complete(
    provider: str,
    code: str,
    state: str,
    request: Request,
    service: OAuthService,
) -> RedirectResponse:
    stored_state = request.cookies.get(settings.OAUTH_STATE_COOKIE_NAME)
    if not stored_state or not hmac.compare_digest(stored_state, state):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid state token. Possible CSRF attack."
        )

    try:
        session = await service.complete(provider, code)
    except OAuthError as e:
        logger.warning("oauth_failed", provider=provider, error=str(e), details=e.details)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"OAuth authentication failed: {str(e)}"
        )
    except AuthServiceError as e:
        raise http_error(e)

    target = request.cookies.get(settings.OAUTH_REDIRECT_COOKIE_NAME) or settings.CLIENT_URL
    response = RedirectResponse(
        url=append_query(target, {"refresh_token": session.refresh_token}),
        status_code=status.HTTP_302_FOUND,
    )
    response.delete_cookie(settings.OAUTH_STATE_COOKIE_NAME)
    response.delete_cookie(settings.OAUTH_REDIRECT_COOKIE_NAME)
    return response


@router.get("/provider/{provider}/callback")
async def oauth_callback(
    provider: str,
    code: str,
    state: str,
    request: Request,
    service: OAuthService = Depends(get_oauth_service),
):
    """Provider redirect target: exchange the code and sign the user in"""
    return await _complete(provider, code, state, request, service)


@router.post("/provider/{provider}/callback")
async def oauth_callback_post(
    provider: str,
    request_data: OAuthCallbackRequest,
    request: Request,
    service: OAuthService = Depends(get_oauth_service),
):
    """Same as the GET callback for providers that POST the code"""
    return await _complete(provider, request_data.code, request_data.state, request, service)
