"""Service dependencies shared by the routers"""

from fastapi import Depends, HTTPException
from authgate.database.store import AccountStore, get_store
from authgate.exceptions import AuthServiceError
from authgate.services.auth_service import AuthService
from authgate.services.notification_service import NotificationService, get_notification_service
from authgate.services.oauth_service import OAuthService
from authgate.services.user_service import UserService


def get_auth_service(
    store: AccountStore = Depends(get_store),
    notifications: NotificationService = Depends(get_notification_service),
) -> AuthService:
    return AuthService(store, notifications)


def get_user_service(
    store: AccountStore = Depends(get_store),
    notifications: NotificationService = Depends(get_notification_service),
) -> UserService:
    return UserService(store, notifications)


def get_oauth_service(
    store: AccountStore = Depends(get_store),
    notifications: NotificationService = Depends(get_notification_service),
) -> OAuthService:
    return OAuthService(store, notifications)


def http_error(e: AuthServiceError) -> HTTPException:
    """Translate a service error into the HTTP error returned to the client"""
    return HTTPException(status_code=e.status_code, detail=e.message)
