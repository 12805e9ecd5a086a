"""
Core exceptions for authgate.

Service-level errors carry the HTTP status the API layer should answer with.
Anything that is not an AuthServiceError (GraphQL failures, email delivery
failures) is left to propagate and ends up as a 500.
"""

from fastapi import status


class AuthServiceError(Exception):
    """Base exception for business-rule violations"""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequestError(AuthServiceError):
    """Invalid input or a rule the caller can fix"""
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(AuthServiceError):
    """Missing or wrong credentials"""
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(AuthServiceError):
    """Operation disabled by configuration"""
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AuthServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class ProviderNotEnabledError(AuthServiceError):
    """OAuth provider is known but has no credentials configured"""
    status_code = status.HTTP_501_NOT_IMPLEMENTED


class TicketError(AuthServiceError):
    """Ticket is malformed, of the wrong type, expired or already used"""
    status_code = status.HTTP_401_UNAUTHORIZED


class ConfigurationError(AuthServiceError):
    """The service is not configured for the requested flow"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class GraphQLError(Exception):
    """Raised when the GraphQL backend answers with errors"""

    def __init__(self, message: str, errors: list = None):
        super().__init__(message)
        self.errors = errors or []


class EmailDeliveryError(Exception):
    """Raised when an email could not be handed to the transport"""
    pass
