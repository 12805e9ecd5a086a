"""Email templates package"""

from .email_templates import (
    EMAIL_TEMPLATES,
    EMAIL_VERIFY,
    EMAIL_CONFIRM_CHANGE,
    SIGNIN_PASSWORDLESS,
    PASSWORD_RESET,
)

__all__ = [
    "EMAIL_TEMPLATES",
    "EMAIL_VERIFY",
    "EMAIL_CONFIRM_CHANGE",
    "SIGNIN_PASSWORDLESS",
    "PASSWORD_RESET",
]
