"""Account and user records as returned by the GraphQL backend"""

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field


class AccountRole(BaseModel):
    role: str


class User(BaseModel):
    """Public profile attached to an account"""
    id: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None


class Account(BaseModel):
    """
    Credentials and verification state of a user.

    ``ticket`` is a single nullable column shared by every verification flow;
    its ``<type>:`` prefix tells the flows apart (see authgate.security.tickets).
    """
    id: str
    email: Optional[str] = None
    new_email: Optional[str] = None
    password_hash: Optional[str] = None
    active: bool = False
    default_role: str
    locale: Optional[str] = None
    ticket: Optional[str] = None
    ticket_expires_at: Optional[datetime] = None
    mfa_enabled: bool = False
    otp_secret: Optional[str] = None
    account_roles: List[AccountRole] = Field(default_factory=list)
    user: User

    @property
    def roles(self) -> List[str]:
        return [account_role.role for account_role in self.account_roles]

    @property
    def user_id(self) -> str:
        return self.user.id


class UserData(BaseModel):
    """User representation returned to clients"""
    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    locale: Optional[str] = None
    default_role: Optional[str] = None
    roles: List[str] = Field(default_factory=list)
    active: bool = False
    mfa_enabled: bool = False

    @classmethod
    def from_account(cls, account: Account) -> "UserData":
        return cls(
            id=account.user.id,
            email=account.email,
            display_name=account.user.display_name,
            avatar_url=account.user.avatar_url,
            locale=account.locale,
            default_role=account.default_role,
            roles=account.roles,
            active=account.active,
            mfa_enabled=account.mfa_enabled,
        )


class MfaChallenge(BaseModel):
    ticket: str


class Session(BaseModel):
    """
    Result of a sign-in or registration.

    Tokens are None when the flow stops before a session is issued
    (pending email verification, pending MFA code).
    """
    jwt_token: Optional[str] = None
    jwt_expires_in: Optional[int] = None
    refresh_token: Optional[str] = None
    user: Optional[UserData] = None
    mfa: Optional[MfaChallenge] = None
