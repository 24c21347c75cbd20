"""
Authentication and profile schemas
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field


class ProfileRole(str, Enum):
    ADMIN = "admin"
    BRANCH_MANAGER = "branch_manager"


class AuthEvent(str, Enum):
    """Auth state-change events the controller acts on; any other event is ignored."""
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


class AuthUser(BaseModel):
    """Identity record owned by the auth service. Never mutated here."""
    id: str
    email: Optional[str] = None


class AuthSession(BaseModel):
    """Proof of authentication issued by the auth service."""
    access_token: str
    refresh_token: Optional[str] = None
    user: AuthUser


class Profile(BaseModel):
    """Application-level profile (user_profiles row), keyed by the auth user id."""
    id: str
    role: ProfileRole
    branch_id: Optional[str] = None  # branch code, e.g. "NYC01"
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class AuthState:
    """
    Published state snapshot.

    loading=False means the tuple is terminal for the current generation:
    user+profile set, no user, or a failure surfaced in `error`.
    """
    user: Optional[AuthUser] = None
    profile: Optional[Profile] = None
    loading: bool = True
    error: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.profile is not None and self.profile.role == ProfileRole.ADMIN

    @property
    def is_branch_manager(self) -> bool:
        return self.profile is not None and self.profile.role == ProfileRole.BRANCH_MANAGER

    @property
    def branch_id(self) -> Optional[str]:
        return self.profile.branch_id if self.profile else None


# =====================================================
# Request / response schemas
# =====================================================

class CredentialsRequest(BaseModel):
    """Email/password sign-in or sign-up request"""
    email: EmailStr
    password: str = Field(..., min_length=6)


class SignUpResponse(BaseModel):
    user: AuthUser
    # False while email verification is pending (no session issued yet)
    session_active: bool
    message: str


class NavItem(BaseModel):
    label: str
    path: str


class AuthStateResponse(BaseModel):
    """Published state as seen by the frontend"""
    user: Optional[AuthUser] = None
    profile: Optional[Profile] = None
    loading: bool
    error: Optional[str] = None
    is_admin: bool = False
    is_branch_manager: bool = False
    branch_id: Optional[str] = None
    guard: str
    navigation: List[NavItem] = []
    redirect_to: Optional[str] = None


class ToastResponse(BaseModel):
    level: str
    title: str
    description: Optional[str] = None
    created_at: datetime
