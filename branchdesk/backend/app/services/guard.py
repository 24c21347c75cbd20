"""
Route guard and role-based navigation.

Both are pure functions of the published AuthState. Role flags only decide
what the UI offers; access is enforced by the database's row-level security.
"""
from enum import Enum
from typing import Dict, List, Optional

from app.schemas.auth import AuthState, NavItem, ProfileRole


class GuardDecision(str, Enum):
    LOADING = "loading"
    REDIRECT_LOGIN = "redirect_login"
    PROFILE_MISSING = "profile_missing"
    ALLOW = "allow"


NAVIGATION: List[NavItem] = [
    NavItem(label="Dashboard", path="/"),
    NavItem(label="Employees", path="/employees"),
    NavItem(label="Inventory", path="/inventory"),
    NavItem(label="Branches", path="/branches"),
    NavItem(label="Sales", path="/sales"),
]

# Paths hidden per role
HIDDEN_PATHS: Dict[ProfileRole, set] = {
    ProfileRole.ADMIN: set(),
    ProfileRole.BRANCH_MANAGER: {"/branches"},
}


def evaluate(state: AuthState) -> GuardDecision:
    """Decide what a protected surface shows for this state."""
    if state.loading:
        return GuardDecision.LOADING
    if state.user is None:
        return GuardDecision.REDIRECT_LOGIN
    if state.profile is None:
        # signed in but no profile: explicit error + retry, never a silent login redirect
        return GuardDecision.PROFILE_MISSING
    return GuardDecision.ALLOW


def navigation_for(state: AuthState) -> List[NavItem]:
    """Navigation entries for the resolved role (empty until a profile is resolved)."""
    if evaluate(state) != GuardDecision.ALLOW:
        return []
    hidden = HIDDEN_PATHS.get(state.profile.role, set())
    return [item for item in NAVIGATION if item.path not in hidden]


def branch_scope(state: AuthState, requested: Optional[str] = None) -> Optional[str]:
    """
    Branch filter for employee/inventory/sales queries.

    Branch managers are always scoped to their own branch; admins get the
    branch they asked for, or None for all branches.
    """
    if state.is_branch_manager:
        return state.branch_id
    return requested or None
