"""
Pydantic schemas for request/response validation
"""
from .auth import AuthSession, AuthStateResponse, AuthUser, CredentialsRequest, Profile, ProfileRole, SignUpResponse
from .company import BranchCreate, BranchResponse, BranchUpdate
from .employee import EmployeeCreate, EmployeeResponse, EmployeeUpdate
from .inventory import InventoryItemCreate, InventoryItemResponse, InventoryItemUpdate
from .sale import DashboardSummary, SaleCreate, SaleResponse

__all__ = [
    # Auth
    "AuthSession",
    "AuthStateResponse",
    "AuthUser",
    "CredentialsRequest",
    "Profile",
    "ProfileRole",
    "SignUpResponse",
    # Branch
    "BranchCreate",
    "BranchResponse",
    "BranchUpdate",
    # Employee
    "EmployeeCreate",
    "EmployeeResponse",
    "EmployeeUpdate",
    # Inventory
    "InventoryItemCreate",
    "InventoryItemResponse",
    "InventoryItemUpdate",
    # Sale
    "DashboardSummary",
    "SaleCreate",
    "SaleResponse",
]
