"""
API routes for BranchDesk
"""
from .auth import router as auth_router
from .branches import router as branches_router
from .employees import router as employees_router
from .inventory import router as inventory_router
from .sales import router as sales_router

__all__ = [
    "auth_router",
    "branches_router",
    "employees_router",
    "inventory_router",
    "sales_router",
]
