"""
Business logic services for BranchDesk
"""
from .branch_service import BranchService
from .employee_service import EmployeeService
from .inventory_service import InventoryService
from .sales_service import SalesService

__all__ = [
    "BranchService",
    "EmployeeService",
    "InventoryService",
    "SalesService",
]
