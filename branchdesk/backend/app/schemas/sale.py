"""
Sales schemas
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class SaleBase(BaseModel):
    """Sale base schema"""
    item_id: str
    quantity: int = Field(..., gt=0)
    total_amount: float = Field(..., ge=0)
    employee_id: Optional[str] = None
    branch_id: Optional[str] = Field(None, description="Branch code; forced to the manager's branch for branch managers")


class SaleCreate(SaleBase):
    """Record a sale"""
    pass


class SaleResponse(SaleBase):
    """Sale response"""
    id: str
    created_at: Optional[datetime] = None


class DashboardSummary(BaseModel):
    """Quick stats cards on the dashboard"""
    total_sales: float
    employees: int
    inventory_items: int
    branches: int
    low_stock_items: int
    branch_id: Optional[str] = None  # scope the numbers were computed for (None = all branches)
