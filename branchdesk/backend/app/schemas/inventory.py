"""
Inventory schemas
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class InventoryItemBase(BaseModel):
    """Inventory item base schema"""
    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    quantity: int = Field(..., ge=0)
    price: float = Field(..., ge=0)
    reorder_point: int = Field(0, ge=0)
    branch_id: Optional[str] = Field(None, description="Branch code; forced to the manager's branch for branch managers")


class InventoryItemCreate(InventoryItemBase):
    """Create inventory item request"""
    pass


class InventoryItemUpdate(BaseModel):
    """Update inventory item request"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=0)
    price: Optional[float] = Field(None, ge=0)
    reorder_point: Optional[int] = Field(None, ge=0)
    branch_id: Optional[str] = None


class InventoryItemResponse(InventoryItemBase):
    """Inventory item response"""
    id: str
    created_at: Optional[datetime] = None
    low_stock: bool = False  # quantity <= LOW_STOCK_THRESHOLD
    branch_name: str = "Unknown Branch"
