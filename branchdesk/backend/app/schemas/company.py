"""
Branch schemas
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class BranchBase(BaseModel):
    """Branch base schema"""
    name: str = Field(..., min_length=1, max_length=255)
    address: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1, max_length=50)
    manager_id: Optional[str] = Field(None, description="Employee id of the branch manager")
    branch_code: Optional[str] = Field(None, max_length=50, description="Code stored in user_profiles.branch_id and record branch_id")


class BranchCreate(BranchBase):
    """Create branch request"""
    pass


class BranchUpdate(BaseModel):
    """Update branch request"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    address: Optional[str] = None
    phone: Optional[str] = None
    manager_id: Optional[str] = None
    branch_code: Optional[str] = None


class BranchResponse(BranchBase):
    """Branch response"""
    id: str
    created_at: Optional[datetime] = None
    manager_name: str = "Not assigned"  # Populated from employees
