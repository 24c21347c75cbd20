"""
Employee schemas
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime


class EmployeeBase(BaseModel):
    """Employee base schema"""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    position: str = Field(..., min_length=1, max_length=100)
    salary: float = Field(..., ge=0)
    branch_id: Optional[str] = Field(None, description="Branch code; forced to the manager's branch for branch managers")


class EmployeeCreate(EmployeeBase):
    """Create employee request"""
    pass


class EmployeeUpdate(BaseModel):
    """Update employee request"""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    position: Optional[str] = None
    salary: Optional[float] = Field(None, ge=0)
    branch_id: Optional[str] = None


class EmployeeResponse(EmployeeBase):
    """Employee response"""
    id: str
    email: str
    created_at: Optional[datetime] = None
