"""
Employees API routes

Branch managers only see and write employees of their own branch.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.dependencies import AccessContext, backend_http_error, require_profile
from app.schemas.employee import EmployeeCreate, EmployeeResponse, EmployeeUpdate
from app.services.auth_backend import BackendError
from app.services.employee_service import EmployeeService

router = APIRouter()


@router.get("/", response_model=List[EmployeeResponse])
async def list_employees(
    branch_id: Optional[str] = Query(None, description="Branch filter (admins only; managers are always scoped)"),
    ctx: AccessContext = Depends(require_profile),
):
    """List employees, newest first"""
    try:
        return await EmployeeService.list_employees(ctx.backend, ctx.scope(branch_id))
    except BackendError as e:
        raise backend_http_error(e)


@router.post("/", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(employee: EmployeeCreate, ctx: AccessContext = Depends(require_profile)):
    """Add an employee"""
    try:
        return await EmployeeService.create_employee(ctx.backend, employee, ctx.forced_branch_id)
    except BackendError as e:
        raise backend_http_error(e)


@router.put("/{employee_id}", response_model=EmployeeResponse)
async def update_employee(employee_id: str, employee: EmployeeUpdate, ctx: AccessContext = Depends(require_profile)):
    """Update employee"""
    if not employee.model_dump(exclude_unset=True):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    try:
        return await EmployeeService.update_employee(ctx.backend, employee_id, employee, ctx.forced_branch_id)
    except BackendError as e:
        raise backend_http_error(e)


@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_employee(employee_id: str, ctx: AccessContext = Depends(require_profile)):
    """Delete employee"""
    try:
        await EmployeeService.delete_employee(ctx.backend, employee_id)
    except BackendError as e:
        raise backend_http_error(e)
