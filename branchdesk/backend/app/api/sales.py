"""
Sales and dashboard API routes
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.dependencies import AccessContext, backend_http_error, require_profile
from app.schemas.sale import DashboardSummary, SaleCreate, SaleResponse
from app.services.auth_backend import BackendError
from app.services.sales_service import SalesService

router = APIRouter()


@router.get("/sales", response_model=List[SaleResponse])
async def list_sales(
    branch_id: Optional[str] = Query(None, description="Branch filter (admins only; managers are always scoped)"),
    ctx: AccessContext = Depends(require_profile),
):
    """List sales, newest first"""
    try:
        return await SalesService.list_sales(ctx.backend, ctx.scope(branch_id))
    except BackendError as e:
        raise backend_http_error(e)


@router.post("/sales", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
async def record_sale(sale: SaleCreate, ctx: AccessContext = Depends(require_profile)):
    """Record a sale"""
    try:
        return await SalesService.record_sale(ctx.backend, sale, ctx.forced_branch_id)
    except BackendError as e:
        raise backend_http_error(e)


@router.get("/dashboard", response_model=DashboardSummary)
async def dashboard(
    branch_id: Optional[str] = Query(None, description="Branch filter (admins only; managers are always scoped)"),
    ctx: AccessContext = Depends(require_profile),
):
    """Quick stats: total sales, employees, inventory items, branches"""
    try:
        return await SalesService.dashboard_summary(ctx.backend, ctx.scope(branch_id))
    except BackendError as e:
        raise backend_http_error(e)
