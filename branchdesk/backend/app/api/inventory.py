"""
Inventory API routes
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.dependencies import AccessContext, backend_http_error, require_profile
from app.schemas.inventory import InventoryItemCreate, InventoryItemResponse, InventoryItemUpdate
from app.services.auth_backend import BackendError
from app.services.inventory_service import InventoryService

router = APIRouter()


@router.get("/", response_model=List[InventoryItemResponse])
async def list_inventory(
    q: Optional[str] = Query(None, description="Search name or description"),
    stock: str = Query("all", pattern="^(all|low)$", description="all or low (at/below LOW_STOCK_THRESHOLD)"),
    branch_id: Optional[str] = Query(None, description="Branch filter (admins only; managers are always scoped)"),
    ctx: AccessContext = Depends(require_profile),
):
    """
    Inventory items, newest first.
    Each item carries low_stock and branch_name for the inventory cards.
    """
    try:
        return await InventoryService.list_items(ctx.backend, ctx.scope(branch_id), q=q, stock=stock)
    except BackendError as e:
        raise backend_http_error(e)


@router.post("/", response_model=InventoryItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(item: InventoryItemCreate, ctx: AccessContext = Depends(require_profile)):
    """Add an inventory item"""
    try:
        return await InventoryService.create_item(ctx.backend, item, ctx.forced_branch_id)
    except BackendError as e:
        raise backend_http_error(e)


@router.put("/{item_id}", response_model=InventoryItemResponse)
async def update_item(item_id: str, item: InventoryItemUpdate, ctx: AccessContext = Depends(require_profile)):
    """Update an inventory item"""
    if not item.model_dump(exclude_unset=True):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    try:
        return await InventoryService.update_item(ctx.backend, item_id, item, ctx.forced_branch_id)
    except BackendError as e:
        raise backend_http_error(e)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(item_id: str, ctx: AccessContext = Depends(require_profile)):
    """Delete an inventory item"""
    try:
        await InventoryService.delete_item(ctx.backend, item_id)
    except BackendError as e:
        raise backend_http_error(e)
