"""
Branches API routes
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies import AccessContext, backend_http_error, require_profile
from app.schemas.company import BranchCreate, BranchResponse, BranchUpdate
from app.services.auth_backend import BackendError
from app.services.branch_service import BranchService

router = APIRouter()


@router.get("/", response_model=List[BranchResponse])
async def list_branches(ctx: AccessContext = Depends(require_profile)):
    """List branches (newest first) with manager names"""
    try:
        return await BranchService.list_branches(ctx.backend)
    except BackendError as e:
        raise backend_http_error(e)


@router.post("/", response_model=BranchResponse, status_code=status.HTTP_201_CREATED)
async def create_branch(branch: BranchCreate, ctx: AccessContext = Depends(require_profile)):
    """Create a new branch"""
    try:
        return await BranchService.create_branch(ctx.backend, branch)
    except BackendError as e:
        raise backend_http_error(e)


@router.put("/{branch_id}", response_model=BranchResponse)
async def update_branch(branch_id: str, branch: BranchUpdate, ctx: AccessContext = Depends(require_profile)):
    """Update branch"""
    if not branch.model_dump(exclude_unset=True):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    try:
        return await BranchService.update_branch(ctx.backend, branch_id, branch)
    except BackendError as e:
        raise backend_http_error(e)


@router.delete("/{branch_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_branch(branch_id: str, ctx: AccessContext = Depends(require_profile)):
    """Delete branch"""
    try:
        await BranchService.delete_branch(ctx.backend, branch_id)
    except BackendError as e:
        raise backend_http_error(e)
