"""
Inventory Service - stock list, search and low-stock flags
"""
import logging
from typing import Any, Dict, List, Optional

from app.config import settings
from app.schemas.inventory import InventoryItemCreate, InventoryItemUpdate
from app.services.auth_backend import BRANCHES_TABLE, INVENTORY_TABLE, AuthBackend
from app.services.employee_service import branch_filter

logger = logging.getLogger(__name__)

STOCK_FILTERS = ("all", "low")


class InventoryService:
    """Service for inventory items"""

    @staticmethod
    def is_low_stock(item: Dict[str, Any], threshold: Optional[int] = None) -> bool:
        limit = settings.LOW_STOCK_THRESHOLD if threshold is None else threshold
        return (item.get("quantity") or 0) <= limit

    @staticmethod
    def matches_search(item: Dict[str, Any], q: Optional[str]) -> bool:
        """Case-insensitive match on name or description."""
        if not q:
            return True
        needle = q.strip().lower()
        return needle in (item.get("name") or "").lower() or needle in (item.get("description") or "").lower()

    @staticmethod
    async def list_items(
        backend: AuthBackend,
        branch_id: Optional[str] = None,
        q: Optional[str] = None,
        stock: str = "all",
    ) -> List[Dict[str, Any]]:
        """
        Items for a branch scope (all branches when None), newest first.

        Each item gets `low_stock` and `branch_name`. stock="low" keeps only
        items at or below LOW_STOCK_THRESHOLD.
        """
        if stock not in STOCK_FILTERS:
            raise ValueError(f"stock must be one of {', '.join(STOCK_FILTERS)}")
        items = await backend.select(
            INVENTORY_TABLE,
            filters=branch_filter(branch_id),
            order_by="created_at",
            descending=True,
        )
        branches = await backend.select(BRANCHES_TABLE)
        # records reference branches by code (or, for older rows, by id)
        names = {}
        for branch in branches:
            names[branch.get("id")] = branch.get("name")
            if branch.get("branch_code"):
                names[branch["branch_code"]] = branch.get("name")

        result = []
        for item in items:
            low = InventoryService.is_low_stock(item)
            if stock == "low" and not low:
                continue
            if not InventoryService.matches_search(item, q):
                continue
            result.append({
                **item,
                "low_stock": low,
                "branch_name": names.get(item.get("branch_id")) or "Unknown Branch",
            })
        low_count = sum(1 for item in result if item["low_stock"])
        if low_count:
            logger.info("%d low-stock item(s) in scope %s", low_count, branch_id or "all")
        return result

    @staticmethod
    async def create_item(
        backend: AuthBackend, data: InventoryItemCreate, forced_branch_id: Optional[str] = None
    ) -> Dict[str, Any]:
        row = data.model_dump()
        if forced_branch_id:
            row["branch_id"] = forced_branch_id
        created = await backend.insert(INVENTORY_TABLE, row)
        return {**created, "low_stock": InventoryService.is_low_stock(created)}

    @staticmethod
    async def update_item(
        backend: AuthBackend, item_id: str, data: InventoryItemUpdate, forced_branch_id: Optional[str] = None
    ) -> Dict[str, Any]:
        patch = data.model_dump(exclude_unset=True)
        if forced_branch_id:
            patch["branch_id"] = forced_branch_id
        updated = await backend.update(INVENTORY_TABLE, item_id, patch)
        return {**updated, "low_stock": InventoryService.is_low_stock(updated)}

    @staticmethod
    async def delete_item(backend: AuthBackend, item_id: str) -> None:
        await backend.delete(INVENTORY_TABLE, item_id)
