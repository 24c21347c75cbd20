"""
Sales Service - sales records and dashboard totals
"""
import logging
from typing import Any, Dict, List, Optional

from app.schemas.sale import SaleCreate
from app.services.auth_backend import (
    BRANCHES_TABLE,
    EMPLOYEES_TABLE,
    INVENTORY_TABLE,
    SALES_TABLE,
    AuthBackend,
)
from app.services.employee_service import branch_filter
from app.services.inventory_service import InventoryService

logger = logging.getLogger(__name__)


class SalesService:
    """Sales list/record plus the aggregate cards shown on the dashboard"""

    @staticmethod
    async def list_sales(backend: AuthBackend, branch_id: Optional[str] = None) -> List[Dict[str, Any]]:
        return await backend.select(
            SALES_TABLE,
            filters=branch_filter(branch_id),
            order_by="created_at",
            descending=True,
        )

    @staticmethod
    async def record_sale(
        backend: AuthBackend, data: SaleCreate, forced_branch_id: Optional[str] = None
    ) -> Dict[str, Any]:
        row = data.model_dump()
        if forced_branch_id:
            row["branch_id"] = forced_branch_id
        created = await backend.insert(SALES_TABLE, row)
        logger.info("Recorded sale %s: %s x item %s", created.get("id"), data.quantity, data.item_id)
        return created

    @staticmethod
    async def dashboard_summary(backend: AuthBackend, branch_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Totals for the dashboard cards.

        Sales, employees and inventory are counted within the branch scope;
        branches are counted as the user can see them.
        """
        scope = branch_filter(branch_id)
        sales = await backend.select(SALES_TABLE, filters=scope)
        employees = await backend.select(EMPLOYEES_TABLE, filters=scope)
        items = await backend.select(INVENTORY_TABLE, filters=scope)
        if branch_id:
            branches = [b for b in await backend.select(BRANCHES_TABLE) if branch_id in (b.get("branch_code"), b.get("id"))]
        else:
            branches = await backend.select(BRANCHES_TABLE)
        return {
            "total_sales": round(sum(float(s.get("total_amount") or 0) for s in sales), 2),
            "employees": len(employees),
            "inventory_items": len(items),
            "branches": len(branches),
            "low_stock_items": sum(1 for item in items if InventoryService.is_low_stock(item)),
            "branch_id": branch_id,
        }
