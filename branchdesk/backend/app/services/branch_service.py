"""
Branch Service - branches with their manager names
"""
import logging
from typing import Any, Dict, List

from app.schemas.company import BranchCreate, BranchUpdate
from app.services.auth_backend import BRANCHES_TABLE, EMPLOYEES_TABLE, AuthBackend

logger = logging.getLogger(__name__)


class BranchService:
    """CRUD for branches. Visibility is decided by the database's RLS policies."""

    @staticmethod
    def manager_name(branch: Dict[str, Any], employees: List[Dict[str, Any]]) -> str:
        manager_id = branch.get("manager_id")
        for employee in employees:
            if manager_id and employee.get("id") == manager_id:
                return f"{employee.get('first_name', '')} {employee.get('last_name', '')}".strip()
        return "Not assigned"

    @staticmethod
    async def list_branches(backend: AuthBackend) -> List[Dict[str, Any]]:
        """All visible branches, newest first, each with manager_name."""
        branches = await backend.select(BRANCHES_TABLE, order_by="created_at", descending=True)
        employees = await backend.select(EMPLOYEES_TABLE)
        return [
            {**branch, "manager_name": BranchService.manager_name(branch, employees)}
            for branch in branches
        ]

    @staticmethod
    async def create_branch(backend: AuthBackend, data: BranchCreate) -> Dict[str, Any]:
        row = await backend.insert(BRANCHES_TABLE, data.model_dump())
        logger.info("Created branch %s (%s)", row.get("id"), data.name)
        return row

    @staticmethod
    async def update_branch(backend: AuthBackend, branch_id: str, data: BranchUpdate) -> Dict[str, Any]:
        return await backend.update(BRANCHES_TABLE, branch_id, data.model_dump(exclude_unset=True))

    @staticmethod
    async def delete_branch(backend: AuthBackend, branch_id: str) -> None:
        await backend.delete(BRANCHES_TABLE, branch_id)
        logger.info("Deleted branch %s", branch_id)
