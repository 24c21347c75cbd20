"""
Employee Service
"""
import logging
from typing import Any, Dict, List, Optional

from app.schemas.employee import EmployeeCreate, EmployeeUpdate
from app.services.auth_backend import EMPLOYEES_TABLE, AuthBackend

logger = logging.getLogger(__name__)


def branch_filter(branch_id: Optional[str]) -> Dict[str, Any]:
    """eq-filter for a branch scope (no filter when scope is None)."""
    return {"branch_id": branch_id} if branch_id else {}


class EmployeeService:
    """CRUD for employees, optionally scoped to one branch"""

    @staticmethod
    async def list_employees(backend: AuthBackend, branch_id: Optional[str] = None) -> List[Dict[str, Any]]:
        return await backend.select(
            EMPLOYEES_TABLE,
            filters=branch_filter(branch_id),
            order_by="created_at",
            descending=True,
        )

    @staticmethod
    async def create_employee(
        backend: AuthBackend, data: EmployeeCreate, forced_branch_id: Optional[str] = None
    ) -> Dict[str, Any]:
        row = data.model_dump()
        if forced_branch_id:
            row["branch_id"] = forced_branch_id
        created = await backend.insert(EMPLOYEES_TABLE, row)
        logger.info("Created employee %s in branch %s", created.get("id"), row.get("branch_id"))
        return created

    @staticmethod
    async def update_employee(
        backend: AuthBackend, employee_id: str, data: EmployeeUpdate, forced_branch_id: Optional[str] = None
    ) -> Dict[str, Any]:
        patch = data.model_dump(exclude_unset=True)
        if forced_branch_id:
            patch["branch_id"] = forced_branch_id
        return await backend.update(EMPLOYEES_TABLE, employee_id, patch)

    @staticmethod
    async def delete_employee(backend: AuthBackend, employee_id: str) -> None:
        await backend.delete(EMPLOYEES_TABLE, employee_id)
