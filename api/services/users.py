"""HR manager service functions."""

from typing import Any, Dict, List

from api.schemas.users import HRManagerResponse
from database.models.users import HRManager
from database.store import Store


async def list_hr_managers(store: Store) -> List[Dict[str, Any]]:
    """List HR managers. Passwords are never part of the response."""
    async with store.transaction() as tx:
        managers = await tx.hr_managers.list(
            order_by=[HRManager.created_at, HRManager.name]
        )
    return [HRManagerResponse.model_validate(m).to_wire() for m in managers]
