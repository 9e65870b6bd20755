"""HR manager endpoints (read-only reference data)."""

from fastapi import APIRouter, Depends

from api.dependencies import get_store
from api.services import users as user_service
from database.store import Store

router = APIRouter(prefix="/hr-managers", tags=["hr-managers"])


@router.get("", summary="List HR Managers")
async def list_hr_managers(store: Store = Depends(get_store)):
    return await user_service.list_hr_managers(store)
