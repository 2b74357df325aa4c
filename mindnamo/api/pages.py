"""
Navigable pages. The route gate has already decided the caller may be
here; each page returns the data its screen needs.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mindnamo.core.database import aget_db
from mindnamo.core.security import require_active_admin, require_unlocked_admin
from mindnamo.models.account import Account
from mindnamo.services import AccountSetupService, SettlementService

router = APIRouter(tags=["pages"], include_in_schema=False)


@router.get("/login")
async def login_page():
    return {"page": "login"}


@router.get("/setup-account")
async def setup_account_page(
    current_admin: Account = Depends(require_active_admin),
    db: AsyncSession = Depends(aget_db)
):
    profile = await AccountSetupService.get_setup_profile(db, current_admin.account_id)
    status = await AccountSetupService.get_setup_status(db, current_admin.account_id)
    return {"page": "setup-account", "profile": profile, "status": status}


@router.get("/dashboard")
async def dashboard_page(
    current_admin: Account = Depends(require_unlocked_admin),
    db: AsyncSession = Depends(aget_db)
):
    return {"page": "dashboard", "stats": await SettlementService.dashboard_overview(db)}
