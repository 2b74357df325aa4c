"""Dashboard router for the admin overview."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mindnamo.core.database import aget_db
from mindnamo.core.security import require_unlocked_admin
from mindnamo.models.account import Account
from mindnamo.services import SettlementService

router = APIRouter(
    prefix="/dashboard",
    tags=["dashboard"]
)


@router.get("/stats")
async def get_dashboard_stats(
    current_admin: Account = Depends(require_unlocked_admin),
    db: AsyncSession = Depends(aget_db)
):
    return await SettlementService.dashboard_overview(db)


@router.get("/financial/unsettled")
async def get_unsettled_funds(
    current_admin: Account = Depends(require_unlocked_admin),
    db: AsyncSession = Depends(aget_db)
):
    return await SettlementService.unsettled_breakdown(db)


@router.get("/financial/refunds")
async def get_refund_liability(
    current_admin: Account = Depends(require_unlocked_admin),
    db: AsyncSession = Depends(aget_db)
):
    return await SettlementService.refund_liability(db)
