"""Admin endpoints for account management."""

import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mindnamo.core.database import aget_db
from mindnamo.core.security import require_unlocked_admin
from mindnamo.models.account import Account
from mindnamo.schemas.accountSchema import (
    AccountCredentials,
    AccountSettings,
    BanRequest,
    BulkBanRequest,
    BulkDeleteRequest,
    CreateAccountRequest,
)
from mindnamo.services import AccountAdminService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/accounts",
    tags=["accounts"]
)


@router.post("", response_model=AccountCredentials, status_code=201)
async def create_account(
    payload: CreateAccountRequest,
    current_admin: Account = Depends(require_unlocked_admin),
    db: AsyncSession = Depends(aget_db)
):
    """
    Create an account with a temporary password.

    The new account must verify its email and choose a password on first
    sign-in. The temporary password is returned only in this response.
    """
    credentials = await AccountAdminService.create_account(db, payload.email, payload.role, payload.name)
    logger.info(f"Account for {credentials.email} created by {current_admin.email}")
    return credentials


@router.post("/ban")
async def set_ban(
    payload: BanRequest,
    current_admin: Account = Depends(require_unlocked_admin),
    db: AsyncSession = Depends(aget_db)
):
    """Ban or unban every account with this email."""
    count = await AccountAdminService.set_ban(db, payload.email, payload.banned)
    return {"success": True, "count": count}


@router.post("/bulk-ban")
async def bulk_set_ban(
    payload: BulkBanRequest,
    current_admin: Account = Depends(require_unlocked_admin),
    db: AsyncSession = Depends(aget_db)
):
    count = await AccountAdminService.bulk_set_ban(db, payload.emails, payload.banned)
    return {"success": True, "count": count}


@router.delete("/{account_id}")
async def delete_account(
    account_id: str,
    current_admin: Account = Depends(require_unlocked_admin),
    db: AsyncSession = Depends(aget_db)
):
    await AccountAdminService.delete_account(db, account_id)
    return {"success": True}


@router.post("/bulk-delete")
async def bulk_delete_accounts(
    payload: BulkDeleteRequest,
    current_admin: Account = Depends(require_unlocked_admin),
    db: AsyncSession = Depends(aget_db)
):
    """Delete the listed accounts that are still unverified; verified ones are skipped."""
    count = await AccountAdminService.bulk_delete_accounts(db, payload.account_ids)
    return {"success": True, "count": count}


@router.patch("/me/settings", response_model=AccountSettings)
async def update_my_settings(
    payload: dict,
    current_admin: Account = Depends(require_unlocked_admin),
    db: AsyncSession = Depends(aget_db)
):
    return await AccountAdminService.update_account_settings(db, current_admin.account_id, payload)
