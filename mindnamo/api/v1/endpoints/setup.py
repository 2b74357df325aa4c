"""First-login account setup: verify email, optional profile, set password."""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from mindnamo.core.database import aget_db
from mindnamo.core.ratelimit import AccountRateLimiter, get_rate_limiter
from mindnamo.core.security import issue_session_token, require_active_admin, set_auth_cookie
from mindnamo.models.account import Account
from mindnamo.schemas.setupSchema import (
    FinalizeSetupRequest,
    ProfileUpdateRequest,
    SetupProfile,
    SetupStatus,
    VerifyCodeRequest,
)
from mindnamo.services import AccountSetupService
from mindnamo.services.MailClient import Notifier, get_notifier

router = APIRouter(
    prefix="/setup",
    tags=["setup"]
)


@router.get("/profile", response_model=SetupProfile)
async def get_setup_profile(
    current_admin: Account = Depends(require_active_admin),
    db: AsyncSession = Depends(aget_db)
):
    """Current name, handle, email and photo for pre-filling the setup form."""
    return await AccountSetupService.get_setup_profile(db, current_admin.account_id)


@router.get("/state", response_model=SetupStatus)
async def get_setup_state(
    current_admin: Account = Depends(require_active_admin),
    db: AsyncSession = Depends(aget_db)
):
    return await AccountSetupService.get_setup_status(db, current_admin.account_id)


@router.post("/otp")
async def send_verification_code(
    current_admin: Account = Depends(require_active_admin),
    db: AsyncSession = Depends(aget_db),
    notifier: Notifier = Depends(get_notifier),
    limiter: AccountRateLimiter = Depends(get_rate_limiter)
):
    return await AccountSetupService.issue_challenge(db, current_admin.account_id, notifier, limiter)


@router.post("/otp/verify")
async def verify_code(
    payload: VerifyCodeRequest,
    current_admin: Account = Depends(require_active_admin),
    db: AsyncSession = Depends(aget_db)
):
    account = await AccountSetupService.validate_challenge(db, current_admin.account_id, payload.code)
    return {"success": True, "setup_state": account.setup_state}


@router.put("/profile")
async def update_profile(
    payload: ProfileUpdateRequest,
    current_admin: Account = Depends(require_active_admin),
    db: AsyncSession = Depends(aget_db)
):
    account = await AccountSetupService.update_profile(
        db,
        current_admin.account_id,
        name=payload.name,
        handle=payload.handle,
        photo=payload.photo,
    )
    return {"success": True, "setup_state": account.setup_state}


@router.post("/password")
async def finalize_setup(
    payload: FinalizeSetupRequest,
    response: Response,
    current_admin: Account = Depends(require_active_admin),
    db: AsyncSession = Depends(aget_db)
):
    """Set the permanent password. Unlocks the account and refreshes the session cookie."""
    account = await AccountSetupService.finalize_setup(db, current_admin.account_id, payload.password)
    set_auth_cookie(response, issue_session_token(account))
    return {"success": True, "setup_state": account.setup_state}
