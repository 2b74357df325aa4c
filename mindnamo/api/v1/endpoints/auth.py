"""Sign-in, session refresh and password change."""

import logging
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mindnamo.constants.constants import AccountRole
from mindnamo.core.config import settings
from mindnamo.core.database import aget_db
from mindnamo.core.errors import Forbidden, RateLimited, Unauthorized
from mindnamo.core.ratelimit import AccountRateLimiter, get_rate_limiter, ip_limiter
from mindnamo.core.security import (
    SessionClaims,
    claims_from_token,
    clear_auth_cookie,
    get_current_session,
    issue_session_token,
    set_auth_cookie,
    verify_password,
)
from mindnamo.models.account import Account
from mindnamo.schemas.accountSchema import LoginRequest, PasswordChangeRequest, SessionResponse
from mindnamo.services import AccountSetupService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


def _session_response(response: Response, account: Account) -> SessionResponse:
    token = issue_session_token(account)
    set_auth_cookie(response, token)
    claims = claims_from_token(token)
    return SessionResponse(
        account_id=claims.account_id,
        email=claims.email,
        role=claims.role,
        force_password_change=claims.force_password_change,
    )


@router.post("/login", response_model=SessionResponse)
@ip_limiter.limit(settings.SIGNIN_IP_RATE_LIMIT)
async def login(
    request: Request,
    payload: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(aget_db),
    limiter: AccountRateLimiter = Depends(get_rate_limiter)
):
    """Email and password sign-in for admin accounts."""
    email = payload.email.lower()
    limit = await limiter.limit(f"signin:{email}")
    if not limit.success:
        raise RateLimited("Too many requests. Try again later.")

    result = await db.execute(
        select(Account).where(Account.email == email, Account.role == AccountRole.admin)
    )
    account = result.scalar_one_or_none()
    if account is None or not verify_password(payload.password, account.password_hash):
        raise Unauthorized("Invalid email or password")
    if account.is_banned:
        raise Forbidden("Account suspended")

    logger.info(f"🔑 Admin {account.account_id} signed in")
    return _session_response(response, account)


@router.post("/session", response_model=SessionResponse)
async def refresh_session(
    response: Response,
    claims: SessionClaims = Depends(get_current_session),
    db: AsyncSession = Depends(aget_db)
):
    """
    Reissue the session from the stored account, picking up a changed
    `force_password_change` without signing in again.
    """
    account = await db.get(Account, claims.account_id)
    if account is None:
        raise Unauthorized("User not found")
    if account.is_banned:
        raise Forbidden("Account suspended")
    return _session_response(response, account)


@router.get("/me", response_model=SessionResponse)
async def me(claims: SessionClaims = Depends(get_current_session)):
    return SessionResponse(
        account_id=claims.account_id,
        email=claims.email,
        role=claims.role,
        force_password_change=claims.force_password_change,
    )


@router.post("/password")
async def change_password(
    payload: PasswordChangeRequest,
    claims: SessionClaims = Depends(get_current_session),
    db: AsyncSession = Depends(aget_db)
):
    await AccountSetupService.change_password(
        db, claims.account_id, payload.current_password, payload.new_password
    )
    return {"success": True}


@router.post("/logout")
async def logout(response: Response):
    clear_auth_cookie(response)
    return {"message": "Logged out successfully"}
