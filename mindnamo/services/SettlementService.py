"""
Financial overview for the admin dashboard.

Everything is recomputed from the ledger on each call; nothing is cached.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mindnamo.constants.constants import (
    AccountRole,
    AppointmentPaymentStatus,
    AppointmentStatus,
    CANCELLATION_FEE_RATE,
    PaymentStatus,
    SETTLEMENT_SPLIT,
)
from mindnamo.core.config import settings
from mindnamo.models.account import Account
from mindnamo.models.appointment import Appointment
from mindnamo.models.expert import Expert
from mindnamo.models.payment import Payment
from mindnamo.models.report import Report
from mindnamo.utils.clock import utcnow

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# Tag reported next to the flat split so consumers know it is not derived
# from the per-payment snapshots.
FLAT_SPLIT_POLICY = "flat_split_on_current_total"


def money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENT)


def flat_split(total: Decimal) -> dict:
    return {part: money(total * rate) for part, rate in SETTLEMENT_SPLIT.items()}


async def unsettled_breakdown(db: AsyncSession) -> dict:
    """
    Funds collected on completed payments that have not been paid out yet.

    `breakdown` applies the flat 60/20/10/10 split to the current total.
    `recorded_breakdown` sums the split stored on each payment when it was
    taken. The two differ whenever a payment was recorded under different
    split rules.
    """
    result = await db.execute(
        select(
            func.count(Payment.payment_id),
            func.coalesce(func.sum(Payment.amount), 0),
            func.coalesce(func.sum(Payment.expert_amount), 0),
            func.coalesce(func.sum(Payment.org_amount), 0),
            func.coalesce(func.sum(Payment.tax), 0),
            func.coalesce(func.sum(Payment.admin_fee), 0),
        ).where(
            Payment.settled == False,  # noqa: E712
            Payment.status == PaymentStatus.completed,
        )
    )
    count, total, expert, org, tax, admin_fee = result.one()
    total = money(total)

    return {
        "count": count,
        "total": total,
        "breakdown": flat_split(total),
        "recorded_breakdown": {
            "expert": money(expert),
            "org": money(org),
            "tax": money(tax),
            "adminNet": money(admin_fee),
        },
        "breakdown_policy": FLAT_SPLIT_POLICY,
    }


async def refund_liability(db: AsyncSession) -> dict:
    """Cancelled bookings that were paid for and still need refunding."""
    result = await db.execute(
        select(
            func.count(Appointment.appointment_id),
            func.coalesce(func.sum(Appointment.price), 0),
        ).where(
            Appointment.status == AppointmentStatus.cancelled,
            Appointment.payment_status == AppointmentPaymentStatus.paid,
        )
    )
    count, total = result.one()
    total = money(total)
    return {
        "totalRefundable": total,
        "pendingCount": count,
        "cancellationFees": money(total * CANCELLATION_FEE_RATE),
    }


def revenue_window_start(today: Optional[date] = None) -> date:
    """Configured start, else Jan 1 of the previous calendar year."""
    if settings.REVENUE_WINDOW_START is not None:
        return settings.REVENUE_WINDOW_START
    today = today or utcnow().date()
    return date(today.year - 1, 1, 1)


async def trailing_revenue(db: AsyncSession, window_start: date) -> dict:
    since = datetime.combine(window_start, datetime.min.time())
    result = await db.execute(
        select(func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.status == PaymentStatus.completed,
            Payment.created_at >= since,
        )
    )
    return {
        "gross": money(result.scalar()),
        "since": window_start.isoformat(),
    }


def user_growth_trend(current: int, baseline: int) -> float:
    """Percent change from `baseline` to `current`; 100 when there is no baseline."""
    if baseline == 0:
        return 100.0
    return (current - baseline) / baseline * 100


def format_trend(percentage: float) -> str:
    return f"+{percentage:.1f}%" if percentage > 0 else f"{percentage:.1f}%"


async def user_counts(db: AsyncSession, now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    first_day_current_month = datetime(now.year, now.month, 1)

    total = await db.scalar(
        select(func.count(Account.account_id)).where(Account.role == AccountRole.user)
    )
    baseline = await db.scalar(
        select(func.count(Account.account_id)).where(
            Account.role == AccountRole.user,
            Account.created_at < first_day_current_month,
        )
    )
    growth = user_growth_trend(total, baseline)
    return {"count": total, "baseline": baseline, "growth": growth, "trend": format_trend(growth)}


async def _count(db: AsyncSession, statement) -> int:
    return await db.scalar(statement) or 0


async def dashboard_overview(db: AsyncSession, now: Optional[datetime] = None) -> dict:
    now = now or utcnow()

    # One session cannot run statements concurrently, so these run in order.
    users = await user_counts(db, now)
    experts = await _count(db, select(func.count(Account.account_id)).where(Account.role == AccountRole.expert))
    orgs = await _count(db, select(func.count(Account.account_id)).where(Account.role == AccountRole.organisation))
    pending_experts = await _count(
        db, select(func.count(Expert.expert_id)).where(Expert.under_verification == True)  # noqa: E712
    )
    pending_reports = await _count(
        db, select(func.count(Report.report_id)).where(Report.is_resolved == False)  # noqa: E712
    )

    unsettled = await unsettled_breakdown(db)
    refunds = await refund_liability(db)
    revenue = await trailing_revenue(db, revenue_window_start(now.date()))

    return {
        "users": {"count": users["count"], "trend": users["trend"]},
        "experts": experts,
        "orgs": orgs,
        "pendingExperts": pending_experts,
        "pendingReports": pending_reports,
        "financial": {
            "unsettled": unsettled,
            "refunds": refunds,
            "revenue": revenue,
        },
    }
