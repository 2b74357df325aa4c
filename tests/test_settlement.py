import uuid
from datetime import date, datetime
from decimal import Decimal

import pytest

from conftest import make_account, make_unlocked_admin, sign_in
from mindnamo.constants.constants import (
    AccountRole,
    AppointmentPaymentStatus,
    AppointmentStatus,
    PaymentStatus,
)
from mindnamo.core.config import settings
from mindnamo.models.appointment import Appointment
from mindnamo.models.payment import Payment
from mindnamo.services import SettlementService


async def add_payment(db, amount, status=PaymentStatus.completed, settled=False, created_at=None, **snapshot):
    payment = Payment(
        amount=Decimal(amount),
        gateway_id=f"pi_{uuid.uuid4().hex}",
        status=status,
        settled=settled,
        **snapshot,
    )
    if created_at is not None:
        payment.created_at = created_at
    db.add(payment)
    await db.commit()
    return payment


async def add_cancelled_booking(db, price, payment_status=AppointmentPaymentStatus.paid, status=AppointmentStatus.cancelled):
    appointment = Appointment(
        account_id=str(uuid.uuid4()),
        expert_id=str(uuid.uuid4()),
        appointment_date=datetime(2026, 3, 1, 10, 0),
        appointment_time="10:00",
        service_name="Counselling",
        appointment_type="video",
        duration=50,
        price=Decimal(price),
        status=status,
        payment_status=payment_status,
    )
    db.add(appointment)
    await db.commit()
    return appointment


async def test_empty_ledger_reports_zeros(db):
    summary = await SettlementService.unsettled_breakdown(db)

    assert summary["count"] == 0
    assert summary["total"] == Decimal("0.00")
    assert all(value == Decimal("0.00") for value in summary["breakdown"].values())
    assert all(value == Decimal("0.00") for value in summary["recorded_breakdown"].values())


async def test_flat_split_of_a_single_entry(db):
    await add_payment(db, "100.00")

    summary = await SettlementService.unsettled_breakdown(db)

    assert summary["count"] == 1
    assert summary["total"] == Decimal("100.00")
    assert summary["breakdown"] == {
        "expert": Decimal("60.00"),
        "org": Decimal("20.00"),
        "tax": Decimal("10.00"),
        "adminNet": Decimal("10.00"),
    }


async def test_recorded_snapshot_is_reported_alongside_flat_split(db):
    await add_payment(
        db,
        "100.00",
        expert_amount=Decimal("70.00"),
        org_amount=Decimal("15.00"),
        tax=Decimal("9.09"),
        admin_fee=Decimal("5.91"),
    )

    summary = await SettlementService.unsettled_breakdown(db)

    assert summary["breakdown"]["expert"] == Decimal("60.00")
    assert summary["recorded_breakdown"] == {
        "expert": Decimal("70.00"),
        "org": Decimal("15.00"),
        "tax": Decimal("9.09"),
        "adminNet": Decimal("5.91"),
    }
    assert summary["breakdown_policy"] == "flat_split_on_current_total"


async def test_only_unsettled_completed_payments_count(db):
    await add_payment(db, "40.00")
    await add_payment(db, "60.00")
    await add_payment(db, "500.00", settled=True)
    await add_payment(db, "700.00", status=PaymentStatus.pending)
    await add_payment(db, "900.00", status=PaymentStatus.refunded)

    summary = await SettlementService.unsettled_breakdown(db)

    assert summary["count"] == 2
    assert summary["total"] == Decimal("100.00")


async def test_refund_liability_and_cancellation_fee(db):
    await add_cancelled_booking(db, "50.00")
    await add_cancelled_booking(db, "80.00", payment_status=AppointmentPaymentStatus.refunded)
    await add_cancelled_booking(db, "120.00", status=AppointmentStatus.confirmed)

    refunds = await SettlementService.refund_liability(db)

    assert refunds == {
        "totalRefundable": Decimal("50.00"),
        "pendingCount": 1,
        "cancellationFees": Decimal("5.00"),
    }


async def test_trailing_revenue_respects_window(db):
    await add_payment(db, "30.00", settled=True, created_at=datetime(2025, 6, 1))
    await add_payment(db, "20.00", created_at=datetime(2026, 2, 1))
    await add_payment(db, "999.00", created_at=datetime(2024, 12, 31))
    await add_payment(db, "5.00", status=PaymentStatus.failed, created_at=datetime(2026, 2, 1))

    revenue = await SettlementService.trailing_revenue(db, date(2025, 1, 1))

    assert revenue == {"gross": Decimal("50.00"), "since": "2025-01-01"}


def test_revenue_window_defaults_to_start_of_previous_year(monkeypatch):
    monkeypatch.setattr(settings, "REVENUE_WINDOW_START", None)
    assert SettlementService.revenue_window_start(date(2026, 10, 18)) == date(2025, 1, 1)


def test_revenue_window_can_be_configured(monkeypatch):
    monkeypatch.setattr(settings, "REVENUE_WINDOW_START", date(2024, 7, 1))
    assert SettlementService.revenue_window_start(date(2026, 10, 18)) == date(2024, 7, 1)


@pytest.mark.parametrize(
    "current, baseline, expected, label",
    [
        (5, 0, 100.0, "+100.0%"),
        (0, 0, 100.0, "+100.0%"),
        (15, 10, 50.0, "+50.0%"),
        (8, 10, -20.0, "-20.0%"),
        (10, 10, 0.0, "0.0%"),
    ],
)
def test_user_growth_trend(current, baseline, expected, label):
    growth = SettlementService.user_growth_trend(current, baseline)
    assert growth == pytest.approx(expected)
    assert SettlementService.format_trend(growth) == label


async def test_user_counts_use_start_of_month_baseline(db):
    await make_account(db, role=AccountRole.user, created_at=datetime(2026, 9, 20))
    await make_account(db, role=AccountRole.user, created_at=datetime(2026, 10, 2))
    await make_account(db, role=AccountRole.user, created_at=datetime(2026, 10, 5))

    counts = await SettlementService.user_counts(db, now=datetime(2026, 10, 18, 12, 0))

    assert counts["count"] == 3
    assert counts["baseline"] == 1
    assert counts["trend"] == "+200.0%"


async def test_dashboard_stats_endpoint(client, db):
    admin = await make_unlocked_admin(db)
    await add_payment(db, "100.00")
    await add_cancelled_booking(db, "50.00")
    sign_in(client, admin)

    response = await client.get("/api/v1/dashboard/stats")

    assert response.status_code == 200
    financial = response.json()["financial"]
    assert financial["unsettled"]["count"] == 1
    assert financial["unsettled"]["total"] == pytest.approx(100.0)
    assert financial["unsettled"]["breakdown"]["adminNet"] == pytest.approx(10.0)
    assert financial["refunds"]["cancellationFees"] == pytest.approx(5.0)


async def test_financial_endpoints(client, db):
    admin = await make_unlocked_admin(db)
    await add_payment(db, "250.00")
    sign_in(client, admin)

    unsettled = await client.get("/api/v1/dashboard/financial/unsettled")
    refunds = await client.get("/api/v1/dashboard/financial/refunds")

    assert unsettled.status_code == 200
    assert unsettled.json()["breakdown"]["expert"] == pytest.approx(150.0)
    assert refunds.status_code == 200
    assert refunds.json()["pendingCount"] == 0
