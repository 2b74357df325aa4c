"""Payment ledger. Breakdown columns are a snapshot taken when the payment completes."""

import uuid
from sqlalchemy import Column, String, DateTime, Boolean, Numeric, Enum, ForeignKey, Index

from mindnamo.constants.constants import PaymentStatus
from mindnamo.models.base import Base, TimestampMixin


class Payment(Base, TimestampMixin):
    __tablename__ = "payments"
    __table_args__ = (
        Index("ix_payments_settled_status", "settled", "status"),
    )

    payment_id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    appointment_id = Column(String, ForeignKey("appointments.appointment_id"), nullable=True, index=True)
    account_id = Column(String, ForeignKey("accounts.account_id"), nullable=True)
    expert_id = Column(String, ForeignKey("experts.expert_id"), nullable=True)

    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), default="AUD", nullable=False)
    gateway_id = Column(String, unique=True, nullable=False)
    method = Column(String, default="card")
    receipt_url = Column(String, nullable=True)

    status = Column(Enum(PaymentStatus), default=PaymentStatus.pending, nullable=False, index=True)

    expert_amount = Column(Numeric(12, 2), default=0, nullable=False)
    org_amount = Column(Numeric(12, 2), default=0, nullable=False)
    admin_fee = Column(Numeric(12, 2), default=0, nullable=False)
    tax = Column(Numeric(12, 2), default=0, nullable=False)

    settled = Column(Boolean, default=False, nullable=False, index=True)
    settlement_date = Column(DateTime, nullable=True)
    settlement_reference = Column(String, nullable=True)

    refunded_amount = Column(Numeric(12, 2), default=0, nullable=False)
    refund_reason = Column(String, nullable=True)
    refunded_at = Column(DateTime, nullable=True)
