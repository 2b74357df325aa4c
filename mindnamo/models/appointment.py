import uuid
from sqlalchemy import Column, String, DateTime, Integer, Numeric, Enum, ForeignKey

from mindnamo.constants.constants import AppointmentStatus, AppointmentPaymentStatus
from mindnamo.models.base import Base, TimestampMixin


class Appointment(Base, TimestampMixin):
    __tablename__ = "appointments"

    appointment_id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    account_id = Column(String, ForeignKey("accounts.account_id"), nullable=False, index=True)
    expert_id = Column(String, ForeignKey("experts.expert_id"), nullable=False, index=True)

    appointment_date = Column(DateTime, nullable=False)
    appointment_time = Column(String(5), nullable=False)
    service_name = Column(String, nullable=False)
    appointment_type = Column(String, nullable=False)
    duration = Column(Integer, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)

    status = Column(Enum(AppointmentStatus), default=AppointmentStatus.pending, nullable=False, index=True)
    payment_status = Column(Enum(AppointmentPaymentStatus), default=AppointmentPaymentStatus.pending, nullable=False)
    payment_reference = Column(String, nullable=True)

    cancelled_by = Column(String, nullable=True)
    cancellation_reason = Column(String, nullable=True)
