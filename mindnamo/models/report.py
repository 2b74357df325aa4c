import uuid
from sqlalchemy import Column, String, Text, Boolean, Enum, ForeignKey

from mindnamo.constants.constants import ReportType
from mindnamo.models.base import Base, TimestampMixin


class Report(Base, TimestampMixin):
    __tablename__ = "reports"

    report_id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    reporter_id = Column(String, ForeignKey("accounts.account_id"), nullable=False)
    reported_on_id = Column(String, ForeignKey("accounts.account_id"), nullable=True)
    type = Column(Enum(ReportType), nullable=False)
    reason = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    is_resolved = Column(Boolean, default=False, nullable=False)
    resolved_by = Column(String, ForeignKey("accounts.account_id"), nullable=True)
    resolution_notes = Column(Text, nullable=True)
