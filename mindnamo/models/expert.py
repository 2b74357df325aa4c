import uuid
from sqlalchemy import Column, String, Text, Boolean, Integer, Float, ForeignKey

from mindnamo.models.base import Base, TimestampMixin


class Expert(Base, TimestampMixin):
    __tablename__ = "experts"

    expert_id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    account_id = Column(String, ForeignKey("accounts.account_id"), unique=True, nullable=False)
    bio = Column(Text, nullable=True)
    rating = Column(Float, default=0)
    reviews_count = Column(Integer, default=0)
    under_verification = Column(Boolean, default=True, nullable=False)
    is_listed = Column(Boolean, default=True, nullable=False)
    unlisted_reason = Column(String, nullable=True)
