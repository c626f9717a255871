from sqlalchemy import Column, Integer, String, Index
from fabquote.core.db import Base
from fabquote.models.base.mixins import TimestampMixin


class QuotationActivity(Base, TimestampMixin):
    """Immutable audit log. APPEND-ONLY. Never updated, never deleted."""

    __tablename__ = "quotation_activity"

    id = Column(Integer, primary_key=True)
    # snapshot, the quotation row itself may be gone
    quotation_id = Column(String(36), nullable=True, index=True)
    actor_id = Column(String(64), nullable=True, index=True)
    actor_role = Column(String(16), nullable=False)
    message = Column(String, nullable=False)

    __table_args__ = (Index("ix_quotation_activity_quotation_created", "quotation_id", "created_at"),)

    def __repr__(self):
        return f"<QuotationActivity id={self.id} quotation={self.quotation_id}>"
