import uuid

from sqlalchemy import Column, Integer, String, Text, Enum, JSON, Index, CheckConstraint
from fabquote.core.db import Base
from fabquote.models.base.mixins import TimestampMixin
from fabquote.models.enums.quotation_status import QuotationStatus
from fabquote.models.enums.quotation_type import QuotationType


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Quotation(Base, TimestampMixin):
    __tablename__ = "quotations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(64), nullable=False, index=True)
    user_name = Column(String(255), nullable=True)

    type = Column(
        Enum(QuotationType, values_callable=_enum_values, native_enum=False, length=16),
        nullable=False,
    )
    status = Column(
        Enum(QuotationStatus, values_callable=_enum_values, native_enum=False, length=32),
        nullable=False,
        default=QuotationStatus.pending_review,
        index=True,
    )

    # customer parameters + staff-only "total" / "currency"
    config = Column(JSON, nullable=False, default=dict)
    additional_message = Column(Text, nullable=True)
    file_path = Column(String(1024), nullable=True)
    payment_reference = Column(String(255), nullable=True, unique=True)

    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        Index("ix_quotation_user_status", "user_id", "status"),
        CheckConstraint("version >= 1", name="ck_quotation_version_positive"),
    )

    def __repr__(self):
        return f"<Quotation {self.id} status={self.status}>"
