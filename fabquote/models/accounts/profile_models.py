from sqlalchemy import Column, String, Enum
from fabquote.core.db import Base
from fabquote.models.base.mixins import TimestampMixin
from fabquote.models.enums.profile_status import ProfileStatus


class Profile(Base, TimestampMixin):
    __tablename__ = "profiles"

    # identity-provider subject
    id = Column(String(64), primary_key=True)
    email = Column(String(255), nullable=True, index=True)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)
    status = Column(
        Enum(ProfileStatus, native_enum=False, length=16),
        nullable=False,
        default=ProfileStatus.unverified,
    )

    def __repr__(self):
        return f"<Profile id={self.id} status={self.status}>"
