from sqlalchemy import Column, Integer, String, Text
from fabquote.core.db import Base
from fabquote.models.base.mixins import TimestampMixin


class ContactSubmission(Base, TimestampMixin):
    __tablename__ = "contact_submissions"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(32), nullable=True)
    service_type = Column(String(100), nullable=True)
    message = Column(Text, nullable=True)
    file_path = Column(String(1024), nullable=True)

    def __repr__(self):
        return f"<ContactSubmission id={self.id} email={self.email}>"
