from sqlalchemy import Column, DateTime
from sqlalchemy.sql import func


class TimestampMixin:
    # server-generated timestamps come back on INSERT/UPDATE (no lazy loads under asyncio)
    __mapper_args__ = {"eager_defaults": True}

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        onupdate=func.now()
    )
