"""Reminder scheduling run log model."""
from sqlalchemy import Boolean, Column, DateTime, Integer, String

from notifier.domain.common.types import utcnow
from notifier.infra.db.base import Base, JSONType


class NotificationScheduleLogModel(Base):
    """One row per scheduler run."""

    __tablename__ = "notification_schedule_logs"

    id = Column(String, primary_key=True)
    users_processed = Column(Integer, nullable=False, default=0)
    success = Column(Boolean, nullable=False)
    metrics = Column(JSONType, nullable=True)
    error_details = Column(JSONType, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
