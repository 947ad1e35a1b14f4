"""Notification delivery metric model."""
from sqlalchemy import Column, DateTime, Integer, String

from notifier.domain.common.types import utcnow
from notifier.infra.db.base import Base, JSONType


class NotificationMetricModel(Base):
    """Append-only delivery telemetry, one row per dispatched event."""

    __tablename__ = "notification_metrics"

    id = Column(String, primary_key=True)
    notification_id = Column(String, nullable=False, index=True)
    user_id = Column(String, nullable=False, index=True)
    type = Column(String, nullable=False)
    status = Column(String, nullable=False)  # sent | partial | failed
    platform = Column(String, nullable=True)
    devices = Column(Integer, nullable=False, default=0)
    delivered_at = Column(DateTime, default=utcnow, nullable=False)
    scheduled_hour = Column(Integer, nullable=True)
    scheduled_for = Column(String, nullable=True)
    user_timezone = Column(String, nullable=True)
    extra = Column("metadata", JSONType, nullable=True)
