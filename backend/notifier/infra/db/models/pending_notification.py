"""Pending notification (inbound event) database model."""
from sqlalchemy import Boolean, Column, DateTime, String

from notifier.domain.common.types import utcnow
from notifier.infra.db.base import Base, JSONType


class PendingNotificationModel(Base):
    """Notification-worthy event written by triggers and schedulers; processed flips once."""

    __tablename__ = "pending_notifications"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    type = Column(String, nullable=False)
    data = Column(JSONType, nullable=False, default=dict)
    processed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
