"""Notification database model."""
from sqlalchemy import Boolean, Column, DateTime, Index, String, Text

from notifier.domain.common.types import utcnow
from notifier.infra.db.base import Base, JSONType


class NotificationModel(Base):
    """One persisted notification per dispatched event (not per device)."""

    __tablename__ = "notifications"
    __table_args__ = (Index("ix_notifications_user_type_created", "user_id", "type", "created_at"),)

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    type = Column(String, nullable=False)
    title = Column(String, nullable=True)
    message = Column(Text, nullable=True)
    data = Column(JSONType, nullable=False, default=dict)  # event data + notificationId + raw tickets
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
