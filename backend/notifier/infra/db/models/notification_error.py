"""Notification error audit log model."""
from sqlalchemy import Column, DateTime, String

from notifier.domain.common.types import utcnow
from notifier.infra.db.base import Base, JSONType


class NotificationErrorModel(Base):
    """Append-only: ticket/receipt errors and unhandled pipeline failures."""

    __tablename__ = "notification_errors"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=True, index=True)
    error = Column(JSONType, nullable=False)
    notification_data = Column(JSONType, nullable=True)  # original event for postmortem
    created_at = Column(DateTime, default=utcnow, nullable=False)
