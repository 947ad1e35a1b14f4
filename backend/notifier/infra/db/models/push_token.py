"""Push destination database model."""
from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint

from notifier.domain.common.types import utcnow
from notifier.infra.db.base import Base


class PushTokenModel(Base):
    """One registered device channel per (user_id, token)."""

    __tablename__ = "user_push_tokens"
    __table_args__ = (UniqueConstraint("user_id", "token", name="uq_user_push_tokens_user_token"),)

    id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String, nullable=False, index=True)
    platform = Column(String, nullable=True)  # 'ios' or 'android'
    created_at = Column(DateTime, default=utcnow, nullable=False)
