"""User database model (read-only here; owned by the marketplace app)."""
from sqlalchemy import Column, DateTime, String

from notifier.infra.db.base import Base


class UserModel(Base):
    """Marketplace user: only the columns reminder scheduling reads."""

    __tablename__ = "users"

    id = Column(String, primary_key=True)
    timezone = Column(String, nullable=True)  # IANA name, e.g. "Asia/Beirut"
    last_active = Column(DateTime, nullable=True, index=True)
