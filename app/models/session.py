"""ORM model for login sessions keyed by opaque token."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.models.base import Base


class UserSession(Base):
    """
    One authenticated session. The token is the only identifier sent to clients.

    Rows are removed on logout, on the first lookup after expires_at, or by the sweep.
    """

    __tablename__ = "sessions"

    token = Column(String(64), primary_key=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    last_activity = Column(DateTime(timezone=True), nullable=False)

    user = relationship("User", lazy="joined")
