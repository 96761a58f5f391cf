"""ORM model for portal user accounts."""

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String

from app.models.base import Base, utcnow
from app.schemas.auth import ROLE_VALUES

# Keeps users.role inside the Role literal so principals always validate.
ROLE_CHECK_SQL = "role IN ({})".format(", ".join(f"'{r}'" for r in sorted(ROLE_VALUES)))


class User(Base):
    """
    Portal account used for session login and role-based access.

    email is stored lowercased; role is one of admin, member, rules_committee, guest.
    """

    __tablename__ = "users"
    __table_args__ = (CheckConstraint(ROLE_CHECK_SQL, name="ck_users_role"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default="member")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
