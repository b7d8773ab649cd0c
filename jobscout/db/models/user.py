from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime
from jobscout.db.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """Profile row for an identity-provider user; id is the provider's subject."""
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, nullable=False, default="", index=True)
    name = Column(String, nullable=False, default="")
    avatar_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<User(id='{self.id}', email='{self.email}')>"
