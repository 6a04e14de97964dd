"""User model - Platform learners and admins"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Index
from sqlalchemy.sql import func

from app.database import Base


class User(Base):
    """Registered platform user"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, nullable=False)
    is_verified = Column(Boolean, nullable=False, server_default="false")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_users_created_at", "created_at"),
    )

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"
