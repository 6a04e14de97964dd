"""Enrollment models - User/topic purchases and watch progress"""
from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.sql import func

from app.database import Base


class Enrollment(Base):
    """One enrollment event of a user in a topic, tagged with its payment status"""

    __tablename__ = "user_topics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    topic_id = Column(Integer, ForeignKey("topics.id", ondelete="CASCADE"), nullable=False)
    payment_status = Column(String(20), nullable=True)
    enrolled_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Indexes for performance
    __table_args__ = (
        Index("idx_user_topics_status_enrolled", "payment_status", "enrolled_at"),
        Index("idx_user_topics_user_topic", "user_id", "topic_id"),
    )

    def __repr__(self):
        return f"<Enrollment(id={self.id}, user={self.user_id}, topic={self.topic_id}, status={self.payment_status})>"


class TopicProgress(Base):
    """Per-lesson watch progress; aggregated per (user, topic) for reporting"""

    __tablename__ = "user_topic_progress"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    topic_id = Column(Integer, ForeignKey("topics.id", ondelete="CASCADE"), nullable=False)
    progress = Column(
        Float,
        CheckConstraint("progress >= 0 AND progress <= 100"),
        nullable=False,
        server_default="0",
    )
    watch_time = Column(Integer, nullable=False, server_default="0")
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("idx_user_topic_progress_user_topic", "user_id", "topic_id"),
    )

    def __repr__(self):
        return f"<TopicProgress(user={self.user_id}, topic={self.topic_id}, progress={self.progress})>"
