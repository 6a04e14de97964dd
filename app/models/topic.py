"""Topic models - Sellable training topics and their reviews"""
from sqlalchemy import (
    Column, Integer, String, Text, Numeric, Boolean, DateTime, ForeignKey, CheckConstraint, Index
)
from sqlalchemy.sql import func

from app.database import Base


class Topic(Base):
    """Training topic offered on the platform"""

    __tablename__ = "topics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=True)
    status = Column(String(20), nullable=False, server_default="draft")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_topics_status", "status"),
    )

    def __repr__(self):
        return f"<Topic(id={self.id}, title={self.title}, status={self.status})>"


class TopicReview(Base):
    """Learner rating of a topic, counted only once approved"""

    __tablename__ = "topic_reviews"

    id = Column(Integer, primary_key=True, autoincrement=True)
    topic_id = Column(Integer, ForeignKey("topics.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    rating = Column(
        Integer,
        CheckConstraint("rating >= 1 AND rating <= 5"),
        nullable=False,
    )
    is_approved = Column(Boolean, nullable=False, server_default="false")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_topic_reviews_topic", "topic_id"),
    )

    def __repr__(self):
        return f"<TopicReview(id={self.id}, topic={self.topic_id}, rating={self.rating})>"
