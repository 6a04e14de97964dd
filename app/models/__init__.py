"""SQLAlchemy ORM Models for the academy database schema"""
from app.models.user import User
from app.models.topic import Topic, TopicReview
from app.models.enrollment import Enrollment, TopicProgress
from app.models.homepage import (
    Homepage,
    HomepageHero,
    HomepageAbout,
    HomepageContact,
    HomepageFAQ,
)

__all__ = [
    "User",
    "Topic",
    "TopicReview",
    "Enrollment",
    "TopicProgress",
    "Homepage",
    "HomepageHero",
    "HomepageAbout",
    "HomepageContact",
    "HomepageFAQ",
]
