"""Homepage models - Per-language landing page content"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from app.database import Base


class Homepage(Base):
    """Versioned homepage for one language; sections hang off it 1:1"""

    __tablename__ = "homepage"

    id = Column(Integer, primary_key=True, autoincrement=True)
    language = Column(String(10), unique=True, nullable=False)
    version = Column(Integer, nullable=False, server_default="1")
    is_active = Column(Boolean, nullable=False, server_default="true")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self):
        return f"<Homepage(id={self.id}, language={self.language}, version={self.version})>"


class HomepageHero(Base):
    """Hero banner section"""

    __tablename__ = "homepage_hero"

    id = Column(Integer, primary_key=True, autoincrement=True)
    homepage_id = Column(Integer, ForeignKey("homepage.id", ondelete="CASCADE"), unique=True, nullable=False)
    title = Column(String(255), nullable=False)
    subtitle = Column(Text, nullable=False)
    background_image = Column(String(500), nullable=True)
    cta_text = Column(String(100), nullable=True)
    cta_link = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class HomepageAbout(Base):
    """About section with a JSON list of feature blurbs"""

    __tablename__ = "homepage_about"

    id = Column(Integer, primary_key=True, autoincrement=True)
    homepage_id = Column(Integer, ForeignKey("homepage.id", ondelete="CASCADE"), unique=True, nullable=False)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    image = Column(String(500), nullable=True)
    features = Column(JSONB, nullable=False, server_default="[]")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class HomepageContact(Base):
    """Contact section"""

    __tablename__ = "homepage_contact"

    id = Column(Integer, primary_key=True, autoincrement=True)
    homepage_id = Column(Integer, ForeignKey("homepage.id", ondelete="CASCADE"), unique=True, nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    hours = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    support_email = Column(String(255), nullable=True)
    sales_email = Column(String(255), nullable=True)
    social_links = Column(JSONB, nullable=False, server_default="{}")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class HomepageFAQ(Base):
    """Frequently asked question, ordered by order_index"""

    __tablename__ = "homepage_faqs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    homepage_id = Column(Integer, ForeignKey("homepage.id", ondelete="CASCADE"), nullable=False)
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)
    order_index = Column(Integer, nullable=False, server_default="0")
    is_active = Column(Boolean, nullable=False, server_default="true")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_homepage_faqs_homepage_order", "homepage_id", "order_index"),
    )

    def __repr__(self):
        return f"<HomepageFAQ(id={self.id}, homepage={self.homepage_id}, order={self.order_index})>"
