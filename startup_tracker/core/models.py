"""
SQLAlchemy models for the tracker tables.

The tables are owned by the upstream discovery pipeline; these models exist so
development and test databases can be created with the same shape. Startups,
people, content and products are related by case-insensitive NAME equality,
not by foreign keys, so none are declared here.

Tables:
- ai_startups: one row per discovered startup
- key_persons: founders / executives, joined on startup_name
- company_content: news items, joined on startup_name
- ai_products: products, joined on company
- startup_suggestions: user "add this company" suggestions
- feedback_tickets: corrections, feedback and review flags
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, Index
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Startup(Base):
    """A discovered AI startup."""
    __tablename__ = "ai_startups"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True)
    website = Column(String(500))
    region = Column(String(50), index=True)
    country = Column(String(100))
    vertical = Column(String(100), index=True)
    product = Column(Text)
    stage = Column(String(50), index=True)
    funding_amount = Column(String(100))  # free text, e.g. "$12.5M", "N/A"
    investors = Column(Text)  # comma-separated investor names
    relevance_score = Column(Integer, default=0)  # 0-10
    needs_database = Column(Boolean, default=False)
    tech_stack = Column(Text)  # comma-separated
    source = Column(String(255))
    outreach_status = Column(String(50))

    # Social
    linkedin = Column(String(500))
    twitter = Column(String(500))
    github = Column(String(500))

    discovered_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<Startup(id={self.id}, name={self.name}, region={self.region})>"


class KeyPerson(Base):
    """A key person at a startup. startup_name is a free-text join key."""
    __tablename__ = "key_persons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    role = Column(String(255))
    startup_name = Column(String(255), index=True)
    linkedin = Column(String(500))
    github = Column(String(500))
    twitter = Column(String(500))
    email = Column(String(300))


class CompanyContent(Base):
    """A news item about a startup."""
    __tablename__ = "company_content"

    id = Column(Integer, primary_key=True, autoincrement=True)
    startup_name = Column(String(255), index=True)
    content_type = Column(String(50))  # funding, launch, partnership, other
    title = Column(String(500))
    url = Column(String(1000))
    summary = Column(Text)
    published_at = Column(DateTime)

    __table_args__ = (
        Index("idx_content_startup_published", "startup_name", "published_at"),
    )


class Product(Base):
    """An AI product. company is a free-text join key to ai_startups.name."""
    __tablename__ = "ai_products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    company = Column(String(255), index=True)
    url = Column(String(1000))
    description = Column(Text)
    category = Column(String(100), index=True)
    region = Column(String(50))
    discovered_at = Column(DateTime, default=datetime.utcnow)


class StartupSuggestion(Base):
    """A user suggestion to add a company, awaiting manual review."""
    __tablename__ = "startup_suggestions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    website = Column(String(500))
    notes = Column(Text)
    status = Column(String(20), nullable=False, default="pending")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class FeedbackTicket(Base):
    """A correction / feedback ticket, optionally tied to a startup."""
    __tablename__ = "feedback_tickets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String(20), nullable=False)  # suggest, correction, feedback
    startup_name = Column(String(255))
    startup_id = Column(Integer)
    subject = Column(String(500))
    details = Column(Text)
    website = Column(String(500))
    status = Column(String(20), nullable=False, default="pending")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<FeedbackTicket(id={self.id}, type={self.type}, status={self.status})>"
