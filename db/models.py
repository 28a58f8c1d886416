"""
SQLAlchemy ORM Models
Streamer Brand-Fit Evaluator

Global collections hold shared caches; everything else is keyed by user id.
"""

from sqlalchemy import (
    Column, Float, String, Text, DateTime, JSON, Index
)
from sqlalchemy.orm import declarative_base
from datetime import datetime

Base = declarative_base()


class StreamerDocument(Base):
    """Global raw-data cache, one document per Twitch username."""
    __tablename__ = "streamers"

    streamer_id = Column(String(64), primary_key=True)
    data = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class CompanyProfileDocument(Base):
    __tablename__ = "company_profiles"

    user_id = Column(String(128), primary_key=True)
    data = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class StreamerAnalysis(Base):
    """Per-(user, streamer) derived fields."""
    __tablename__ = "streamer_analyses"

    user_id = Column(String(128), primary_key=True)
    streamer_id = Column(String(64), primary_key=True)
    ai_score = Column(Float)
    relevance_score = Column(Float)
    ai_summary = Column(Text)
    ai_recommendation = Column(Text)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (Index("ix_analysis_user", "user_id"),)


class HistoryDocument(Base):
    """Denormalized streamer + analysis snapshot for the history view."""
    __tablename__ = "history_entries"

    user_id = Column(String(128), primary_key=True)
    streamer_id = Column(String(64), primary_key=True)
    data = Column(JSON, nullable=False, default=dict)
    last_analyzed = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (Index("ix_history_user", "user_id"),)
