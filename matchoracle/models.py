from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func
from .db import Base


class AppSettings(Base):
    __tablename__ = "app_settings"

    id = Column(Integer, primary_key=True, index=True)
    gemini_api_key_enc = Column(Text, nullable=True)
    gemini_model = Column(String, nullable=False, default="gemini-2.5-flash")
    search_grounding_enabled = Column(Boolean, nullable=False, default=True)

    # TTLs in seconds, one per operation class
    fixtures_ttl_seconds = Column(Integer, nullable=False, default=30 * 60)
    odds_ttl_seconds = Column(Integer, nullable=False, default=90)
    comparison_ttl_seconds = Column(Integer, nullable=False, default=24 * 60 * 60)
    analysis_ttl_seconds = Column(Integer, nullable=False, default=10 * 60)

    odds_poll_seconds = Column(Integer, nullable=False, default=90)
    updated_at_utc = Column(DateTime(timezone=True), nullable=True)


class CacheEntry(Base):
    __tablename__ = "cache_entries"

    key = Column(String, primary_key=True)
    payload = Column(Text, nullable=False, default="")   # JSON {"data": ..., "timestamp": ...}
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
