"""Database models for persisted recovery analyses."""

from datetime import datetime
from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class CachedAnalysis(Base):
    """Last computed analysis per athlete and analysis kind."""

    __tablename__ = "cached_analyses"
    __table_args__ = (UniqueConstraint("athlete_id", "kind", name="uq_cached_analysis_athlete_kind"),)

    id = Column(Integer, primary_key=True)
    athlete_id = Column(String(64), nullable=False, index=True)
    kind = Column(String(32), nullable=False, default="recovery")
    payload = Column(Text, nullable=False)  # JSON-serialized analysis
    created_at = Column(DateTime, nullable=False)  # UTC
    expires_at = Column(DateTime, nullable=False, index=True)  # UTC

    def is_expired(self, now: datetime) -> bool:
        """Check if the entry is past its expiry."""
        return now >= self.expires_at

    def __repr__(self):
        return f"<CachedAnalysis(athlete_id={self.athlete_id}, kind={self.kind}, expires_at={self.expires_at})>"
