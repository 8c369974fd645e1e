"""
State Entry Model
Key-value rows holding the dashboard's persisted JSON blobs.
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime, JSON

from aiprime.core.database import Base


class StateEntry(Base):
    """One persisted JSON blob under a fixed storage key."""

    __tablename__ = "state_entries"

    key = Column(String(128), primary_key=True)  # e.g. videoProductionJobs
    value = Column(JSON, nullable=True)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
