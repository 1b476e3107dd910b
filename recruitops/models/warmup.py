"""
WarmupStatus model — one row per organization, created lazily.

Daily counters are only meaningful while last_reset_date is today (UTC).
`completed` is a one-way ratchet.
"""
from sqlalchemy import Column, Integer, Text, Boolean, Date, DateTime, ForeignKey
from sqlalchemy.sql import func

from recruitops.database import Base


class WarmupStatus(Base):
    __tablename__ = 'warmup_status'

    organization_id = Column(Text, ForeignKey('organizations.id'), primary_key=True)
    start_date = Column(DateTime(timezone=True), nullable=False)
    daily_runs_created = Column(Integer, nullable=False, default=0)
    daily_invites_sent = Column(Integer, nullable=False, default=0)
    last_reset_date = Column(Date, nullable=False)
    total_runs_created = Column(Integer, nullable=False, default=0)
    total_invites_sent = Column(Integer, nullable=False, default=0)
    completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
