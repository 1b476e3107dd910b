"""
Plan limits + per-period usage counters.

One UsageCounter per organization per billing period; -1 in a PlanLimits
column means unlimited.
"""
from sqlalchemy import Column, Integer, Float, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func

from recruitops.database import Base


class PlanLimits(Base):
    __tablename__ = 'plan_limits'

    plan_name = Column(Text, primary_key=True)
    runs_limit = Column(Integer, nullable=False, default=10)
    prospects_limit = Column(Integer, nullable=False, default=100)
    messages_limit = Column(Integer, nullable=False, default=500)
    price_usd = Column(Float, nullable=True)

    def to_dict(self):
        return {
            'plan': self.plan_name,
            'runsLimit': self.runs_limit,
            'prospectsLimit': self.prospects_limit,
            'messagesLimit': self.messages_limit,
            'priceUsd': self.price_usd,
        }


class UsageCounter(Base):
    __tablename__ = 'usage_counters'

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Text, ForeignKey('organizations.id'), nullable=False, index=True)
    runs_used = Column(Integer, nullable=False, default=0)
    prospects_used = Column(Integer, nullable=False, default=0)
    messages_used = Column(Integer, nullable=False, default=0)
    period_start = Column(DateTime(timezone=True), nullable=False)
    period_end = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint('organization_id', 'period_start', name='uq_usage_org_period'),
    )
