"""
ApiKey model — organization-scoped keys used by the outreach collaborator's webhooks.
"""
from sqlalchemy import Column, Integer, Text, DateTime, JSON, ForeignKey
from sqlalchemy.sql import func

from recruitops.database import Base


class ApiKey(Base):
    __tablename__ = 'api_keys'

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Text, ForeignKey('organizations.id'), nullable=False)
    key = Column(Text, nullable=False, unique=True)
    name = Column(Text, nullable=False)
    scopes = Column(JSON, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_used_at = Column(DateTime(timezone=True), nullable=True)
