"""
Organization + Member models — the multi-tenant ownership boundary.

Organizations are created on the first team-member sync (or lazily on first
admission) and are never hard-deleted here.
"""
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey
from sqlalchemy.sql import func

from recruitops.database import Base


class Organization(Base):
    __tablename__ = 'organizations'

    id = Column(Text, primary_key=True)
    name = Column(Text, default='Organization')
    plan = Column(Text, nullable=False, default='pilot')
    seats = Column(Integer, default=3)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Member(Base):
    __tablename__ = 'members'

    id = Column(Text, primary_key=True)  # identity provider user id
    organization_id = Column(Text, ForeignKey('organizations.id'), nullable=False, index=True)
    email = Column(Text, default='')
    name = Column(Text, default='')
    role = Column(Text, default='member')
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'organizationId': self.organization_id,
            'email': self.email,
            'name': self.name,
            'role': self.role,
        }
