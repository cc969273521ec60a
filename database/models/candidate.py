from sqlalchemy import Column, Integer, String, Text, TIMESTAMP, ForeignKey, Index, func
from sqlalchemy.orm import relationship

from .base import Base, new_id


class Candidate(Base):
    """
    A person in one tenant's talent pool. The same email in two tenants is
    two unrelated candidates.
    """
    __tablename__ = 'candidate'

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False)

    full_name = Column(Text, nullable=False)
    email = Column(Text)
    phone = Column(Text)
    location = Column(Text)
    current_title = Column(Text)
    current_company = Column(Text)
    years_experience = Column(Integer)
    education_level = Column(Text)  # secondary|associate|bachelor|master|doctorate

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    applications = relationship("Application", back_populates="candidate")
    skills = relationship("CandidateSkill", back_populates="candidate", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_candidate_tenant_email', 'tenant_id', 'email'),
    )


class CandidateSkill(Base):
    __tablename__ = 'candidate_skill'

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False, index=True)
    candidate_id = Column(String(36), ForeignKey('candidate.id', ondelete='CASCADE'), nullable=False)
    skill_id = Column(String(36), ForeignKey('skill.id', ondelete='CASCADE'), nullable=False)

    candidate = relationship("Candidate", back_populates="skills")
    skill = relationship("Skill")


class Tag(Base):
    __tablename__ = 'tag'

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(Text, nullable=False)
    color = Column(Text)


class Note(Base):
    __tablename__ = 'note'

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False, index=True)
    candidate_id = Column(String(36), ForeignKey('candidate.id', ondelete='CASCADE'))
    author_id = Column(Text)
    body = Column(Text, nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
