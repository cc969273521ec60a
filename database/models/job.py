from sqlalchemy import Column, Integer, String, Text, TIMESTAMP, ForeignKey, Boolean, Numeric, Enum, Index, func
from sqlalchemy.orm import relationship

from .base import Base, JSONType, new_id


class ClientCompany(Base):
    __tablename__ = 'client_company'

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(Text, nullable=False)
    website = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    jobs = relationship("Job", back_populates="client_company")


class Job(Base):
    __tablename__ = 'job'

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False)
    client_company_id = Column(String(36), ForeignKey('client_company.id', ondelete='SET NULL'))

    title = Column(Text, nullable=False)
    status = Column(
        Enum('open', 'draft', 'on_hold', 'closed', name='job_status', native_enum=False),
        nullable=False,
        default='draft'
    )
    visibility = Column(
        Enum('public', 'internal', 'confidential', name='job_visibility', native_enum=False),
        nullable=False,
        default='public'
    )

    location = Column(Text)
    location_type = Column(Text)  # onsite|hybrid|remote
    experience_level = Column(Text)
    seniority = Column(Text)

    # Free-form skill strings; "!Python" or "Python (must have)" marks a must-have
    required_skills = Column(JSONType, nullable=False, default=list)
    min_years_experience = Column(Integer)
    requires_degree = Column(Boolean, nullable=False, default=False)

    salary_min = Column(Numeric)
    salary_max = Column(Numeric)
    salary_currency = Column(Text)

    # Scoring
    hiring_mode = Column(Text)
    scoring_overrides = Column(JSONType)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    tenant = relationship("Tenant")
    client_company = relationship("ClientCompany", back_populates="jobs")
    applications = relationship("Application", back_populates="job", cascade="all, delete-orphan")
    skills = relationship("JobSkill", back_populates="job", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_job_tenant_status', 'tenant_id', 'status'),
    )


class JobSkill(Base):
    __tablename__ = 'job_skill'

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False, index=True)
    job_id = Column(String(36), ForeignKey('job.id', ondelete='CASCADE'), nullable=False)
    skill_id = Column(String(36), ForeignKey('skill.id', ondelete='CASCADE'), nullable=False)
    is_must_have = Column(Boolean, nullable=False, default=False)

    job = relationship("Job", back_populates="skills")
    skill = relationship("Skill")
