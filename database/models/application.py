from sqlalchemy import Column, Integer, String, Text, TIMESTAMP, ForeignKey, Index, func
from sqlalchemy.orm import relationship

from .base import Base, JSONType, new_id


class Application(Base):
    """
    A candidate's application to a job.

    There is deliberately no tenant_id column: tenant membership is inherited
    from the job (application.job.tenant_id).
    """
    __tablename__ = 'job_application'

    id = Column(String(36), primary_key=True, default=new_id)
    job_id = Column(String(36), ForeignKey('job.id', ondelete='CASCADE'), nullable=False)
    candidate_id = Column(String(36), ForeignKey('candidate.id', ondelete='SET NULL'))

    # Snapshot of what the applicant submitted
    full_name = Column(Text, nullable=False)
    email = Column(Text)
    location = Column(Text)
    cover_letter = Column(Text)
    screening_answers = Column(JSONType)
    notice_period = Column(Text)
    how_heard = Column(Text)
    source = Column(Text)

    stage = Column(Text, nullable=False, default='applied')
    status = Column(Text, nullable=False, default='pending')

    # Last recorded score (audit trail lives in scoring_event)
    match_score = Column(Integer)
    match_reason = Column(Text)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    job = relationship("Job", back_populates="applications")
    candidate = relationship("Candidate", back_populates="applications")
    events = relationship("ApplicationEvent", back_populates="application", cascade="all, delete-orphan")
    interviews = relationship("Interview", back_populates="application", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_job_application_job_stage', 'job_id', 'stage'),
    )


class ApplicationEvent(Base):
    __tablename__ = 'application_event'

    id = Column(String(36), primary_key=True, default=new_id)
    application_id = Column(String(36), ForeignKey('job_application.id', ondelete='CASCADE'), nullable=False, index=True)
    type = Column(Text, nullable=False)  # stage_change|note|email|...
    from_stage = Column(Text)
    to_stage = Column(Text)
    payload = Column(JSONType)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    application = relationship("Application", back_populates="events")
