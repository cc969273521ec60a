from sqlalchemy import Column, Integer, String, Text, Boolean, TIMESTAMP, ForeignKey, Date, Index, func

from .base import Base, JSONType, new_id


class SentEmail(Base):
    __tablename__ = 'sent_email'

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False, index=True)
    candidate_id = Column(String(36), ForeignKey('candidate.id', ondelete='SET NULL'))
    to_email = Column(Text, nullable=False)
    subject = Column(Text, nullable=False)
    template_key = Column(Text)
    status = Column(Text, nullable=False, default='queued')
    sent_at = Column(TIMESTAMP(timezone=True))


class ActivityLog(Base):
    __tablename__ = 'activity_log'

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False)
    actor_id = Column(Text)
    entity_type = Column(Text, nullable=False)
    entity_id = Column(Text)
    action = Column(Text, nullable=False)
    meta = Column(JSONType)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index('idx_activity_log_tenant_created', 'tenant_id', 'created_at'),
    )


class ScoringEvent(Base):
    """Audit row written every time a score is recorded for an application."""
    __tablename__ = 'scoring_event'

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False, index=True)
    job_id = Column(String(36), ForeignKey('job.id', ondelete='CASCADE'), nullable=False)
    application_id = Column(String(36), ForeignKey('job_application.id', ondelete='CASCADE'), nullable=False)

    engine = Column(Text, nullable=False)
    engine_version = Column(Text)
    mode = Column(Text)
    score = Column(Integer, nullable=False)
    tier = Column(String(1), nullable=False)

    config_snapshot = Column(JSONType)
    input_summary = Column(JSONType)
    reason = Column(Text)
    risks = Column(JSONType)
    red_flags = Column(JSONType)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())


class SavedView(Base):
    __tablename__ = 'saved_view'

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False, index=True)
    owner_id = Column(Text)
    scope = Column(Text, nullable=False)  # jobs|candidates|pipeline
    name = Column(Text, nullable=False)
    filters = Column(JSONType)
    is_default = Column(Boolean, nullable=False, default=False)


class AnalyticsSnapshot(Base):
    __tablename__ = 'analytics_snapshot'

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False, index=True)
    snapshot_date = Column(Date, nullable=False)
    metrics = Column(JSONType, nullable=False, default=dict)
