from sqlalchemy import Column, String, Text, Boolean, TIMESTAMP, ForeignKey, Index, func

from .base import Base, new_id


class Skill(Base):
    """
    Skill taxonomy entry. Rows with is_global=True are shared by every tenant
    (e.g. imported from ESCO); tenant-local rows carry a tenant_id.
    """
    __tablename__ = 'skill'

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey('tenant.id', ondelete='CASCADE'))
    name = Column(Text, nullable=False)
    category = Column(Text)
    external_source = Column(Text)  # esco|local|...
    is_global = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index('idx_skill_tenant_name', 'tenant_id', 'name'),
    )
