from sqlalchemy import Column, String, Text, TIMESTAMP, Enum, func

from .base import Base, JSONType, new_id


class Tenant(Base):
    """
    Isolated customer workspace. Every tenant-scoped row resolves to exactly
    one tenant, either through its own tenant_id or through its parents.
    """
    __tablename__ = 'tenant'

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(Text, nullable=False)
    slug = Column(String(120), nullable=False, unique=True)
    plan = Column(
        Enum('free', 'pro', 'enterprise', name='tenant_plan', native_enum=False),
        nullable=False,
        default='free'
    )
    hiring_mode = Column(Text)  # exec|volume|hybrid, None = app default
    # Partial scoring overrides saved from the settings screen
    scoring_config = Column(JSONType)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
