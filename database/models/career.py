from sqlalchemy import Column, String, Text, Boolean, TIMESTAMP, ForeignKey, func

from .base import Base, JSONType, new_id


class CareerSiteSettings(Base):
    __tablename__ = 'career_site_settings'

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False, unique=True)
    theme_id = Column(String(36), ForeignKey('career_theme.id', ondelete='SET NULL'))
    hero_title = Column(Text)
    hero_subtitle = Column(Text)
    primary_color = Column(Text)
    logo_url = Column(Text)
    is_public = Column(Boolean, nullable=False, default=True)
    layout = Column(JSONType)


class CareerPage(Base):
    __tablename__ = 'career_page'

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False, index=True)
    slug = Column(Text, nullable=False)
    title = Column(Text, nullable=False)
    content = Column(JSONType)
    is_published = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())


class CareerTheme(Base):
    """Career-site theme. System themes (is_system=True) are offered to every tenant."""
    __tablename__ = 'career_theme'

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey('tenant.id', ondelete='CASCADE'))
    name = Column(Text, nullable=False)
    is_system = Column(Boolean, nullable=False, default=False)
    tokens = Column(JSONType)
