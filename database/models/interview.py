from sqlalchemy import Column, Integer, String, Text, TIMESTAMP, ForeignKey, func
from sqlalchemy.orm import relationship

from .base import Base, new_id


class Interview(Base):
    __tablename__ = 'application_interview'

    id = Column(String(36), primary_key=True, default=new_id)
    application_id = Column(String(36), ForeignKey('job_application.id', ondelete='CASCADE'), nullable=False, index=True)
    scheduled_at = Column(TIMESTAMP(timezone=True))
    duration_minutes = Column(Integer)
    type = Column(Text)  # phone|video|onsite
    location = Column(Text)
    meeting_url = Column(Text)
    status = Column(Text, nullable=False, default='scheduled')
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    application = relationship("Application", back_populates="interviews")
    participants = relationship("InterviewParticipant", back_populates="interview", cascade="all, delete-orphan")
    ratings = relationship("CompetencyRating", back_populates="interview", cascade="all, delete-orphan")


class InterviewParticipant(Base):
    __tablename__ = 'interview_participant'

    id = Column(String(36), primary_key=True, default=new_id)
    interview_id = Column(String(36), ForeignKey('application_interview.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(Text, nullable=False)
    email = Column(Text)
    role = Column(Text)  # interviewer|candidate|observer

    interview = relationship("Interview", back_populates="participants")


class CompetencyRating(Base):
    __tablename__ = 'interview_competency_rating'

    id = Column(String(36), primary_key=True, default=new_id)
    interview_id = Column(String(36), ForeignKey('application_interview.id', ondelete='CASCADE'), nullable=False, index=True)
    competency = Column(Text, nullable=False)
    rating = Column(Integer, nullable=False)  # 1-5
    comment = Column(Text)

    interview = relationship("Interview", back_populates="ratings")
