from .base import Base, JSONType, new_id
from .tenant import Tenant
from .job import ClientCompany, Job, JobSkill
from .skill import Skill
from .candidate import Candidate, CandidateSkill, Tag, Note
from .application import Application, ApplicationEvent
from .interview import Interview, InterviewParticipant, CompetencyRating
from .career import CareerSiteSettings, CareerPage, CareerTheme
from .activity import SentEmail, ActivityLog, ScoringEvent, SavedView, AnalyticsSnapshot

__all__ = [
    'Base',
    'JSONType',
    'new_id',
    'Tenant',
    'ClientCompany',
    'Job',
    'JobSkill',
    'Skill',
    'Candidate',
    'CandidateSkill',
    'Tag',
    'Note',
    'Application',
    'ApplicationEvent',
    'Interview',
    'InterviewParticipant',
    'CompetencyRating',
    'CareerSiteSettings',
    'CareerPage',
    'CareerTheme',
    'SentEmail',
    'ActivityLog',
    'ScoringEvent',
    'SavedView',
    'AnalyticsSnapshot',
]
