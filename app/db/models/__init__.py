"""
Database models module.

Imports all models so they are registered with SQLAlchemy's Base.metadata
before table creation and migrations.
"""
from app.db.models.user import User
from app.db.models.subscription import Subscription
from app.db.models.job import Job
from app.db.models.candidate import Candidate
from app.db.models.interview import Interview
from app.db.models.team_member import TeamMember

__all__ = [
    "User",
    "Subscription",
    "Job",
    "Candidate",
    "Interview",
    "TeamMember",
]
