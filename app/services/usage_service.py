"""
Usage counters for metered resources.

Nothing is aggregated ahead of time: every call counts rows in the store,
so concurrent requests on other instances are always visible.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.db.models.candidate import Candidate
from app.db.models.interview import Interview
from app.db.models.job import Job
from app.db.models.team_member import TeamMember

logger = logging.getLogger(__name__)

# The account owner always occupies one team seat
OWNER_SEATS = 1


def month_window(at: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    Return the UTC calendar month containing `at` as [start, end).

    Naive datetimes are taken to be UTC already.
    """
    if at is None:
        at = datetime.now(timezone.utc)
    elif at.tzinfo is None:
        at = at.replace(tzinfo=timezone.utc)
    else:
        at = at.astimezone(timezone.utc)

    start = datetime(at.year, at.month, 1, tzinfo=timezone.utc)
    if at.month == 12:
        end = datetime(at.year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        end = datetime(at.year, at.month + 1, 1, tzinfo=timezone.utc)
    return start, end


def get_month_key(at: Optional[datetime] = None) -> str:
    """Month key in YYYY-MM format (UTC)."""
    start, _ = month_window(at)
    return start.strftime("%Y-%m")


def _count(db: Session, stmt) -> int:
    return int(db.execute(stmt).scalar_one() or 0)


def count_interviews_in_month(db: Session, user_id: int, at: Optional[datetime] = None) -> int:
    start, end = month_window(at)
    stmt = select(func.count(Interview.id)).where(
        Interview.user_id == user_id,
        Interview.created_at >= start,
        Interview.created_at < end,
    )
    return _count(db, stmt)


def count_active_team_members(db: Session, user_id: int) -> int:
    stmt = select(func.count(TeamMember.id)).where(
        TeamMember.user_id == user_id,
        TeamMember.status == "active",
    )
    return _count(db, stmt)


def count_team_seats(db: Session, user_id: int) -> int:
    """Seats in use: accepted members plus the owner."""
    return count_active_team_members(db, user_id) + OWNER_SEATS


def count_candidates(db: Session, user_id: int) -> int:
    return _count(db, select(func.count(Candidate.id)).where(Candidate.user_id == user_id))


def count_jobs(db: Session, user_id: int) -> int:
    return _count(db, select(func.count(Job.id)).where(Job.user_id == user_id))


def count_usage(db: Session, user_id: int, resource: str, at: Optional[datetime] = None) -> int:
    """
    Count current usage of a metered resource.

    Args:
        db: Database session
        user_id: Tenant id
        resource: interviews, team_members (owner included), candidates or jobs
        at: Evaluation time; only interviews are windowed by it

    Raises:
        KeyError: resource is not countable
        SQLAlchemyError: propagated to the caller
    """
    if resource == "interviews":
        return count_interviews_in_month(db, user_id, at)
    counters = {
        "team_members": count_team_seats,
        "candidates": count_candidates,
        "jobs": count_jobs,
    }
    return counters[resource](db, user_id)


def get_usage_summary(db: Session, user_id: int, at: Optional[datetime] = None) -> Dict[str, int]:
    """Usage for every countable resource, keyed by resource name."""
    return {
        resource: count_usage(db, user_id, resource, at)
        for resource in ("interviews", "team_members", "candidates", "jobs")
    }
