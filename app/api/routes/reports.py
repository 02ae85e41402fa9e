"""
Analytics report. Reachable only through the route guard (analytics plans).
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_current_user_obj
from app.core.exceptions import DataStoreError
from app.db.session import get_db
from app.db.models.user import User
from app.services.usage_service import get_month_key, get_usage_summary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["Reports"])


@router.get("/reports")
def get_reports(user: User = Depends(get_current_user_obj), db: Session = Depends(get_db)):
    try:
        usage = get_usage_summary(db, user.id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Report query failed: user_id={user.id}, error={e}")
        raise DataStoreError()

    return {
        "month_key": get_month_key(),
        "interviews_this_month": usage["interviews"],
        "team_seats_used": usage["team_members"],
        "candidates": usage["candidates"],
        "jobs": usage["jobs"],
    }
