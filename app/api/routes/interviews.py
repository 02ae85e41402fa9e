"""
Interview scheduling endpoints.

Interviews are metered per UTC calendar month; creation re-checks the
allowance on every request.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_current_user_obj
from app.core.entitlement_guard import require_entitlement
from app.core.exceptions import DataStoreError
from app.db.session import get_db
from app.db.models.interview import Interview
from app.db.models.user import User
from app.schemas.job import InterviewCreate, InterviewResponse
from app.schemas.usage import EntitlementResponse
from app.services.entitlement_service import evaluate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/interviews", tags=["Interviews"])


@router.get("/check", response_model=EntitlementResponse)
def check_interview_access(user: User = Depends(get_current_user_obj), db: Session = Depends(get_db)):
    """Whether another interview may be scheduled this month."""
    entitlement = evaluate(db, user.id, "interviews")
    return EntitlementResponse(resource="interviews", **entitlement.to_dict())


@router.get("", response_model=List[InterviewResponse])
def list_interviews(user: User = Depends(get_current_user_obj), db: Session = Depends(get_db)):
    return list(db.execute(
        select(Interview).where(Interview.user_id == user.id).order_by(Interview.scheduled_at.desc())
    ).scalars())


@router.post("", response_model=InterviewResponse, status_code=status.HTTP_201_CREATED)
def schedule_interview(
    payload: InterviewCreate,
    user: User = Depends(require_entitlement("interviews")),
    db: Session = Depends(get_db),
):
    interview = Interview(user_id=user.id, **payload.model_dump())
    try:
        db.add(interview)
        db.commit()
        db.refresh(interview)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Interview create failed: user_id={user.id}, error={e}")
        raise DataStoreError()

    logger.info(f"Interview scheduled: user_id={user.id}, interview_id={interview.id}")
    return interview
