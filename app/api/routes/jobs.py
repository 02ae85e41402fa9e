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
from app.db.models.job import Job
from app.db.models.user import User
from app.schemas.job import JobCreate, JobResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


@router.get("", response_model=List[JobResponse])
def list_jobs(user: User = Depends(get_current_user_obj), db: Session = Depends(get_db)):
    return list(db.execute(
        select(Job).where(Job.user_id == user.id).order_by(Job.created_at.desc())
    ).scalars())


@router.post("", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
def create_job(
    payload: JobCreate,
    user: User = Depends(require_entitlement("jobs")),
    db: Session = Depends(get_db),
):
    job = Job(user_id=user.id, **payload.model_dump())
    try:
        db.add(job)
        db.commit()
        db.refresh(job)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Job create failed: user_id={user.id}, error={e}")
        raise DataStoreError()
    return job
