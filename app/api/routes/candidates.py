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
from app.db.models.candidate import Candidate
from app.db.models.user import User
from app.schemas.job import CandidateCreate, CandidateResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/candidates", tags=["Candidates"])


@router.get("", response_model=List[CandidateResponse])
def list_candidates(user: User = Depends(get_current_user_obj), db: Session = Depends(get_db)):
    return list(db.execute(
        select(Candidate).where(Candidate.user_id == user.id).order_by(Candidate.created_at.desc())
    ).scalars())


@router.post("", response_model=CandidateResponse, status_code=status.HTTP_201_CREATED)
def create_candidate(
    payload: CandidateCreate,
    user: User = Depends(require_entitlement("candidates")),
    db: Session = Depends(get_db),
):
    candidate = Candidate(user_id=user.id, **payload.model_dump())
    try:
        db.add(candidate)
        db.commit()
        db.refresh(candidate)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Candidate create failed: user_id={user.id}, error={e}")
        raise DataStoreError()
    return candidate
