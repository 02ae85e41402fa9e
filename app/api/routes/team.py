import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_current_user_obj
from app.core.exceptions import DataStoreError, InvitationConflict
from app.db.session import get_db
from app.db.models.user import User
from app.schemas.team import InviteRequest, TeamMemberResponse
from app.services import team_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/team", tags=["Team"])


@router.get("/members", response_model=List[TeamMemberResponse])
def list_team_members(user: User = Depends(get_current_user_obj), db: Session = Depends(get_db)):
    return team_service.list_members(db, user.id)


@router.post("/invitations", response_model=TeamMemberResponse, status_code=status.HTTP_201_CREATED)
def invite_team_member(
    payload: InviteRequest,
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db),
):
    """Invite a member; the team_members allowance is checked inside."""
    try:
        return team_service.invite_member(db, user.id, payload.email, payload.role)
    except IntegrityError:
        # Concurrent duplicate invite hit the (user_id, email) constraint
        db.rollback()
        raise InvitationConflict()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Invite failed: user_id={user.id}, error={e}")
        raise DataStoreError()


@router.post("/invitations/{invitation_id}/accept", response_model=TeamMemberResponse)
def accept_team_invitation(
    invitation_id: int,
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db),
):
    """Accept as the signed-in principal; the token email must match the invite."""
    try:
        return team_service.accept_invitation(db, invitation_id, user.email, principal_id=user.id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Accept failed: invitation_id={invitation_id}, error={e}")
        raise DataStoreError()


@router.post("/invitations/{invitation_id}/resend", response_model=TeamMemberResponse)
def resend_team_invitation(
    invitation_id: int,
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db),
):
    try:
        return team_service.resend_invitation(db, user.id, invitation_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Resend failed: invitation_id={invitation_id}, error={e}")
        raise DataStoreError()


@router.delete("/members/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_team_member(
    member_id: int,
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db),
):
    try:
        team_service.remove_member(db, user.id, member_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Remove failed: member_id={member_id}, error={e}")
        raise DataStoreError()
