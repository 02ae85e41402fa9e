"""
Team invitations and membership.

An invitation starts pending and becomes active only when a principal whose
verified email matches it (case-insensitively) accepts it. Pending
invitations past INVITATION_TTL_DAYS expire instead.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import INVITATION_TTL_DAYS
from app.core.entitlement_guard import enforce_entitlement
from app.core.exceptions import (
    InvitationConflict,
    InvitationEmailMismatch,
    InvitationExpired,
    NotFoundError,
)
from app.db.models.team_member import TeamMember

logger = logging.getLogger(__name__)

TEAM_ROLES = ("admin", "member")


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; stored values are always UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_invitation(db: Session, invitation_id: int) -> TeamMember:
    invitation = db.get(TeamMember, invitation_id)
    if invitation is None:
        raise NotFoundError("Invitation")
    return invitation


def list_members(db: Session, tenant_id: int) -> List[TeamMember]:
    return list(db.execute(
        select(TeamMember)
        .where(TeamMember.user_id == tenant_id)
        .order_by(TeamMember.invited_at.desc(), TeamMember.id.desc())
    ).scalars())


def invite_member(db: Session, tenant_id: int, email: str, role: str = "member") -> TeamMember:
    """
    Create a pending invitation, or reopen an expired one for the same email.

    The team_members entitlement is re-evaluated here, immediately before the
    insert.

    Raises:
        ValueError: unknown role
        QuotaExceeded / DataStoreError: from the entitlement check
        InvitationConflict: email already invited (pending or active) to this team
    """
    if role not in TEAM_ROLES:
        raise ValueError(f"Invalid role: {role}")

    enforce_entitlement(db, tenant_id, "team_members")

    email = normalize_email(email)
    existing = db.execute(
        select(TeamMember).where(TeamMember.user_id == tenant_id, TeamMember.email == email)
    ).scalar_one_or_none()
    if existing is not None and existing.status != "expired":
        raise InvitationConflict()

    if existing is not None:
        # Expired invitations are reopened in place; (user_id, email) is unique
        existing.status = "pending"
        existing.role = role
        existing.invited_by = tenant_id
        existing.invited_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(existing)
        logger.info(f"Expired invitation reopened: tenant_id={tenant_id}, invitation_id={existing.id}")
        return existing

    invitation = TeamMember(
        user_id=tenant_id,
        email=email,
        role=role,
        status="pending",
        invited_by=tenant_id,
        invited_at=datetime.now(timezone.utc),
    )
    db.add(invitation)
    db.commit()
    db.refresh(invitation)

    logger.info(f"Team invitation created: tenant_id={tenant_id}, invitation_id={invitation.id}, role={role}")
    return invitation


def is_expired(invitation: TeamMember, now: Optional[datetime] = None) -> bool:
    now = now or datetime.now(timezone.utc)
    invited_at = _as_utc(invitation.invited_at)
    if invited_at is None:
        return False
    return now - invited_at > timedelta(days=INVITATION_TTL_DAYS)


def accept_invitation(
    db: Session,
    invitation_id: int,
    principal_email: str,
    principal_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> TeamMember:
    """
    Accept a pending invitation on behalf of the signed-in principal.

    Raises:
        NotFoundError: no such invitation
        InvitationConflict: invitation is not pending
        InvitationEmailMismatch: principal email differs; status stays pending
        InvitationExpired: invitation is too old; status becomes expired
        QuotaExceeded / DataStoreError: no team seat left on the tenant's plan
    """
    now = now or datetime.now(timezone.utc)
    invitation = get_invitation(db, invitation_id)

    if invitation.status != "pending":
        raise InvitationConflict("This invitation has already been processed")

    if normalize_email(principal_email) != normalize_email(invitation.email):
        logger.warning(f"Invitation email mismatch: invitation_id={invitation.id}")
        raise InvitationEmailMismatch(invitation.email)

    if is_expired(invitation, now):
        invitation.status = "expired"
        db.commit()
        logger.info(f"Invitation expired on accept: invitation_id={invitation.id}")
        raise InvitationExpired()

    # Accepting is the write that takes a seat; pending invites are not counted
    enforce_entitlement(db, invitation.user_id, "team_members")

    invitation.status = "active"
    invitation.joined_at = now
    invitation.member_user_id = principal_id
    db.commit()
    db.refresh(invitation)

    logger.info(f"Invitation accepted: invitation_id={invitation.id}, tenant_id={invitation.user_id}")
    return invitation


def resend_invitation(db: Session, tenant_id: int, invitation_id: int) -> TeamMember:
    """Refresh invited_at on a pending invitation, restarting its expiry clock."""
    invitation = get_invitation(db, invitation_id)
    if invitation.user_id != tenant_id:
        raise NotFoundError("Invitation")
    if invitation.status != "pending":
        raise InvitationConflict("Only pending invitations can be resent")

    invitation.invited_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(invitation)
    return invitation


def remove_member(db: Session, tenant_id: int, member_id: int) -> None:
    member = get_invitation(db, member_id)
    if member.user_id != tenant_id:
        raise NotFoundError("Team member")
    db.delete(member)
    db.commit()
    logger.info(f"Team member removed: tenant_id={tenant_id}, member_id={member_id}")
