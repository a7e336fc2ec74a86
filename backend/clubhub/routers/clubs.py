"""Club and membership API routes."""
import logging
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from clubhub.database import get_db
from clubhub.identity import Identity, get_identity, require_admin, require_leader, require_student
from clubhub.models.club import Club
from clubhub.schemas.club import (
    ClubBrowseOut, ClubCreate, ClubOut, JoinRequestCreate, LeaderAssign, LeaderDashboardOut,
    MemberRoleChange, MembershipRequestOut, RequestReview,
)
from clubhub.services import club_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=ClubOut, status_code=status.HTTP_201_CREATED)
def create_club(payload: ClubCreate, _: Identity = Depends(require_admin), db: Session = Depends(get_db)):
    """Create a club with no leader yet (admin only)."""
    return club_service.create_club(db, name=payload.name.strip(), description=payload.description.strip())


@router.get("/", response_model=list[ClubOut])
def list_clubs(_: Identity = Depends(require_admin), db: Session = Depends(get_db)):
    """List all clubs with their members (admin only)."""
    return db.query(Club).order_by(Club.name).all()


@router.get("/browse", response_model=list[ClubBrowseOut])
def browse_clubs(identity: Identity = Depends(require_student), db: Session = Depends(get_db)):
    """Every club with member counts, flagged with the caller's membership and pending request."""
    return club_service.browse_clubs(db, identity.user_id)


@router.get("/mine", response_model=LeaderDashboardOut)
def leader_dashboard(identity: Identity = Depends(require_leader), db: Session = Depends(get_db)):
    return club_service.leader_dashboard(db, identity.user_id)


@router.get("/requests", response_model=list[MembershipRequestOut])
def list_pending_requests(identity: Identity = Depends(require_leader), db: Session = Depends(get_db)):
    """Pending join requests for the caller's club, newest first."""
    return club_service.list_pending_requests(db, identity.user_id)


@router.post("/requests/{request_id}/review", response_model=MembershipRequestOut)
def review_request(
    request_id: str,
    payload: RequestReview,
    identity: Identity = Depends(require_leader),
    db: Session = Depends(get_db),
):
    """Approve or reject a pending join request (club leader only)."""
    return club_service.review_request(db, request_id, identity.user_id, approve=payload.action == "approve")


@router.get("/{club_id}", response_model=ClubOut)
def get_club(club_id: str, db: Session = Depends(get_db)):
    """Fetch a single club by ID with members."""
    return club_service.get_club(db, club_id)


@router.delete("/{club_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_club(club_id: str, _: Identity = Depends(require_admin), db: Session = Depends(get_db)):
    """Delete a club that has no events (admin only)."""
    club_service.delete_club(db, club_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{club_id}/leader", response_model=ClubOut)
def assign_leader(
    club_id: str,
    payload: LeaderAssign,
    _: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Promote a student to leader of this club (admin only)."""
    return club_service.assign_leader(db, club_id, payload.user_id)


@router.post("/{club_id}/join", response_model=MembershipRequestOut, status_code=status.HTTP_201_CREATED)
def request_join(
    club_id: str,
    payload: JoinRequestCreate,
    identity: Identity = Depends(require_student),
    db: Session = Depends(get_db),
):
    """Ask to join a club (students only)."""
    return club_service.request_join(db, club_id, identity.user_id, reason=payload.reason)


@router.delete("/{club_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    club_id: str,
    user_id: str,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    """Remove a member (admin or the club's leader)."""
    club_service.remove_member(db, club_id, user_id, identity.user_id, identity.role)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{club_id}/members/{user_id}/role", response_model=ClubOut)
def change_member_role(
    club_id: str,
    user_id: str,
    payload: MemberRoleChange,
    _: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Make a member the club leader, or step the leader down to member (admin only)."""
    return club_service.change_member_role(db, club_id, user_id, payload.role)
