"""Request identity.

Authentication happens upstream; the gateway forwards the verified user id in
the ``X-User-Id`` header. This module turns it into an ``Identity`` and offers
role guards for the routers.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from clubhub.database import get_db
from clubhub.errors import AuthorizationError
from clubhub.models.club import Club
from clubhub.models.user import User, UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    user_id: str
    role: UserRole
    club_id: Optional[str] = None  # club this user leads, if any


def get_identity(
    x_user_id: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> Identity:
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    user = db.query(User).filter(User.user_id == x_user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
    if not user.is_active:
        logger.info("Blocked user %s denied", user.user_id)
        raise AuthorizationError("Your account has been blocked")
    club = db.query(Club.club_id).filter(Club.leader_id == user.user_id).first()
    return Identity(user_id=user.user_id, role=user.role, club_id=club[0] if club else None)


def require_role(*roles: UserRole):
    """Dependency factory: the caller must hold one of ``roles``."""

    def _guard(identity: Identity = Depends(get_identity)) -> Identity:
        if identity.role not in roles:
            logger.info("User %s (%s) denied; requires %s", identity.user_id, identity.role.value,
                        ", ".join(r.value for r in roles))
            raise AuthorizationError(f"Access denied - {' or '.join(r.value for r in roles)} only")
        return identity

    return _guard


require_admin = require_role(UserRole.admin)
require_leader = require_role(UserRole.leader)
require_student = require_role(UserRole.student)
