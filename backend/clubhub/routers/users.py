"""User API routes."""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from clubhub.clients.blob_store import get_blob_store
from clubhub.database import get_db
from clubhub.errors import AuthorizationError
from clubhub.identity import Identity, get_identity, require_admin
from clubhub.models.user import UserRole
from clubhub.schemas.user import AdminCreate, UserCreate, UserDetailOut, UserOut
from clubhub.services import user_service

router = APIRouter()


@router.post("/", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    """Student sign-up. Admins are created by an admin; leaders are promoted through a club."""
    if payload.role != UserRole.student:
        raise AuthorizationError("Only student accounts can be self-registered")
    return user_service.create_user(
        db, name=payload.name, email=payload.email, role=UserRole.student, roll_number=payload.roll_number,
    )


@router.post("/admins", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_admin(payload: AdminCreate, _: Identity = Depends(require_admin), db: Session = Depends(get_db)):
    """Create another admin account (admin only)."""
    return user_service.create_user(db, name=payload.name, email=payload.email, role=UserRole.admin)


@router.get("/", response_model=list[UserOut])
def list_users(_: Identity = Depends(require_admin), db: Session = Depends(get_db)):
    """All students and leaders, newest first (admin only)."""
    return user_service.list_users(db)


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: str, _: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    """Fetch a single user by ID."""
    return user_service.get_user(db, user_id)


@router.get("/{user_id}/details", response_model=UserDetailOut)
def get_user_details(user_id: str, _: Identity = Depends(require_admin), db: Session = Depends(get_db)):
    """Full profile: clubs, pending requests, upcoming and attended events (admin only)."""
    return user_service.get_user_details(db, user_id)


@router.patch("/{user_id}/toggle-active", response_model=UserOut)
def toggle_user_active(user_id: str, identity: Identity = Depends(require_admin), db: Session = Depends(get_db)):
    """Block or unblock a user (admin only)."""
    return user_service.toggle_active(db, identity.user_id, user_id)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
    blob_store=Depends(get_blob_store),
):
    """Delete a user and their memberships and registrations (admin only)."""
    user_service.delete_user(db, identity.user_id, user_id, blob_store)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
