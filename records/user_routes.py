"""
User administration endpoints.

Exposed endpoints:
- GET    /api/users                - List users (admin)
- GET    /api/users/profile/me     - Own profile
- PUT    /api/users/profile/me     - Update own profile
- GET    /api/users/{id}           - Get user (admin or self)
- PUT    /api/users/{id}           - Update user (admin or self)
- PUT    /api/users/{id}/password  - Change password (admin or self)
- DELETE /api/users/{id}           - Delete user (admin, never self)
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from auth.rbac_dependencies import get_context, get_current_user, get_db
from records.errors import NotFound
from records.models import User
from records.query import ListParams
from records.repository import UserRepository
from records.schemas import PasswordChangeRequest, validate_payload
from records.service import UserService
from security.policy.rbac import Action, Resource, authorize

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("")
def list_users(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    search: Optional[str] = None,
    role: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    params = ListParams.parse(page=page, limit=limit, search=search, role=role)
    return UserService.list_users(db, user, params)


# declared before /{user_id} so "profile" is not taken for an id
@router.get("/profile/me")
def get_profile(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return UserService.get_profile(db, user)


@router.put("/profile/me")
def update_profile(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return UserService.update_profile(db, user, payload)


@router.get("/{user_id}")
def get_user(user_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return UserService.get_user(db, user, user_id)


@router.put("/{user_id}")
def update_user(
    user_id: str,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return UserService.update_user(db, user, user_id, payload)


@router.put("/{user_id}/password")
def change_password(
    user_id: str,
    payload: Dict[str, Any] = Body(...),
    context=Depends(get_context),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Change a password. Non-admins must send their current password."""
    authorize(user.role, Resource.USER, Action.UPDATE, requester_id=user.id, owners=[user_id])
    data = validate_payload(PasswordChangeRequest, payload)
    target = UserRepository.get(db, user_id)
    if target is None:
        raise NotFound("User not found")
    context.auth.change_password(db, user, target, data.new_password, data.current_password)
    return {"message": "Password updated successfully"}


@router.delete("/{user_id}")
def delete_user(user_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return UserService.delete_user(db, user, user_id)
