"""
Project endpoints.

- GET  /api/projects            - List (employees: projects they manage or work on)
- GET  /api/projects/{id}       - Get one
- POST /api/projects            - Create (admin, client_manager); creator becomes manager
- PUT  /api/projects/{id}       - Merge-update (admin, client_manager, or the manager)
- POST /api/projects/{id}/team  - Add a team member
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from auth.rbac_dependencies import get_current_user, get_db
from records.models import User
from records.query import ListParams
from records.service import ProjectService

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.get("")
def list_projects(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    search: Optional[str] = None,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    params = ListParams.parse(page=page, limit=limit, search=search, status=status, priority=priority)
    return ProjectService.list_projects(db, user, params)


@router.get("/{record_id}")
def get_project(record_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return ProjectService.get_project(db, user, record_id)


@router.post("", status_code=201)
def create_project(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return ProjectService.create_project(db, user, payload)


@router.put("/{record_id}")
def update_project(
    record_id: str,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return ProjectService.update_project(db, user, record_id, payload)


@router.post("/{record_id}/team")
def add_team_member(
    record_id: str,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return ProjectService.add_team_member(db, user, record_id, payload)
