"""
Client endpoints.

- GET  /api/clients                 - List (admin, hr, client_manager)
- GET  /api/clients/{id}            - Get one
- POST /api/clients                 - Create (admin, client_manager)
- PUT  /api/clients/{id}            - Merge-update
- POST /api/clients/{id}/contracts  - Append a contract (admin, client_manager)
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from auth.rbac_dependencies import get_current_user, get_db
from records.models import User
from records.query import ListParams
from records.service import ClientService

router = APIRouter(prefix="/api/clients", tags=["clients"])


@router.get("")
def list_clients(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    search: Optional[str] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    params = ListParams.parse(page=page, limit=limit, search=search, status=status)
    return ClientService.list_clients(db, user, params)


@router.get("/{record_id}")
def get_client(record_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return ClientService.get_client(db, user, record_id)


@router.post("", status_code=201)
def create_client(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return ClientService.create_client(db, user, payload)


@router.put("/{record_id}")
def update_client(
    record_id: str,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return ClientService.update_client(db, user, record_id, payload)


@router.post("/{record_id}/contracts")
def add_contract(
    record_id: str,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return ClientService.add_contract(db, user, record_id, payload)
