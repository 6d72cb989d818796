"""
Employee endpoints.

- GET    /api/employees       - List (employees see active colleagues only)
- GET    /api/employees/{id}  - Get one (employees: own record only)
- POST   /api/employees       - Create (admin, hr)
- PUT    /api/employees/{id}  - Merge-update (admin, hr)
- DELETE /api/employees/{id}  - Delete (admin)
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session

from auth.rbac_dependencies import get_current_user, get_db
from records.models import User
from records.query import ListParams
from records.service import EmployeeService

router = APIRouter(prefix="/api/employees", tags=["employees"])


@router.get("")
def list_employees(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    search: Optional[str] = None,
    department: Optional[str] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    params = ListParams.parse(page=page, limit=limit, search=search, department=department, status=status)
    return EmployeeService.list_employees(db, user, params)


@router.get("/{record_id}")
def get_employee(record_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return EmployeeService.get_employee(db, user, record_id)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_employee(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return EmployeeService.create_employee(db, user, payload)


@router.put("/{record_id}")
def update_employee(
    record_id: str,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return EmployeeService.update_employee(db, user, record_id, payload)


@router.delete("/{record_id}")
def delete_employee(record_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return EmployeeService.delete_employee(db, user, record_id)
