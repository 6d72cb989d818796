"""
Dashboard endpoints (any authenticated user).

- GET /api/dashboard/stats       - Counts, groupings, recent uploads, upcoming milestones
- GET /api/dashboard/activities  - Recent uploads and logins, newest first
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from auth.rbac_dependencies import get_current_user, get_db
from records.models import User
from records.service import DashboardService

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats")
def get_stats(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return DashboardService.stats(db, user)


@router.get("/activities")
def get_activities(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return DashboardService.activities(db, user, limit)
