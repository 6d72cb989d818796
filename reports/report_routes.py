"""
Report export endpoints.

- POST /api/reports/employees  - {format, filters} (admin, hr)
- POST /api/reports/projects   - {format, filters} (all roles, employees see their projects)
- GET  /api/reports/stats      - Totals and groupings
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import Response
from loguru import logger
from sqlalchemy.orm import Session

from auth.rbac_dependencies import get_current_user, get_db
from records.models import User
from records.schemas import EmployeeReportRequest, ProjectReportRequest, validate_payload
from records.service import EMPLOYEE_REPORT_COLUMNS, PROJECT_REPORT_COLUMNS, ReportService
from reports.renderer import ReportFormat, render_report

router = APIRouter(prefix="/api/reports", tags=["reports"])


def _attachment(report) -> Response:
    return Response(content=report.content, media_type=report.media_type, headers=report.headers)


@router.post("/employees")
def employees_report(
    payload: Optional[Dict[str, Any]] = Body(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    request = validate_payload(EmployeeReportRequest, payload or {})
    filters = request.filters.model_dump(by_alias=True)
    rows = ReportService.employee_rows(db, user, filters)
    fmt = ReportFormat.parse(request.format)

    logger.info(f"Employees report ({fmt.value}, {len(rows)} rows) for user {user.id}")
    return _attachment(render_report("employees", "Employees Report", EMPLOYEE_REPORT_COLUMNS, rows, fmt))


@router.post("/projects")
def projects_report(
    payload: Optional[Dict[str, Any]] = Body(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    request = validate_payload(ProjectReportRequest, payload or {})
    filters = request.filters.model_dump(by_alias=True)
    rows = ReportService.project_rows(db, user, filters)
    fmt = ReportFormat.parse(request.format)

    logger.info(f"Projects report ({fmt.value}, {len(rows)} rows) for user {user.id}")
    return _attachment(render_report("projects", "Projects Report", PROJECT_REPORT_COLUMNS, rows, fmt))


@router.get("/stats")
def report_stats(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return ReportService.stats(db, user)
