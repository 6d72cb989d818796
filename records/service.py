"""
Business logic for the records system.

The service layer sits between API endpoints and repositories.
It handles:
- Asking the policy table whether the requester may act, and with what scope
- Validating request bodies before any mutation
- Merge-updates with re-validation of the whole record
- Formatting responses

Every method takes the requesting User as loaded by the auth dependency.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, BinaryIO, Dict, List, Optional

from sqlalchemy.orm import Session

from records.errors import NotFound, ValidationError
from records.models import Client, Employee, Project, User
from records.query import ListParams
from records.repository import (
    ClientRepository, DocumentRepository, EmployeeRepository,
    ProjectRepository, UserRepository, scope_clause,
)
from records.schemas import (
    ClientCreate, Contract, DocumentMetadata, EmployeeCreate, ProjectCreate,
    TeamMemberRequest, UserUpdateRequest, validate_payload,
)
from security.policy.rbac import Action, Resource, Role, authorize
from storage.object_store.buckets import ObjectStore

logger = logging.getLogger(__name__)

UPCOMING_MILESTONE_DAYS = 30
OPEN_MILESTONE_STATUSES = ("Pending", "In Progress")


def deep_merge(base: Dict[str, Any], patch: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively overlay `patch` on `base`; lists and scalars are replaced."""
    result = dict(base)
    for key, value in patch.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _dump(model) -> Optional[Dict[str, Any]]:
    return model.model_dump(mode="json", by_alias=True) if model is not None else None


def _check(requester: User, resource: Resource, action: Action, **kwargs):
    return authorize(requester.role, resource, action, requester_id=requester.id, **kwargs)


def _require_user(db: Session, user_id: str, field: str) -> User:
    user = UserRepository.get(db, user_id)
    if user is None:
        raise ValidationError.single(field, "User not found")
    return user


def _as_patch(payload) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValidationError.single("body", "Request body must be a JSON object")
    return payload


# ============ Users ============

class UserService:
    """User administration and self-service profile operations."""

    @staticmethod
    def list_users(db: Session, requester: User, params: ListParams) -> Dict[str, Any]:
        _check(requester, Resource.USER, Action.LIST)
        return UserRepository.list(db, params).to_dict()

    @staticmethod
    def get_user(db: Session, requester: User, user_id: str) -> Dict[str, Any]:
        user = UserRepository.get(db, user_id)
        _check(requester, Resource.USER, Action.READ, owners=[user_id])
        if user is None:
            raise NotFound("User not found")
        return user.to_dict()

    @staticmethod
    def update_user(db: Session, requester: User, user_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        _check(requester, Resource.USER, Action.UPDATE, owners=[user_id])
        user = UserRepository.get(db, user_id)
        if user is None:
            raise NotFound("User not found")

        data = validate_payload(UserUpdateRequest, _as_patch(payload))
        values = data.model_dump(exclude_unset=True)
        if requester.role != Role.ADMIN.value:
            # role and activation are admin-only
            values.pop("role", None)
            values.pop("is_active", None)
        if "email" in values:
            if values["email"] is None:
                raise ValidationError.single("email", "Email is required")
            existing = UserRepository.get_by_email(db, values["email"])
            if existing is not None and existing.id != user.id:
                raise ValidationError.single("email", "User already exists")
            values["email"] = values["email"].lower()
        for required in ("first_name", "last_name"):
            if required in values and not (values[required] or "").strip():
                raise ValidationError.single(required, "must not be empty")

        user = UserRepository.update(db, user, values)
        logger.info(f"User {user.id} updated by {requester.id}")
        return user.to_dict()

    @staticmethod
    def delete_user(db: Session, requester: User, user_id: str) -> Dict[str, Any]:
        _check(requester, Resource.USER, Action.DELETE)
        if user_id == requester.id:
            raise ValidationError.single("id", "You cannot delete your own account")
        user = UserRepository.get(db, user_id)
        if user is None:
            raise NotFound("User not found")
        UserRepository.delete(db, user)
        return {"message": "User deleted successfully"}

    @staticmethod
    def get_profile(db: Session, requester: User) -> Dict[str, Any]:
        _check(requester, Resource.USER, Action.PROFILE)
        return requester.to_dict()

    @staticmethod
    def update_profile(db: Session, requester: User, payload: Dict[str, Any]) -> Dict[str, Any]:
        _check(requester, Resource.USER, Action.PROFILE)
        patch = {k: v for k, v in _as_patch(payload).items() if k not in ("role", "isActive", "is_active")}
        data = validate_payload(UserUpdateRequest, patch)
        values = data.model_dump(exclude_unset=True, exclude={"role", "is_active"})
        if values.get("email"):
            existing = UserRepository.get_by_email(db, values["email"])
            if existing is not None and existing.id != requester.id:
                raise ValidationError.single("email", "User already exists")
            values["email"] = values["email"].lower()
        elif "email" in values:
            raise ValidationError.single("email", "Email is required")
        return UserRepository.update(db, requester, values).to_dict()


# ============ Employees ============

def _employee_columns(data: EmployeeCreate, user_id: str) -> Dict[str, Any]:
    personal, job = data.personal_details, data.job_details
    return {
        "user_id": user_id,
        "first_name": personal.first_name,
        "last_name": personal.last_name,
        "date_of_birth": personal.date_of_birth,
        "gender": personal.gender,
        "contact_number": personal.contact_number,
        "personal_email": personal.personal_email,
        "address": _dump(personal.address),
        "emergency_contact": _dump(personal.emergency_contact),
        "department": job.department,
        "position": job.position,
        "hire_date": job.hire_date,
        "employment_type": job.employment_type,
        "salary": job.salary,
        "manager_id": job.manager,
        "work_location": job.work_location,
        "work_schedule": job.work_schedule,
        "performance": _dump(data.performance) or {},
        "documents": [_dump(d) for d in data.documents],
        "status": data.status,
    }


class EmployeeService:
    """Employee records. Regular employees see active colleagues and only their own record."""

    @staticmethod
    def _load(db: Session, record_id: str) -> Employee:
        employee = EmployeeRepository.get(db, record_id)
        if employee is None:
            raise NotFound("Employee not found")
        return employee

    @staticmethod
    def _validate(db: Session, data: EmployeeCreate, record_id: Optional[str] = None):
        if data.job_details.manager:
            if data.job_details.manager == record_id or EmployeeRepository.get(db, data.job_details.manager) is None:
                raise ValidationError.single("jobDetails.manager", "Manager not found")

    @staticmethod
    def list_employees(db: Session, requester: User, params: ListParams) -> Dict[str, Any]:
        decision = _check(requester, Resource.EMPLOYEE, Action.LIST)
        if requester.role == Role.EMPLOYEE.value:
            params.filters.pop("status", None)
            params.filters.pop("department", None)
        scope = scope_clause(decision.scope, Employee, requester)
        return EmployeeRepository.list(db, params, scope).to_dict()

    @staticmethod
    def get_employee(db: Session, requester: User, record_id: str) -> Dict[str, Any]:
        employee = EmployeeService._load(db, record_id)
        _check(requester, Resource.EMPLOYEE, Action.READ, owners=[employee.user_id])
        return employee.to_dict()

    @staticmethod
    def create_employee(db: Session, requester: User, payload: Dict[str, Any]) -> Dict[str, Any]:
        _check(requester, Resource.EMPLOYEE, Action.CREATE)
        data = validate_payload(EmployeeCreate, _as_patch(payload))
        user_id = data.user or requester.id
        _require_user(db, user_id, "user")
        EmployeeService._validate(db, data)

        employee = EmployeeRepository.create(db, **_employee_columns(data, user_id))
        return employee.to_dict()

    @staticmethod
    def update_employee(db: Session, requester: User, record_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        _check(requester, Resource.EMPLOYEE, Action.UPDATE)
        employee = EmployeeService._load(db, record_id)

        merged = deep_merge(employee.to_payload(), _as_patch(payload))
        data = validate_payload(EmployeeCreate, merged)
        user_id = data.user or employee.user_id
        if user_id and user_id != employee.user_id:
            _require_user(db, user_id, "user")
        EmployeeService._validate(db, data, record_id)

        employee = EmployeeRepository.update(db, employee, _employee_columns(data, user_id))
        logger.info(f"Employee {employee.employee_id} updated by {requester.id}")
        return employee.to_dict()

    @staticmethod
    def delete_employee(db: Session, requester: User, record_id: str) -> Dict[str, Any]:
        _check(requester, Resource.EMPLOYEE, Action.DELETE)
        employee = EmployeeService._load(db, record_id)
        EmployeeRepository.delete(db, employee)
        return {"message": "Employee removed"}


# ============ Clients ============

def _client_columns(data: ClientCreate, manager_id: str) -> Dict[str, Any]:
    return {
        "company_name": data.company_name,
        "contact_first_name": data.contact_person.first_name,
        "contact_last_name": data.contact_person.last_name,
        "contact_position": data.contact_person.position,
        "contact_email": str(data.contact_details.email),
        "contact_phone": data.contact_details.phone,
        "alternate_phone": data.contact_details.alternate_phone,
        "address": _dump(data.address),
        "business_details": _dump(data.business_details),
        "contracts": [_dump(c) for c in data.contracts],
        "status": data.status,
        "notes": data.notes,
        "assigned_manager_id": manager_id,
    }


class ClientService:
    """Client records and their contracts."""

    @staticmethod
    def _load(db: Session, record_id: str) -> Client:
        client = ClientRepository.get(db, record_id)
        if client is None:
            raise NotFound("Client not found")
        return client

    @staticmethod
    def list_clients(db: Session, requester: User, params: ListParams) -> Dict[str, Any]:
        _check(requester, Resource.CLIENT, Action.LIST)
        return ClientRepository.list(db, params).to_dict()

    @staticmethod
    def get_client(db: Session, requester: User, record_id: str) -> Dict[str, Any]:
        _check(requester, Resource.CLIENT, Action.READ)
        return ClientService._load(db, record_id).to_dict()

    @staticmethod
    def create_client(db: Session, requester: User, payload: Dict[str, Any]) -> Dict[str, Any]:
        _check(requester, Resource.CLIENT, Action.CREATE)
        data = validate_payload(ClientCreate, _as_patch(payload))
        manager_id = data.assigned_manager or requester.id
        _require_user(db, manager_id, "assignedManager")

        client = ClientRepository.create(db, **_client_columns(data, manager_id))
        return client.to_dict()

    @staticmethod
    def update_client(db: Session, requester: User, record_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        _check(requester, Resource.CLIENT, Action.UPDATE)
        client = ClientService._load(db, record_id)

        merged = deep_merge(client.to_payload(), _as_patch(payload))
        data = validate_payload(ClientCreate, merged)
        manager_id = data.assigned_manager or client.assigned_manager_id or requester.id
        if manager_id != client.assigned_manager_id:
            _require_user(db, manager_id, "assignedManager")

        client = ClientRepository.update(db, client, _client_columns(data, manager_id))
        logger.info(f"Client {client.client_id} updated by {requester.id}")
        return client.to_dict()

    @staticmethod
    def add_contract(db: Session, requester: User, record_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        _check(requester, Resource.CLIENT, Action.ADD_CONTRACT)
        client = ClientService._load(db, record_id)
        contract = validate_payload(Contract, _as_patch(payload))
        return ClientRepository.add_contract(db, client, _dump(contract)).to_dict()


# ============ Projects ============

def _project_columns(data: ProjectCreate) -> Dict[str, Any]:
    return {
        "title": data.title,
        "description": data.description,
        "client_id": data.client,
        "start_date": data.timeline.start_date,
        "end_date": data.timeline.end_date,
        "milestones": [_dump(m) for m in data.timeline.milestones],
        "budget_estimated": data.budget.estimated,
        "budget_actual": data.budget.actual,
        "expenses": [_dump(e) for e in data.budget.expenses],
        "status": data.status,
        "priority": data.priority,
        "documents": [_dump(d) for d in data.documents],
        "tags": list(data.tags),
    }


class ProjectService:
    """Projects. Regular employees see projects they manage or work on."""

    @staticmethod
    def _load(db: Session, record_id: str) -> Project:
        project = ProjectRepository.get(db, record_id)
        if project is None:
            raise NotFound("Project not found")
        return project

    @staticmethod
    def _require_client(db: Session, client_id: str):
        if ClientRepository.get(db, client_id) is None:
            raise ValidationError.single("client", "Client not found")

    @staticmethod
    def list_projects(db: Session, requester: User, params: ListParams) -> Dict[str, Any]:
        decision = _check(requester, Resource.PROJECT, Action.LIST)
        scope = scope_clause(decision.scope, Project, requester)
        return ProjectRepository.list(db, params, scope).to_dict()

    @staticmethod
    def get_project(db: Session, requester: User, record_id: str) -> Dict[str, Any]:
        project = ProjectService._load(db, record_id)
        _check(requester, Resource.PROJECT, Action.READ, owners=project.participant_ids)
        return project.to_dict()

    @staticmethod
    def create_project(db: Session, requester: User, payload: Dict[str, Any]) -> Dict[str, Any]:
        _check(requester, Resource.PROJECT, Action.CREATE)
        data = validate_payload(ProjectCreate, _as_patch(payload))
        ProjectService._require_client(db, data.client)

        project = ProjectRepository.create(db, manager_id=requester.id, **_project_columns(data))
        return project.to_dict()

    @staticmethod
    def update_project(db: Session, requester: User, record_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        project = ProjectService._load(db, record_id)
        _check(requester, Resource.PROJECT, Action.UPDATE, owners=[project.manager_id])

        merged = deep_merge(project.to_payload(), _as_patch(payload))
        data = validate_payload(ProjectCreate, merged)
        if data.client != project.client_id:
            ProjectService._require_client(db, data.client)

        project = ProjectRepository.update(db, project, _project_columns(data))
        logger.info(f"Project {project.project_id} updated by {requester.id}")
        return project.to_dict()

    @staticmethod
    def add_team_member(db: Session, requester: User, record_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        project = ProjectService._load(db, record_id)
        _check(requester, Resource.PROJECT, Action.ADD_TEAM, owners=[project.manager_id])
        member = validate_payload(TeamMemberRequest, _as_patch(payload))
        _require_user(db, member.user, "user")

        project = ProjectRepository.add_team_member(
            db,
            project,
            user_id=member.user,
            role=member.role,
            start_date=member.start_date,
            end_date=member.end_date,
        )
        return project.to_dict()


# ============ Documents ============

def _split_roles(value: Optional[str]) -> Optional[List[str]]:
    if value is None:
        return None
    return [role.strip() for role in value.split(",") if role.strip()]


class DocumentService:
    """Uploaded documents, guarded by their per-document view/edit lists."""

    @staticmethod
    def _load(db: Session, record_id: str):
        document = DocumentRepository.get(db, record_id)
        if document is None:
            raise NotFound("Document not found")
        return document

    @staticmethod
    def upload(
        db: Session,
        store: ObjectStore,
        requester: User,
        form: Dict[str, Optional[str]],
        file_name: Optional[str],
        content_type: Optional[str],
        stream: Optional[BinaryIO],
    ) -> Dict[str, Any]:
        """
        Validate metadata and file, write the file, then create the record.

        `form` carries the flat multipart fields (title, description,
        category, relatedTo.modelType, relatedTo.modelId, accessControl.view,
        accessControl.edit), the ACL lists as comma-separated roles.
        """
        _check(requester, Resource.DOCUMENT, Action.CREATE)
        if stream is None or not file_name:
            raise ValidationError.single("document", "No file uploaded")

        metadata = {
            "title": form.get("title"),
            "description": form.get("description"),
            "category": form.get("category"),
            "relatedTo": {
                "modelType": form.get("relatedTo.modelType"),
                "modelId": form.get("relatedTo.modelId"),
            },
        }
        acl = {}
        for action in ("view", "edit"):
            roles = _split_roles(form.get(f"accessControl.{action}"))
            if roles:
                acl[action] = roles
        metadata["accessControl"] = acl
        data = validate_payload(DocumentMetadata, metadata)

        stored = store.save("document", file_name, content_type, stream)
        document = DocumentRepository.create(
            db,
            view=data.access_control.view,
            edit=data.access_control.edit,
            title=data.title,
            description=data.description,
            category=data.category,
            related_model_type=data.related_to.model_type,
            related_model_id=data.related_to.model_id,
            file_name=stored.file_name,
            file_url=stored.file_url,
            file_size=stored.file_size,
            file_type=stored.file_type,
            uploaded_by_id=requester.id,
        )
        return document.to_dict()

    @staticmethod
    def list_documents(db: Session, requester: User, params: ListParams) -> Dict[str, Any]:
        decision = _check(requester, Resource.DOCUMENT, Action.LIST)
        scope = scope_clause(decision.scope, None, requester)
        return DocumentRepository.list(db, params, scope).to_dict()

    @staticmethod
    def get_document(db: Session, requester: User, record_id: str) -> Dict[str, Any]:
        document = DocumentService._load(db, record_id)
        _check(requester, Resource.DOCUMENT, Action.READ, acl=document.access_control)
        return document.to_dict()

    @staticmethod
    def update_document(db: Session, requester: User, record_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        document = DocumentService._load(db, record_id)
        _check(requester, Resource.DOCUMENT, Action.UPDATE, acl=document.access_control)

        patch = dict(_as_patch(payload))
        changes = patch.pop("changes", None) or "Document updated"
        merged = deep_merge(document.to_payload(), patch)
        data = validate_payload(DocumentMetadata, merged)

        version = document.version_current + 1
        history = list(document.version_history or []) + [{
            "version": version,
            "changes": changes,
            "updatedBy": requester.id,
            "updatedAt": datetime.utcnow().isoformat(),
            "fileUrl": document.file_url,
        }]
        values = {
            "title": data.title,
            "description": data.description,
            "category": data.category,
            "related_model_type": data.related_to.model_type,
            "related_model_id": data.related_to.model_id,
            "version_current": version,
            "version_history": history,
        }
        acl = {"view": list(data.access_control.view), "edit": list(data.access_control.edit)}
        document = DocumentRepository.update(db, document, values, acl)
        logger.info(f"Document {document.document_id} updated to v{version} by {requester.id}")
        return document.to_dict()

    @staticmethod
    def archive_document(db: Session, requester: User, record_id: str) -> Dict[str, Any]:
        _check(requester, Resource.DOCUMENT, Action.ARCHIVE)
        document = DocumentService._load(db, record_id)
        document = DocumentRepository.archive(db, document)
        return {"message": "Document archived successfully", "document": document.to_dict()}

    @staticmethod
    def download_path(db: Session, store: ObjectStore, requester: User, record_id: str):
        """Resolve the stored file for a document the requester may view."""
        document = DocumentService._load(db, record_id)
        _check(requester, Resource.DOCUMENT, Action.READ, acl=document.access_control)
        return document, store.path_for(document.file_url)


# ============ Dashboard & reports ============

def _parse_date(value) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


class DashboardService:
    """Pre-aggregated counts and recent activity."""

    @staticmethod
    def totals(db: Session) -> Dict[str, Any]:
        return {
            "totalEmployees": EmployeeRepository.count_by_status(db, "Active"),
            "totalClients": ClientRepository.count_by_status(db, "Active"),
            "totalProjects": ProjectRepository.count(db),
            "totalDocuments": DocumentRepository.count_active(db),
            "projectsByStatus": ProjectRepository.count_by_status(db),
            "employeesByDepartment": EmployeeRepository.count_by_department(db),
        }

    @staticmethod
    def upcoming_milestones(db: Session, today: Optional[date] = None) -> List[Dict[str, Any]]:
        today = today or datetime.utcnow().date()
        horizon = today + timedelta(days=UPCOMING_MILESTONE_DAYS)
        upcoming = []
        for project in ProjectRepository.all_with_milestones(db):
            for milestone in project.milestones or []:
                due = _parse_date(milestone.get("dueDate"))
                if due is None or not (today <= due <= horizon):
                    continue
                if milestone.get("status") not in OPEN_MILESTONE_STATUSES:
                    continue
                upcoming.append({
                    "projectId": project.id,
                    "projectTitle": project.title,
                    "milestone": milestone.get("title"),
                    "dueDate": due.isoformat(),
                    "status": milestone.get("status"),
                })
        upcoming.sort(key=lambda m: m["dueDate"])
        return upcoming[:10]

    @staticmethod
    def stats(db: Session, requester: User) -> Dict[str, Any]:
        data = DashboardService.totals(db)
        data["totalUsers"] = UserRepository.count_active(db)
        data["recentActivities"] = [
            {
                "type": "document_upload",
                "title": f"New document: {doc.title}",
                "user": doc.to_dict()["uploadedBy"],
                "timestamp": doc.created_at.isoformat(),
            }
            for doc in DocumentRepository.recent_uploads(db, 10)
        ]
        data["upcomingMilestones"] = DashboardService.upcoming_milestones(db)
        return data

    @staticmethod
    def activities(db: Session, requester: User, limit: int = 10) -> List[Dict[str, Any]]:
        uploads = [
            {
                "type": "document_upload",
                "title": f"Uploaded {doc.title}",
                "description": f"New {doc.category} document uploaded",
                "user": doc.to_dict()["uploadedBy"],
                "timestamp": doc.created_at,
                "metadata": {"documentId": doc.id, "category": doc.category},
            }
            for doc in DocumentRepository.recent_uploads(db, limit)
        ]
        logins = [
            {
                "type": "user_login",
                "title": f"{user.first_name} {user.last_name} logged in",
                "description": f"{user.role} user accessed the system",
                "user": {"id": user.id, "firstName": user.first_name, "lastName": user.last_name, "role": user.role},
                "timestamp": user.last_login,
                "metadata": {"role": user.role},
            }
            for user in UserRepository.recent_logins(db, requester.id, 5)
        ]
        merged = sorted(uploads + logins, key=lambda a: a["timestamp"], reverse=True)[:limit]
        for activity in merged:
            activity["timestamp"] = activity["timestamp"].isoformat()
        return merged


EMPLOYEE_REPORT_COLUMNS = [
    ("employeeId", "Employee ID"),
    ("firstName", "First Name"),
    ("lastName", "Last Name"),
    ("email", "Email"),
    ("department", "Department"),
    ("position", "Position"),
    ("hireDate", "Hire Date"),
    ("employmentType", "Employment Type"),
    ("salary", "Salary"),
    ("status", "Status"),
]

PROJECT_REPORT_COLUMNS = [
    ("projectId", "Project ID"),
    ("title", "Title"),
    ("client", "Client"),
    ("manager", "Manager"),
    ("startDate", "Start Date"),
    ("endDate", "End Date"),
    ("status", "Status"),
    ("priority", "Priority"),
    ("budget", "Budget"),
    ("teamSize", "Team Size"),
]


class ReportService:
    """Fetches already-authorized rows for export; rendering happens in reports.renderer."""

    @staticmethod
    def employee_rows(db: Session, requester: User, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        decision = _check(requester, Resource.REPORT_EMPLOYEES, Action.EXPORT)
        params = ListParams.parse(**filters)
        scope = scope_clause(decision.scope, Employee, requester)
        rows = []
        for employee in EmployeeRepository.list_all(db, params, scope):
            rows.append({
                "employeeId": employee.employee_id,
                "firstName": employee.first_name,
                "lastName": employee.last_name,
                "email": employee.user.email if employee.user else "",
                "department": employee.department,
                "position": employee.position,
                "hireDate": employee.hire_date.isoformat() if employee.hire_date else "",
                "employmentType": employee.employment_type,
                "salary": employee.salary,
                "status": employee.status,
            })
        return rows

    @staticmethod
    def project_rows(db: Session, requester: User, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        decision = _check(requester, Resource.REPORT_PROJECTS, Action.EXPORT)
        params = ListParams.parse(**filters)
        scope = scope_clause(decision.scope, Project, requester)
        rows = []
        for project in ProjectRepository.list_all(db, params, scope):
            manager = project.manager
            rows.append({
                "projectId": project.project_id,
                "title": project.title,
                "client": project.client.company_name if project.client else "",
                "manager": f"{manager.first_name} {manager.last_name}" if manager else "",
                "startDate": project.start_date.isoformat() if project.start_date else "",
                "endDate": project.end_date.isoformat() if project.end_date else "",
                "status": project.status,
                "priority": project.priority,
                "budget": project.budget_estimated,
                "teamSize": len(project.team_members),
            })
        return rows

    @staticmethod
    def stats(db: Session, requester: User) -> Dict[str, Any]:
        return DashboardService.totals(db)
