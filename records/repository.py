"""
Data access layer for the records system.

Repositories isolate SQL from business rules. They never check permissions;
the service layer decides what a requester may do and hands scope clauses
down to the listing queries built here.

Repository methods:
- User: create, get, get_by_email, list, update, delete, record_login
- Employee: create, get, list, list_all, update, delete
- Client: create, get, list, update, add_contract
- Project: create, get, list, list_all, update, add_team_member
- Document: create, get, list, update, archive
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, desc, func, or_
from sqlalchemy.orm import Session

from records.errors import DuplicateMember
from records.models import (
    Client, Document, DocumentAccess, Employee, Project, ProjectMember, User,
)
from records.query import ListParams, Page, QueryBuilder
from security.policy.rbac import Scope

logger = logging.getLogger(__name__)

_TRAILING_DIGITS = re.compile(r"(\d+)$")


def _suffix_number(code: Optional[str]) -> int:
    match = _TRAILING_DIGITS.search(code or "")
    return int(match.group(1)) if match else 0


def next_sequential_id(db: Session, model, column, prefix: str) -> str:
    """
    Next human-readable id for `model`: the numeric suffix of the most
    recently created record plus one, zero-padded to 3 digits. Records
    sharing the newest created_at are compared by their numeric suffix.

    Not guarded against concurrent creates; the unique constraint on
    `column` rejects a colliding insert.
    """
    latest = db.query(func.max(model.created_at)).scalar()
    number = 0
    if latest is not None:
        codes = [row[0] for row in db.query(column).filter(model.created_at == latest)]
        number = max((_suffix_number(code) for code in codes), default=0)
    return f"{prefix}{number + 1:03d}"


def scope_clause(scope: Optional[Scope], model, user: User):
    """SQL expression for a policy scope, or None for an unscoped listing."""
    if scope is None:
        return None
    if scope == Scope.ACTIVE_ONLY:
        return model.status == "Active"
    if scope == Scope.PROJECT_PARTICIPANT:
        return or_(
            Project.manager_id == user.id,
            Project.team_members.any(ProjectMember.user_id == user.id),
        )
    if scope == Scope.ACL_VIEW:
        return Document.access_entries.any(
            and_(DocumentAccess.action == "view", DocumentAccess.role == user.role)
        )
    raise ValueError(f"Unknown scope: {scope}")


def _apply(record, values: Dict[str, Any]):
    for key, value in values.items():
        setattr(record, key, value)


class UserRepository:
    """Repository for User database operations."""

    query_builder = QueryBuilder(
        User,
        search_fields=[User.first_name, User.last_name, User.email],
        filter_fields={"role": User.role},
    )

    @staticmethod
    def create(db: Session, **values) -> User:
        user = User(**values)
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"Created user {user.id} ({user.role})")
        return user

    @staticmethod
    def get(db: Session, user_id: str) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(func.lower(User.email) == email.lower()).first()

    @staticmethod
    def list(db: Session, params: ListParams) -> Page:
        return UserRepository.query_builder.paginate(db.query(User), params)

    @staticmethod
    def update(db: Session, user: User, values: Dict[str, Any]) -> User:
        _apply(user, values)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def record_login(db: Session, user: User) -> None:
        user.last_login = datetime.utcnow()
        db.commit()

    @staticmethod
    def delete(db: Session, user: User) -> None:
        """
        Delete a user. References to it are nulled and roster entries
        removed; the foreign keys do the same where the database enforces them.
        """
        user_id = user.id
        db.query(ProjectMember).filter(ProjectMember.user_id == user_id).delete(synchronize_session=False)
        for column in (Employee.user_id, Client.assigned_manager_id, Project.manager_id, Document.uploaded_by_id):
            db.query(column.class_).filter(column == user_id).update({column: None}, synchronize_session=False)
        db.delete(user)
        db.commit()
        logger.info(f"Deleted user {user_id}")

    @staticmethod
    def count_active(db: Session) -> int:
        return db.query(func.count(User.id)).filter(User.is_active.is_(True)).scalar()

    @staticmethod
    def recent_logins(db: Session, exclude_id: str, limit: int) -> List[User]:
        return (
            db.query(User)
            .filter(User.last_login.isnot(None), User.id != exclude_id)
            .order_by(desc(User.last_login))
            .limit(limit)
            .all()
        )


class EmployeeRepository:
    """Repository for Employee database operations."""

    query_builder = QueryBuilder(
        Employee,
        search_fields=[Employee.first_name, Employee.last_name, Employee.employee_id],
        filter_fields={
            "department": Employee.department,
            "status": Employee.status,
            "employmentType": Employee.employment_type,
        },
    )

    @staticmethod
    def create(db: Session, **values) -> Employee:
        employee = Employee(
            employee_id=next_sequential_id(db, Employee, Employee.employee_id, "EMP"),
            **values,
        )
        db.add(employee)
        db.commit()
        db.refresh(employee)
        logger.info(f"Created employee {employee.employee_id}")
        return employee

    @staticmethod
    def get(db: Session, record_id: str) -> Optional[Employee]:
        return db.query(Employee).filter(Employee.id == record_id).first()

    @staticmethod
    def list(db: Session, params: ListParams, scope=None) -> Page:
        return EmployeeRepository.query_builder.paginate(db.query(Employee), params, scope)

    @staticmethod
    def list_all(db: Session, params: ListParams, scope=None) -> List[Employee]:
        query = EmployeeRepository.query_builder.build(db.query(Employee), params, scope)
        return query.order_by(*EmployeeRepository.query_builder.newest_first()).all()

    @staticmethod
    def update(db: Session, employee: Employee, values: Dict[str, Any]) -> Employee:
        _apply(employee, values)
        db.commit()
        db.refresh(employee)
        return employee

    @staticmethod
    def delete(db: Session, employee: Employee) -> None:
        record_id = employee.id
        db.query(Employee).filter(Employee.manager_id == record_id).update(
            {Employee.manager_id: None}, synchronize_session=False
        )
        db.delete(employee)
        db.commit()
        logger.info(f"Deleted employee {employee.employee_id}")

    @staticmethod
    def count_by_status(db: Session, status: str) -> int:
        return db.query(func.count(Employee.id)).filter(Employee.status == status).scalar()

    @staticmethod
    def count_by_department(db: Session) -> List[Dict[str, Any]]:
        rows = (
            db.query(Employee.department, func.count(Employee.id))
            .group_by(Employee.department)
            .order_by(Employee.department)
            .all()
        )
        return [{"department": department, "count": count} for department, count in rows]


class ClientRepository:
    """Repository for Client database operations."""

    query_builder = QueryBuilder(
        Client,
        search_fields=[Client.company_name, Client.contact_first_name, Client.contact_last_name],
        filter_fields={"status": Client.status},
    )

    @staticmethod
    def create(db: Session, **values) -> Client:
        client = Client(
            client_id=next_sequential_id(db, Client, Client.client_id, "CLI"),
            **values,
        )
        db.add(client)
        db.commit()
        db.refresh(client)
        logger.info(f"Created client {client.client_id}")
        return client

    @staticmethod
    def get(db: Session, record_id: str) -> Optional[Client]:
        return db.query(Client).filter(Client.id == record_id).first()

    @staticmethod
    def list(db: Session, params: ListParams) -> Page:
        return ClientRepository.query_builder.paginate(db.query(Client), params)

    @staticmethod
    def update(db: Session, client: Client, values: Dict[str, Any]) -> Client:
        _apply(client, values)
        db.commit()
        db.refresh(client)
        return client

    @staticmethod
    def add_contract(db: Session, client: Client, contract: Dict[str, Any]) -> Client:
        # reassign so the JSON column is flagged dirty
        client.contracts = list(client.contracts or []) + [contract]
        db.commit()
        db.refresh(client)
        return client

    @staticmethod
    def count_by_status(db: Session, status: str) -> int:
        return db.query(func.count(Client.id)).filter(Client.status == status).scalar()


class ProjectRepository:
    """Repository for Project database operations."""

    query_builder = QueryBuilder(
        Project,
        search_fields=[Project.title, Project.description],
        filter_fields={"status": Project.status, "priority": Project.priority},
    )

    @staticmethod
    def create(db: Session, **values) -> Project:
        project = Project(
            project_id=next_sequential_id(db, Project, Project.project_id, "PROJ"),
            **values,
        )
        db.add(project)
        db.commit()
        db.refresh(project)
        logger.info(f"Created project {project.project_id}")
        return project

    @staticmethod
    def get(db: Session, record_id: str) -> Optional[Project]:
        return db.query(Project).filter(Project.id == record_id).first()

    @staticmethod
    def list(db: Session, params: ListParams, scope=None) -> Page:
        return ProjectRepository.query_builder.paginate(db.query(Project), params, scope)

    @staticmethod
    def list_all(db: Session, params: ListParams, scope=None) -> List[Project]:
        query = ProjectRepository.query_builder.build(db.query(Project), params, scope)
        return query.order_by(*ProjectRepository.query_builder.newest_first()).all()

    @staticmethod
    def update(db: Session, project: Project, values: Dict[str, Any]) -> Project:
        _apply(project, values)
        db.commit()
        db.refresh(project)
        return project

    @staticmethod
    def add_team_member(db: Session, project: Project, **member) -> Project:
        """Append a roster entry; raises DuplicateMember if the user is already on it."""
        exists = (
            db.query(ProjectMember.id)
            .filter(ProjectMember.project_id == project.id, ProjectMember.user_id == member["user_id"])
            .first()
        )
        if exists:
            raise DuplicateMember()
        project.team_members.append(ProjectMember(**member))
        db.commit()
        db.refresh(project)
        logger.info(f"Added user {member['user_id']} to project {project.project_id}")
        return project

    @staticmethod
    def count(db: Session) -> int:
        return db.query(func.count(Project.id)).scalar()

    @staticmethod
    def count_by_status(db: Session) -> List[Dict[str, Any]]:
        rows = (
            db.query(Project.status, func.count(Project.id))
            .group_by(Project.status)
            .order_by(Project.status)
            .all()
        )
        return [{"status": status, "count": count} for status, count in rows]

    @staticmethod
    def all_with_milestones(db: Session) -> List[Project]:
        return db.query(Project).all()


class DocumentRepository:
    """Repository for Document database operations."""

    query_builder = QueryBuilder(
        Document,
        search_fields=[Document.title, Document.description, Document.file_name],
        filter_fields={"category": Document.category, "modelType": Document.related_model_type},
    )

    @staticmethod
    def create(db: Session, view: List[str], edit: List[str], **values) -> Document:
        document = Document(
            document_id=next_sequential_id(db, Document, Document.document_id, "DOC"),
            **values,
        )
        document.set_access_control(view, edit)
        db.add(document)
        db.commit()
        db.refresh(document)
        logger.info(f"Created document {document.document_id}")
        return document

    @staticmethod
    def get(db: Session, record_id: str) -> Optional[Document]:
        return db.query(Document).filter(Document.id == record_id).first()

    @staticmethod
    def list(db: Session, params: ListParams, scope=None) -> Page:
        query = db.query(Document).filter(Document.is_archived.is_(False))
        return DocumentRepository.query_builder.paginate(query, params, scope)

    @staticmethod
    def update(db: Session, document: Document, values: Dict[str, Any], acl: Optional[Dict[str, List[str]]] = None) -> Document:
        _apply(document, values)
        if acl is not None:
            document.set_access_control(acl.get("view", []), acl.get("edit", []))
        db.commit()
        db.refresh(document)
        return document

    @staticmethod
    def archive(db: Session, document: Document) -> Document:
        document.is_archived = True
        db.commit()
        db.refresh(document)
        logger.info(f"Archived document {document.document_id}")
        return document

    @staticmethod
    def count_active(db: Session) -> int:
        return db.query(func.count(Document.id)).filter(Document.is_archived.is_(False)).scalar()

    @staticmethod
    def recent_uploads(db: Session, limit: int) -> List[Document]:
        return (
            db.query(Document)
            .filter(Document.is_archived.is_(False))
            .order_by(desc(Document.created_at), desc(Document.id))
            .limit(limit)
            .all()
        )
