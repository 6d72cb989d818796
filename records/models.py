"""
Database models for the records system.

This module defines SQLAlchemy ORM models for users and the four managed
record types. Queryable fields are real columns; nested sub-documents that
are only ever read back whole (addresses, contracts, milestones, ...) are
JSON columns.

Models:
- User: login identity and role
- Employee: personal and job details of a staff member (EMP###)
- Client: company record with contracts (CLI###)
- Project: client work with a manager and a team roster (PROJ###)
- ProjectMember: one roster entry, unique per (project, user)
- Document: uploaded file with ACL and version history (DOC###)
- DocumentAccess: one (action, role) entry of a document ACL

References to users are nullified when the user is deleted; serializers
render missing references as None.
"""

from sqlalchemy import (
    CheckConstraint, Column, String, DateTime, Date, Text, Integer, ForeignKey,
    Index, Boolean, Float, UniqueConstraint, JSON,
)
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime
import uuid

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


def _iso(value):
    return value.isoformat() if value else None


def user_ref(user, *fields):
    """Populated reference to a user, limited to the given fields."""
    if user is None:
        return None
    data = {"id": user.id}
    for name in fields or ("firstName", "lastName", "email"):
        data[name] = user.to_dict().get(name)
    return data


class TimestampMixin:
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class User(TimestampMixin, Base):
    """User accounts: identity, hashed password and role."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="employee", index=True)
    department = Column(String(100))
    position = Column(String(100))
    phone = Column(String(50))

    # Status
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'hr', 'client_manager', 'employee')", name="ck_users_role"
        ),
    )

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"

    def to_dict(self):
        return {
            "id": self.id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "role": self.role,
            "department": self.department,
            "position": self.position,
            "phone": self.phone,
            "isActive": self.is_active,
            "lastLogin": _iso(self.last_login),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class Employee(TimestampMixin, Base):
    """
    A staff member's record, wrapping a User.

    Attributes:
        employee_id: Human-readable sequential id (EMP001, EMP002, ...)
        user_id: The login this record describes
        manager_id: Another Employee (line manager)
        address, emergency_contact, performance, documents: JSON sub-documents
    """

    __tablename__ = "employees"

    id = Column(String(36), primary_key=True, default=_uuid)
    employee_id = Column(String(20), unique=True, nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    # Personal details
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    gender = Column(String(10), nullable=False)
    contact_number = Column(String(50), nullable=False)
    personal_email = Column(String(255), nullable=False)
    address = Column(JSON, nullable=True)
    emergency_contact = Column(JSON, nullable=True)

    # Job details
    department = Column(String(100), nullable=False, index=True)
    position = Column(String(100), nullable=False)
    hire_date = Column(Date, nullable=False)
    employment_type = Column(String(20), nullable=False)
    salary = Column(Float, nullable=False)
    manager_id = Column(String(36), ForeignKey("employees.id", ondelete="SET NULL"), nullable=True)
    work_location = Column(String(255))
    work_schedule = Column(String(255))

    performance = Column(JSON, nullable=True, default=lambda: {})
    documents = Column(JSON, nullable=True, default=lambda: [])
    status = Column(String(20), nullable=False, default="Active", index=True)

    user = relationship("User", lazy="joined", foreign_keys=[user_id])
    manager = relationship("Employee", remote_side=[id], lazy="joined", join_depth=1)

    __table_args__ = (
        Index("idx_employee_status_created", "status", "created_at"),
    )

    def __repr__(self):
        return f"<Employee(id={self.id}, employee_id='{self.employee_id}')>"

    def to_payload(self):
        """Editable fields in request shape, used as the base of a merge-update."""
        return {
            "user": self.user_id,
            "personalDetails": {
                "firstName": self.first_name,
                "lastName": self.last_name,
                "dateOfBirth": _iso(self.date_of_birth),
                "gender": self.gender,
                "contactNumber": self.contact_number,
                "personalEmail": self.personal_email,
                "address": self.address,
                "emergencyContact": self.emergency_contact,
            },
            "jobDetails": {
                "department": self.department,
                "position": self.position,
                "hireDate": _iso(self.hire_date),
                "employmentType": self.employment_type,
                "salary": self.salary,
                "manager": self.manager_id,
                "workLocation": self.work_location,
                "workSchedule": self.work_schedule,
            },
            "performance": self.performance or {},
            "documents": self.documents or [],
            "status": self.status,
        }

    def to_dict(self):
        data = self.to_payload()
        data["id"] = self.id
        data["employeeId"] = self.employee_id
        data["user"] = user_ref(self.user)
        manager = self.manager
        data["jobDetails"]["manager"] = None if manager is None else {
            "id": manager.id,
            "employeeId": manager.employee_id,
            "personalDetails": {"firstName": manager.first_name, "lastName": manager.last_name},
        }
        data["createdAt"] = _iso(self.created_at)
        data["updatedAt"] = _iso(self.updated_at)
        return data


class Client(TimestampMixin, Base):
    """Company record with contact info, contracts and an assigned manager (CLI###)."""

    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=_uuid)
    client_id = Column(String(20), unique=True, nullable=False, index=True)
    company_name = Column(String(100), nullable=False, index=True)

    # Contact person / details
    contact_first_name = Column(String(100), nullable=False)
    contact_last_name = Column(String(100), nullable=False)
    contact_position = Column(String(100))
    contact_email = Column(String(255), nullable=False)
    contact_phone = Column(String(50), nullable=False)
    alternate_phone = Column(String(50))

    address = Column(JSON, nullable=True)
    business_details = Column(JSON, nullable=True)
    contracts = Column(JSON, nullable=False, default=lambda: [])
    status = Column(String(20), nullable=False, default="Active", index=True)
    notes = Column(Text)

    assigned_manager_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    assigned_manager = relationship("User", lazy="joined", foreign_keys=[assigned_manager_id])
    projects = relationship("Project", back_populates="client", lazy="selectin", order_by="Project.created_at")

    def __repr__(self):
        return f"<Client(id={self.id}, client_id='{self.client_id}', company='{self.company_name}')>"

    def to_payload(self):
        return {
            "companyName": self.company_name,
            "contactPerson": {
                "firstName": self.contact_first_name,
                "lastName": self.contact_last_name,
                "position": self.contact_position,
            },
            "contactDetails": {
                "email": self.contact_email,
                "phone": self.contact_phone,
                "alternatePhone": self.alternate_phone,
            },
            "address": self.address,
            "businessDetails": self.business_details,
            "contracts": list(self.contracts or []),
            "status": self.status,
            "notes": self.notes,
            "assignedManager": self.assigned_manager_id,
        }

    def to_dict(self):
        data = self.to_payload()
        data["id"] = self.id
        data["clientId"] = self.client_id
        data["assignedManager"] = user_ref(self.assigned_manager)
        data["projects"] = [
            {"id": p.id, "projectId": p.project_id, "title": p.title, "status": p.status}
            for p in self.projects
        ]
        data["createdAt"] = _iso(self.created_at)
        data["updatedAt"] = _iso(self.updated_at)
        return data


class ProjectMember(Base):
    """One entry of a project's team roster."""

    __tablename__ = "project_members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(100), nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", lazy="joined")

    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_member"),
    )

    def to_dict(self):
        return {
            "user": user_ref(self.user, "firstName", "lastName", "email", "position"),
            "role": self.role,
            "startDate": _iso(self.start_date),
            "endDate": _iso(self.end_date),
        }


class Project(TimestampMixin, Base):
    """Client work with a manager, a team, a timeline and a budget (PROJ###)."""

    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=_uuid)
    project_id = Column(String(20), unique=True, nullable=False, index=True)
    title = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=False)

    client_id = Column(String(36), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True)
    manager_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    # Timeline
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    milestones = Column(JSON, nullable=False, default=lambda: [])

    # Budget
    budget_estimated = Column(Float, nullable=False)
    budget_actual = Column(Float, nullable=True)
    expenses = Column(JSON, nullable=False, default=lambda: [])

    status = Column(String(20), nullable=False, default="Planning", index=True)
    priority = Column(String(20), nullable=False, default="Medium", index=True)
    documents = Column(JSON, nullable=False, default=lambda: [])
    tags = Column(JSON, nullable=False, default=lambda: [])

    client = relationship("Client", back_populates="projects", lazy="joined")
    manager = relationship("User", lazy="joined", foreign_keys=[manager_id])
    team_members = relationship(
        "ProjectMember",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ProjectMember.id",
    )

    def __repr__(self):
        return f"<Project(id={self.id}, project_id='{self.project_id}', title='{self.title}')>"

    @property
    def participant_ids(self):
        ids = {m.user_id for m in self.team_members}
        if self.manager_id:
            ids.add(self.manager_id)
        return ids

    def to_payload(self):
        return {
            "title": self.title,
            "description": self.description,
            "client": self.client_id,
            "timeline": {
                "startDate": _iso(self.start_date),
                "endDate": _iso(self.end_date),
                "milestones": list(self.milestones or []),
            },
            "budget": {
                "estimated": self.budget_estimated,
                "actual": self.budget_actual,
                "expenses": list(self.expenses or []),
            },
            "status": self.status,
            "priority": self.priority,
            "documents": list(self.documents or []),
            "tags": list(self.tags or []),
        }

    def to_dict(self):
        data = self.to_payload()
        data["id"] = self.id
        data["projectId"] = self.project_id
        client = self.client
        data["client"] = None if client is None else {
            "id": client.id,
            "clientId": client.client_id,
            "companyName": client.company_name,
            "contactPerson": {
                "firstName": client.contact_first_name,
                "lastName": client.contact_last_name,
            },
        }
        data["manager"] = user_ref(self.manager)
        data["teamMembers"] = [m.to_dict() for m in self.team_members]
        data["createdAt"] = _iso(self.created_at)
        data["updatedAt"] = _iso(self.updated_at)
        return data


class DocumentAccess(Base):
    """A single ACL entry: `role` may perform `action` ('view' or 'edit')."""

    __tablename__ = "document_access"

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(String(36), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String(10), nullable=False)
    role = Column(String(20), nullable=False)

    __table_args__ = (
        CheckConstraint("action IN ('view', 'edit')", name="ck_document_access_action"),
        UniqueConstraint("document_id", "action", "role", name="uq_document_access"),
        Index("idx_document_access_lookup", action, role),
    )


class Document(TimestampMixin, Base):
    """
    An uploaded file and its metadata (DOC###).

    related_model_type/related_model_id form a polymorphic reference to an
    Employee, Client, Project or User; it is not a foreign key.
    """

    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=_uuid)
    document_id = Column(String(20), unique=True, nullable=False, index=True)
    title = Column(String(255), nullable=False, index=True)
    description = Column(Text)

    # Stored file
    file_name = Column(String(255), nullable=False)
    file_url = Column(String(500), nullable=False)
    file_size = Column(Integer, nullable=False)
    file_type = Column(String(20), nullable=False)

    category = Column(String(20), nullable=False, index=True)
    related_model_type = Column(String(20), nullable=False, index=True)
    related_model_id = Column(String(36), nullable=False)

    version_current = Column(Integer, nullable=False, default=1)
    version_history = Column(JSON, nullable=False, default=lambda: [])

    uploaded_by_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_archived = Column(Boolean, default=False, nullable=False, index=True)

    uploaded_by = relationship("User", lazy="joined", foreign_keys=[uploaded_by_id])
    access_entries = relationship(
        "DocumentAccess",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="DocumentAccess.id",
    )

    def __repr__(self):
        return f"<Document(id={self.id}, document_id='{self.document_id}', title='{self.title}')>"

    @property
    def access_control(self):
        acl = {"view": [], "edit": []}
        for entry in self.access_entries:
            acl.setdefault(entry.action, []).append(entry.role)
        return acl

    def set_access_control(self, view, edit):
        """Replace the ACL, keeping rows that survive so the unique key never collides."""
        wanted = [(action, role) for action, roles in (("view", view), ("edit", edit)) for role in dict.fromkeys(roles)]
        kept = [entry for entry in self.access_entries if (entry.action, entry.role) in wanted]
        present = {(entry.action, entry.role) for entry in kept}
        self.access_entries = kept + [
            DocumentAccess(action=action, role=role) for action, role in wanted if (action, role) not in present
        ]

    def to_payload(self):
        return {
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "relatedTo": {"modelType": self.related_model_type, "modelId": self.related_model_id},
            "accessControl": self.access_control,
        }

    def to_dict(self):
        data = self.to_payload()
        data.update({
            "id": self.id,
            "documentId": self.document_id,
            "fileName": self.file_name,
            "fileUrl": self.file_url,
            "fileSize": self.file_size,
            "fileType": self.file_type,
            "version": {"current": self.version_current, "history": list(self.version_history or [])},
            "uploadedBy": user_ref(self.uploaded_by, "firstName", "lastName"),
            "isArchived": self.is_archived,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        })
        return data
