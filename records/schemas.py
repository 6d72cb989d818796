"""
Pydantic schemas for records API validation.

These schemas handle:
1. Request validation (what the frontend sends, camelCase on the wire)
2. Re-validation of merged documents on update
3. Enumerated value sets shared with the ORM layer

Responses are produced by the models' to_dict() serializers.
"""

from datetime import date
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from records.errors import ValidationError

RoleName = Literal["admin", "hr", "client_manager", "employee"]
Gender = Literal["Male", "Female", "Other"]
EmploymentType = Literal["Full-time", "Part-time", "Contract", "Temporary"]
EmployeeStatus = Literal["Active", "On Leave", "Terminated", "Resigned"]
ClientStatus = Literal["Active", "Inactive", "Suspended"]
ContractStatus = Literal["Active", "Expired", "Terminated", "Draft"]
ProjectStatus = Literal["Planning", "Active", "On Hold", "Completed", "Cancelled"]
Priority = Literal["Low", "Medium", "High", "Critical"]
MilestoneStatus = Literal["Pending", "In Progress", "Completed", "Delayed"]
DocumentCategory = Literal["Employee", "Client", "Project", "Contract", "Financial", "Other"]
RelatedModel = Literal["Employee", "Client", "Project", "User"]


class CamelModel(BaseModel):
    """Accepts both camelCase (wire) and snake_case (python) field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _not_blank(v):
    if isinstance(v, str) and not v.strip():
        raise ValueError("must not be empty")
    return v.strip() if isinstance(v, str) else v


# ============ Users & auth ============

class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterRequest(CamelModel):
    """
    Example:
        {"firstName": "Ada", "lastName": "Lovelace", "email": "ada@company.com",
         "password": "secret1", "role": "hr"}
    """
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, description="At least 6 characters")
    role: RoleName = "employee"
    department: Optional[str] = None
    position: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def not_blank(cls, v):
        return _not_blank(v)


class UserUpdateRequest(CamelModel):
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    role: Optional[RoleName] = None
    department: Optional[str] = None
    position: Optional[str] = None
    phone: Optional[str] = None
    is_active: Optional[bool] = None


class PasswordChangeRequest(CamelModel):
    current_password: Optional[str] = None
    new_password: str = Field(..., min_length=6)


# ============ Employees ============

class Address(CamelModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class EmergencyContact(CamelModel):
    name: Optional[str] = None
    relationship: Optional[str] = None
    phone: Optional[str] = None


class PersonalDetails(CamelModel):
    first_name: str
    last_name: str
    date_of_birth: date
    gender: Gender
    contact_number: str
    personal_email: str
    address: Optional[Address] = None
    emergency_contact: Optional[EmergencyContact] = None

    @field_validator("first_name", "last_name", "contact_number", "personal_email")
    @classmethod
    def not_blank(cls, v):
        return _not_blank(v)


class JobDetails(CamelModel):
    department: str
    position: str
    hire_date: date
    employment_type: EmploymentType
    salary: float = Field(..., ge=0)
    manager: Optional[str] = Field(None, description="Employee id of the line manager")
    work_location: Optional[str] = None
    work_schedule: Optional[str] = None

    @field_validator("department", "position")
    @classmethod
    def not_blank(cls, v):
        return _not_blank(v)


class Performance(CamelModel):
    last_review_date: Optional[date] = None
    next_review_date: Optional[date] = None
    overall_rating: Optional[int] = Field(None, ge=1, le=5)
    strengths: List[str] = Field(default_factory=list)
    areas_for_improvement: List[str] = Field(default_factory=list)
    goals: List[str] = Field(default_factory=list)


class AttachedFile(CamelModel):
    name: Optional[str] = None
    type: Optional[str] = None
    upload_date: Optional[date] = None
    file_url: Optional[str] = None
    uploaded_by: Optional[str] = None


class EmployeeCreate(CamelModel):
    user: Optional[str] = Field(None, description="User id; defaults to the requester")
    personal_details: PersonalDetails
    job_details: JobDetails
    performance: Optional[Performance] = None
    documents: List[AttachedFile] = Field(default_factory=list)
    status: EmployeeStatus = "Active"


# ============ Clients ============

class ContactPerson(CamelModel):
    first_name: str
    last_name: str
    position: Optional[str] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def not_blank(cls, v):
        return _not_blank(v)


class ContactDetails(CamelModel):
    email: EmailStr
    phone: str
    alternate_phone: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def not_blank(cls, v):
        return _not_blank(v)


class BusinessDetails(CamelModel):
    industry: Optional[str] = None
    company_size: Optional[str] = None
    tax_id: Optional[str] = None
    website: Optional[str] = None


class Contract(CamelModel):
    title: str
    start_date: date
    end_date: date
    value: float = Field(..., ge=0)
    status: ContractStatus = "Draft"
    document_url: Optional[str] = None

    @field_validator("title")
    @classmethod
    def not_blank(cls, v):
        return _not_blank(v)


class ClientCreate(CamelModel):
    company_name: str = Field(..., max_length=100)
    contact_person: ContactPerson
    contact_details: ContactDetails
    address: Optional[Address] = None
    business_details: Optional[BusinessDetails] = None
    contracts: List[Contract] = Field(default_factory=list)
    status: ClientStatus = "Active"
    notes: Optional[str] = None
    assigned_manager: Optional[str] = Field(None, description="User id; defaults to the creator")

    @field_validator("company_name")
    @classmethod
    def not_blank(cls, v):
        return _not_blank(v)


# ============ Projects ============

class Milestone(CamelModel):
    title: str
    description: Optional[str] = None
    due_date: Optional[date] = None
    status: MilestoneStatus = "Pending"
    completed_date: Optional[date] = None


class Timeline(CamelModel):
    start_date: date
    end_date: date
    milestones: List[Milestone] = Field(default_factory=list)


class Expense(CamelModel):
    description: Optional[str] = None
    amount: float
    expense_date: Optional[date] = Field(None, alias="date")
    category: Optional[str] = None


class Budget(CamelModel):
    estimated: float = Field(..., ge=0)
    actual: Optional[float] = None
    expenses: List[Expense] = Field(default_factory=list)


class ProjectCreate(CamelModel):
    title: str = Field(..., max_length=200)
    description: str
    client: str = Field(..., description="Client record id")
    timeline: Timeline
    budget: Budget
    status: ProjectStatus = "Planning"
    priority: Priority = "Medium"
    documents: List[AttachedFile] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)

    @field_validator("title", "description", "client")
    @classmethod
    def not_blank(cls, v):
        return _not_blank(v)


class TeamMemberRequest(CamelModel):
    user: str
    role: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("user", "role")
    @classmethod
    def not_blank(cls, v):
        return _not_blank(v)


# ============ Documents ============

class RelatedTo(CamelModel):
    model_type: RelatedModel
    model_id: str

    @field_validator("model_id")
    @classmethod
    def not_blank(cls, v):
        return _not_blank(v)


class AccessControl(CamelModel):
    view: List[RoleName] = Field(default_factory=lambda: ["admin", "hr", "client_manager"])
    edit: List[RoleName] = Field(default_factory=lambda: ["admin", "hr"])


class DocumentMetadata(CamelModel):
    title: str
    description: Optional[str] = None
    category: DocumentCategory
    related_to: RelatedTo
    access_control: AccessControl = Field(default_factory=AccessControl)

    @field_validator("title")
    @classmethod
    def not_blank(cls, v):
        return _not_blank(v)


# ============ Reports ============

class EmployeeReportFilters(CamelModel):
    department: Optional[str] = None
    status: Optional[str] = None
    employment_type: Optional[str] = None


class ProjectReportFilters(CamelModel):
    status: Optional[str] = None
    priority: Optional[str] = None


class EmployeeReportRequest(CamelModel):
    format: str = "excel"
    filters: EmployeeReportFilters = Field(default_factory=EmployeeReportFilters)


class ProjectReportRequest(CamelModel):
    format: str = "excel"
    filters: ProjectReportFilters = Field(default_factory=ProjectReportFilters)


def validate_payload(schema, payload: Dict[str, Any]):
    """Validate a dict against `schema`, raising records.errors.ValidationError."""
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e)
