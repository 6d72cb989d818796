import pytest
from fastapi.testclient import TestClient

from apps.api.main import create_app
from apps.api.settings import Settings
from auth.auth_manager import AuthManager
from records.database import DatabaseConfig
from records.repository import UserRepository

PASSWORD = "password123"
JWT_SECRET = "test-secret-for-the-records-api-0123456789"

SEED_USERS = {
    "admin": ("Ada", "Admin", "admin@company.com"),
    "hr": ("Helen", "Hughes", "hr@company.com"),
    "client_manager": ("Carl", "Manning", "manager@company.com"),
    "employee": ("Eve", "Evans", "employee@company.com"),
}


@pytest.fixture(scope="session")
def password_hash():
    # bcrypt is slow on purpose; hash once for every seeded user
    return AuthManager.hash_password(PASSWORD)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        environment="test",
        database=DatabaseConfig(url="sqlite://"),
        jwt_secret=JWT_SECRET,
        jwt_expiry_seconds=3600,
        upload_dir=str(tmp_path / "uploads"),
        max_upload_bytes=64 * 1024,
        max_body_bytes=1024 * 1024,
        cors_origins=["http://localhost:3000"],
        rate_limit_per_window=100000,
        rate_limit_window_seconds=900,
    )


@pytest.fixture
def app(settings):
    app = create_app(settings)
    yield app
    app.state.context.close()


@pytest.fixture
def context(app):
    return app.state.context


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def make_user(context, password_hash):
    """Insert a user directly; returns the detached User."""
    def _make(role="employee", first_name="Test", last_name="User", email=None, **extra):
        email = email or f"{first_name}.{last_name}.{role}@company.com".lower()
        with context.database.session_scope() as db:
            return UserRepository.create(
                db,
                first_name=first_name,
                last_name=last_name,
                email=email,
                password_hash=password_hash,
                role=role,
                **extra,
            )
    return _make


@pytest.fixture
def users(make_user):
    return {
        role: make_user(role=role, first_name=first, last_name=last, email=email)
        for role, (first, last, email) in SEED_USERS.items()
    }


@pytest.fixture
def headers_for(context):
    def _headers(user):
        return {"Authorization": f"Bearer {context.auth.create_token(user)}"}
    return _headers


@pytest.fixture
def as_role(users, headers_for):
    """Authorization headers for one of the seeded roles."""
    def _as(role):
        return headers_for(users[role])
    return _as


def employee_payload(**overrides):
    payload = {
        "personalDetails": {
            "firstName": "Jane",
            "lastName": "Doe",
            "dateOfBirth": "1990-05-01",
            "gender": "Female",
            "contactNumber": "555-0100",
            "personalEmail": "jane.doe@mail.com",
            "address": {"city": "Springfield", "country": "US"},
        },
        "jobDetails": {
            "department": "Engineering",
            "position": "Developer",
            "hireDate": "2020-01-15",
            "employmentType": "Full-time",
            "salary": 75000,
        },
    }
    payload.update(overrides)
    return payload


def client_payload(company="Acme Corp", **overrides):
    payload = {
        "companyName": company,
        "contactPerson": {"firstName": "Wile", "lastName": "Coyote", "position": "CTO"},
        "contactDetails": {"email": "wile@acme.com", "phone": "555-0199"},
        "businessDetails": {"industry": "Manufacturing"},
    }
    payload.update(overrides)
    return payload


def project_payload(client_id, title="Rocket Skates", **overrides):
    payload = {
        "title": title,
        "description": "Build faster skates",
        "client": client_id,
        "timeline": {"startDate": "2024-01-01", "endDate": "2024-12-31"},
        "budget": {"estimated": 50000},
        "priority": "High",
    }
    payload.update(overrides)
    return payload
