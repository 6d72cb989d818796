"""
FastAPI authentication endpoints.

- POST /api/auth/register - create an account (admin may assign any role)
- POST /api/auth/login    - exchange email/password for a bearer token
- GET  /api/auth/me       - the authenticated user
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from loguru import logger
from sqlalchemy.orm import Session

from auth.rbac_dependencies import get_context, get_current_user, get_db, get_optional_user
from records.errors import InternalError, RecordsError
from records.models import User
from records.schemas import LoginRequest, RegisterRequest

router = APIRouter(prefix="/api/auth", tags=["auth"])

# ==================== HELPER FUNCTIONS ====================


def get_client_ip(request: Request) -> str:
    """Extract client IP from request"""
    if request.client:
        return request.client.host
    return "unknown"

# ==================== ENDPOINTS ====================


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    request: Request,
    context=Depends(get_context),
    db: Session = Depends(get_db),
    requester: Optional[User] = Depends(get_optional_user),
):
    """Register a new user and return a session token."""
    try:
        result = context.auth.register(db, data, requester)
        logger.info(f"User registered: {data.email} from {get_client_ip(request)}")
        return result
    except RecordsError:
        raise
    except Exception as e:
        logger.error(f"Registration error: {e}")
        raise InternalError()


@router.post("/login")
def login(
    data: LoginRequest,
    request: Request,
    context=Depends(get_context),
    db: Session = Depends(get_db),
):
    """Login user and return access token."""
    try:
        return context.auth.login(db, data.email, data.password)
    except RecordsError:
        logger.warning(f"Login failed for {data.email} from {get_client_ip(request)}")
        raise
    except Exception as e:
        logger.error(f"Login error: {e}")
        raise InternalError()


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    """Get current user info."""
    return user.to_dict()
