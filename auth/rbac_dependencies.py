"""
Authentication dependencies for FastAPI.

Resolves the service context, the per-request database session and the
authenticated user. Authorization itself lives in security.policy.rbac and
is applied by the service layer.
"""

from typing import Generator, Optional

from fastapi import Depends, Header, Request
from loguru import logger
from sqlalchemy.orm import Session

from records.errors import Unauthenticated
from records.models import User
from records.repository import UserRepository

# ==================== DEPENDENCY FUNCTIONS ====================


def get_context(request: Request):
    """Dependency: the ServiceContext attached by create_app()."""
    return request.app.state.context


def get_db(context=Depends(get_context)) -> Generator[Session, None, None]:
    """Dependency: a database session, committed or rolled back after the request."""
    yield from context.database.get_session()


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    return token or None


def verify_jwt_token(
    authorization: Optional[str] = Header(None),
    context=Depends(get_context),
) -> dict:
    """
    Dependency: Verify JWT token and return payload.
    """
    token = _bearer_token(authorization)
    if token is None:
        raise Unauthenticated()
    return context.auth.verify_token(token)


def get_current_user(
    request: Request,
    payload: dict = Depends(verify_jwt_token),
    db: Session = Depends(get_db),
) -> User:
    """
    Dependency: the User behind the bearer token.

    Tokens of deleted or deactivated users are rejected. The role is read
    from the database, not the token, so role changes apply immediately.
    """
    user = UserRepository.get(db, payload["sub"])
    if user is None or not user.is_active:
        logger.warning(f"Token presented for missing or inactive user {payload['sub']}")
        raise Unauthenticated("Not authorized, user not found")
    request.state.user_id = user.id
    return user


def get_optional_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    context=Depends(get_context),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """
    Dependency: like get_current_user, but anonymous requests get None.
    A token that is present but invalid is still an error.
    """
    token = _bearer_token(authorization)
    if token is None:
        return None
    payload = context.auth.verify_token(token)
    return get_current_user(request, payload, db)
