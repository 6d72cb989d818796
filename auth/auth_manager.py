"""
Authentication manager: bcrypt password hashing and signed bearer tokens.
"""

import secrets
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import bcrypt
import jwt
from loguru import logger
from sqlalchemy.orm import Session

from records.errors import Forbidden, InvalidCredentials, Unauthenticated, ValidationError
from records.models import User
from records.repository import UserRepository
from records.schemas import RegisterRequest

JWT_ALGORITHM = "HS256"


class AuthManager:
    """Authentication manager"""

    def __init__(self, jwt_secret: str, jwt_expiry: int, allow_insecure_secret: bool = False):
        if not jwt_secret:
            if not allow_insecure_secret:
                raise ValueError("JWT_SECRET environment variable not set. Cannot initialize auth system.")
            jwt_secret = secrets.token_urlsafe(48)
            logger.warning("JWT_SECRET not set - using a random per-process secret (development only)")
        elif len(jwt_secret) < 32:
            logger.warning("JWT_SECRET is less than 32 bytes - use a stronger secret!")
        self.jwt_secret = jwt_secret
        self.jwt_expiry = jwt_expiry
        logger.info("AuthManager initialized")

    @classmethod
    def from_settings(cls, settings) -> "AuthManager":
        return cls(settings.jwt_secret, settings.jwt_expiry_seconds, allow_insecure_secret=settings.is_development)

    # ==================== PASSWORD HASHING ====================

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash password using bcrypt"""
        password_bytes = password.encode("utf-8")[:72]
        salt = bcrypt.gensalt(rounds=12)
        return bcrypt.hashpw(password_bytes, salt).decode("utf-8")

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        """Verify password against hash"""
        if not password_hash:
            logger.error("[VERIFY] Password hash is None or empty")
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8")[:72], password_hash.encode("utf-8"))
        except ValueError as e:
            logger.error(f"[VERIFY] Malformed password hash: {e}")
            return False

    # ==================== TOKENS ====================

    def create_token(self, user: User) -> str:
        now = datetime.utcnow()
        return jwt.encode(
            {
                "sub": user.id,
                "role": user.role,
                "email": user.email,
                "iat": now,
                "exp": now + timedelta(seconds=self.jwt_expiry),
            },
            self.jwt_secret,
            algorithm=JWT_ALGORITHM,
        )

    def verify_token(self, token: str) -> Dict[str, Any]:
        """Decode and validate a bearer token; raises Unauthenticated."""
        try:
            payload = jwt.decode(token, self.jwt_secret, algorithms=[JWT_ALGORITHM])
        except jwt.ExpiredSignatureError:
            logger.warning("[TOKEN] Token expired")
            raise Unauthenticated("Not authorized, token expired")
        except jwt.InvalidTokenError as e:
            logger.warning(f"[TOKEN] Invalid token: {e}")
            raise Unauthenticated("Not authorized, token failed")
        if not payload.get("sub"):
            raise Unauthenticated("Not authorized, token failed")
        return payload

    def session_payload(self, user: User) -> Dict[str, Any]:
        """Login/register response: token plus the public user fields."""
        return {
            "token": self.create_token(user),
            "id": user.id,
            "firstName": user.first_name,
            "lastName": user.last_name,
            "email": user.email,
            "role": user.role,
            "department": user.department,
            "position": user.position,
        }

    # ==================== LOGIN ====================

    def login(self, db: Session, email: str, password: str) -> Dict[str, Any]:
        """
        Verify credentials and issue a token.

        Unknown email, inactive account and wrong password all fail with the
        same InvalidCredentials; last_login only moves on success.
        """
        logger.info(f"[LOGIN] Starting login for email: {email}")
        user = UserRepository.get_by_email(db, email)
        if user is None:
            logger.warning(f"[LOGIN] User not found: {email}")
            raise InvalidCredentials()
        if not user.is_active:
            logger.warning(f"[LOGIN] Account is disabled for: {email}")
            raise InvalidCredentials()
        if not self.verify_password(password, user.password_hash):
            logger.warning(f"[LOGIN] Password verification failed for: {email}")
            raise InvalidCredentials()

        UserRepository.record_login(db, user)
        logger.info(f"[LOGIN] User logged in successfully: {email}")
        return self.session_payload(user)

    # ==================== REGISTRATION ====================

    def register(self, db: Session, request: RegisterRequest, requester: Optional[User] = None) -> Dict[str, Any]:
        """Create a user. Only an authenticated admin may assign a role other than employee."""
        logger.info(f"[REGISTER] Starting registration for email: {request.email}")
        if request.role != "employee" and (requester is None or requester.role != "admin"):
            logger.warning(f"[REGISTER] Role '{request.role}' requested without admin rights")
            raise Forbidden("Only administrators can assign this role")

        if UserRepository.get_by_email(db, request.email) is not None:
            logger.warning(f"[REGISTER] Email already exists: {request.email}")
            raise ValidationError.single("email", "User already exists")

        user = UserRepository.create(
            db,
            first_name=request.first_name,
            last_name=request.last_name,
            email=request.email.lower(),
            password_hash=self.hash_password(request.password),
            role=request.role,
            department=request.department,
            position=request.position,
            phone=request.phone,
        )
        logger.info(f"[REGISTER] User registered successfully: {user.email} ({user.role})")
        return self.session_payload(user)

    # ==================== PASSWORD CHANGE ====================

    def change_password(
        self,
        db: Session,
        requester: User,
        target: User,
        new_password: str,
        current_password: Optional[str] = None,
    ) -> None:
        """Non-admins must prove the current password; admins may reset anyone's."""
        if requester.role != "admin":
            if not current_password or not self.verify_password(current_password, target.password_hash):
                raise ValidationError.single("currentPassword", "Current password is incorrect")
        UserRepository.update(db, target, {"password_hash": self.hash_password(new_password)})
        logger.info(f"[PASSWORD] Password changed for {target.id} by {requester.id}")
