"""
Application settings, read from the environment (and .env when present).

Settings are built once and handed to create_app(); nothing else in the
code base reads configuration from the environment directly, except
DatabaseConfig for DATABASE_URL and its DB_* variables.
"""

import os
from dataclasses import dataclass, field
from typing import List

import dotenv

from records.database import DatabaseConfig

dotenv.load_dotenv()

THIRTY_DAYS = 30 * 24 * 3600
MEGABYTE = 1024 * 1024


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


@dataclass
class Settings:
    """Runtime configuration for one application instance"""

    environment: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))
    database: DatabaseConfig = field(default_factory=DatabaseConfig)

    # Tokens
    jwt_secret: str = field(default_factory=lambda: os.getenv("JWT_SECRET", ""))
    jwt_expiry_seconds: int = field(default_factory=lambda: int(os.getenv("JWT_EXPIRY_SECONDS", str(THIRTY_DAYS))))

    # Uploads and body limits
    upload_dir: str = field(default_factory=lambda: os.getenv("UPLOAD_DIR", "uploads"))
    max_upload_bytes: int = field(default_factory=lambda: int(os.getenv("MAX_UPLOAD_BYTES", str(10 * MEGABYTE))))
    max_body_bytes: int = field(default_factory=lambda: int(os.getenv("MAX_BODY_BYTES", str(50 * MEGABYTE))))

    # HTTP
    cors_origins: List[str] = field(
        default_factory=lambda: _env_list("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173")
    )
    rate_limit_per_window: int = field(default_factory=lambda: int(os.getenv("RATE_LIMIT_PER_WINDOW", "1000")))
    rate_limit_window_seconds: int = field(default_factory=lambda: int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "900")))

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ("development", "dev", "test")
