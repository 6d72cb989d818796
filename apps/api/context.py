"""
Service context: the collaborators one application instance runs with.
"""

from dataclasses import dataclass

from apps.api.settings import Settings
from auth.auth_manager import AuthManager
from auth.cache_manager import RateLimitStore
from records.database import DatabaseManager
from storage.object_store.buckets import DiskStore, ObjectStore


@dataclass
class ServiceContext:
    settings: Settings
    database: DatabaseManager
    auth: AuthManager
    store: ObjectStore
    rate_limits: RateLimitStore

    @classmethod
    def build(cls, settings: Settings) -> "ServiceContext":
        database = DatabaseManager(settings.database)
        database.initialize()
        return cls(
            settings=settings,
            database=database,
            auth=AuthManager.from_settings(settings),
            store=DiskStore(settings.upload_dir, settings.max_upload_bytes),
            rate_limits=RateLimitStore(settings.rate_limit_per_window, settings.rate_limit_window_seconds),
        )

    def close(self):
        self.database.dispose()
