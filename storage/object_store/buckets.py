"""
Object storage for uploaded documents.

Operations:
  - Validate an upload against the extension/MIME allow-list
  - Store bytes under a generated, collision-resistant name
  - Resolve a stored URL back to a readable path

Classes:
  - ObjectStore: Abstract interface
  - DiskStore: Flat directory on the local filesystem

Stored files are named {field}-{timestamp}-{random}{ext} and referenced by
the Document record as /uploads/<name>.
"""

import logging
import os
import secrets
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Dict

from records.errors import NotFound, PayloadTooLarge, ValidationError

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads/"

# extension -> accepted MIME type
ALLOWED_TYPES: Dict[str, str] = {
    ".jpeg": "image/jpeg",
    ".jpg": "image/jpeg",
    ".png": "image/png",
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".txt": "text/plain",
}


@dataclass
class StoredFile:
    file_name: str
    file_url: str
    file_size: int
    file_type: str


class ObjectStore(ABC):
    """Abstract interface for document bytes."""

    @abstractmethod
    def save(self, field: str, original_name: str, content_type: str, stream: BinaryIO) -> StoredFile:
        ...

    @abstractmethod
    def path_for(self, file_url: str) -> Path:
        ...

    @staticmethod
    def validate(original_name: str, content_type: str) -> str:
        """Return the lower-cased extension, or raise if the type is not allowed."""
        ext = os.path.splitext(original_name or "")[1].lower()
        mime = (content_type or "").split(";", 1)[0].strip().lower()
        expected = ALLOWED_TYPES.get(ext)
        if expected is None or mime != expected:
            raise ValidationError.single(
                "document",
                "Only images, PDFs, Word, Excel and text documents are allowed",
            )
        return ext


class DiskStore(ObjectStore):
    """
    Flat-directory store.

    Files are written fully before the caller creates the database record,
    so a failure in between leaves an orphaned file and nothing else.
    """

    def __init__(self, directory: str, max_bytes: int):
        self.directory = Path(directory)
        self.max_bytes = max_bytes
        self.directory.mkdir(parents=True, exist_ok=True)

    def _generate_name(self, field: str, ext: str) -> str:
        return f"{field}-{int(time.time() * 1000)}-{secrets.randbelow(10 ** 9)}{ext}"

    def save(self, field: str, original_name: str, content_type: str, stream: BinaryIO) -> StoredFile:
        ext = self.validate(original_name, content_type)

        data = stream.read(self.max_bytes + 1)
        if len(data) > self.max_bytes:
            raise PayloadTooLarge(f"File too large. Maximum size is {self.max_bytes // (1024 * 1024)}MB")

        name = self._generate_name(field, ext)
        with open(self.directory / name, "wb") as f:
            f.write(data)

        logger.info(f"Stored upload {original_name} as {name} ({len(data)} bytes)")
        return StoredFile(
            file_name=original_name,
            file_url=f"{URL_PREFIX}{name}",
            file_size=len(data),
            file_type=ext,
        )

    def path_for(self, file_url: str) -> Path:
        # only the basename is trusted, stored files never live in subdirectories
        name = os.path.basename(file_url or "")
        path = self.directory / name
        if not name or not path.is_file():
            raise NotFound("File not found")
        return path
