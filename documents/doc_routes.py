"""
Document endpoints.

- POST /api/documents/upload         - Multipart upload (field "document")
- GET  /api/documents                - List non-archived documents the caller's role may view
- GET  /api/documents/{id}           - Get one (view ACL)
- GET  /api/documents/{id}/download  - Stream the stored file (view ACL)
- PUT  /api/documents/{id}           - Update metadata, adds a version entry (edit ACL)
- PUT  /api/documents/{id}/archive   - Archive (admin, hr)
"""

import urllib.parse
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, File, Form, UploadFile
from fastapi.responses import StreamingResponse
from loguru import logger
from sqlalchemy.orm import Session

from auth.rbac_dependencies import get_context, get_current_user, get_db
from records.models import User
from records.query import ListParams
from records.service import DocumentService

router = APIRouter(prefix="/api/documents", tags=["documents"])

CHUNK_SIZE = 64 * 1024

MEDIA_TYPES = {
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}


@router.post("/upload", status_code=201)
def upload_document(
    document: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    related_type: Optional[str] = Form(None, alias="relatedTo.modelType"),
    related_id: Optional[str] = Form(None, alias="relatedTo.modelId"),
    view_roles: Optional[str] = Form(None, alias="accessControl.view"),
    edit_roles: Optional[str] = Form(None, alias="accessControl.edit"),
    context=Depends(get_context),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Upload a file with its metadata. The file is stored before the record is created."""
    form = {
        "title": title,
        "description": description,
        "category": category,
        "relatedTo.modelType": related_type,
        "relatedTo.modelId": related_id,
        "accessControl.view": view_roles,
        "accessControl.edit": edit_roles,
    }
    result = DocumentService.upload(
        db,
        context.store,
        user,
        form,
        document.filename if document else None,
        document.content_type if document else None,
        document.file if document else None,
    )
    logger.info(f"Document {result['documentId']} uploaded by {user.id}")
    return result


@router.get("")
def list_documents(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    search: Optional[str] = None,
    category: Optional[str] = None,
    modelType: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    params = ListParams.parse(page=page, limit=limit, search=search, category=category, modelType=modelType)
    return DocumentService.list_documents(db, user, params)


@router.get("/{record_id}")
def get_document(record_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return DocumentService.get_document(db, user, record_id)


@router.get("/{record_id}/download")
def download_document(
    record_id: str,
    context=Depends(get_context),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Stream the stored file as an attachment."""
    record, path = DocumentService.download_path(db, context.store, user, record_id)

    def iter_file():
        with open(path, "rb") as f:
            while True:
                chunk = f.read(CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk

    filename = urllib.parse.quote(record.file_name)
    logger.info(f"[DOWNLOAD] {record.document_id} by {user.id}")
    return StreamingResponse(
        iter_file(),
        media_type=MEDIA_TYPES.get(record.file_type, "application/octet-stream"),
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{filename}"},
    )


@router.put("/{record_id}/archive")
def archive_document(record_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return DocumentService.archive_document(db, user, record_id)


@router.put("/{record_id}")
def update_document(
    record_id: str,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return DocumentService.update_document(db, user, record_id, payload)
