"""
Document endpoints: upload, re-upload, listing, inline view, download, delete.
"""
from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from app.core.database import get_db
from app.models.activity_log import EntityType
from app.modules.auth.permissions import require_view_students, require_upload_docs, require_delete_student
from app.modules.storage import BlobStorage, get_blob_storage, DEFAULT_CONTENT_TYPE
from app.schemas.auth import TokenClaims
from app.schemas.common import MessageResponse
from app.schemas.document import DocumentEnvelope, DocumentListResponse
from app.services.activity_recorder import ActivityRecorder
from app.services.document_service import DocumentService

router = APIRouter()


def get_document_service(
    db: AsyncSession = Depends(get_db),
    blob_storage: BlobStorage = Depends(get_blob_storage)
) -> DocumentService:
    return DocumentService(db, blob_storage)


@router.get("", response_model=DocumentListResponse)
async def list_documents(
    search: Optional[str] = None,
    claims: TokenClaims = Depends(require_view_students),
    service: DocumentService = Depends(get_document_service)
):
    return DocumentListResponse(documents=await service.list_documents(search=search))


@router.get("/student/{student_id}", response_model=DocumentListResponse)
async def list_student_documents(
    student_id: int,
    claims: TokenClaims = Depends(require_view_students),
    service: DocumentService = Depends(get_document_service)
):
    return DocumentListResponse(documents=await service.list_for_student(student_id))


@router.post("/upload/{student_id}", response_model=DocumentListResponse, status_code=status.HTTP_201_CREATED)
async def upload_documents(
    student_id: int,
    documents: List[UploadFile] = File(..., description="Up to 10 files"),
    claims: TokenClaims = Depends(require_upload_docs),
    db: AsyncSession = Depends(get_db),
    service: DocumentService = Depends(get_document_service)
):
    """Upload a batch of files; either every file is stored or none is"""
    student, uploaded = await service.upload(student_id, documents, actor_id=claims.id)
    await ActivityRecorder(db).record(
        claims.id,
        f"Uploaded {len(uploaded)} document(s) for student: {student.name}",
        EntityType.DOCUMENT,
        student_id
    )
    return DocumentListResponse(
        message=f"{len(uploaded)} document(s) uploaded successfully",
        documents=uploaded,
    )


@router.put("/reupload/{document_id}", response_model=DocumentEnvelope)
async def reupload_document(
    document_id: int,
    document: UploadFile = File(...),
    claims: TokenClaims = Depends(require_upload_docs),
    db: AsyncSession = Depends(get_db),
    service: DocumentService = Depends(get_document_service)
):
    """Replace the file behind a document"""
    old_name, updated = await service.reupload(document_id, document, actor_id=claims.id)
    await ActivityRecorder(db).record(
        claims.id,
        f'Replaced document "{old_name}" with "{updated.original_filename}" for student: {updated.student_name}',
        EntityType.DOCUMENT,
        document_id
    )
    return DocumentEnvelope(message="Document re-uploaded successfully", document=updated)


@router.get("/view/{document_id}")
async def view_document(
    document_id: int,
    claims: TokenClaims = Depends(require_view_students),
    service: DocumentService = Depends(get_document_service)
):
    """Stream the file inline with a content type picked from its extension"""
    document, path, content_type = await service.open_for_read(document_id)
    return FileResponse(
        path,
        media_type=content_type,
        filename=document.original_filename,
        content_disposition_type="inline",
    )


@router.get("/download/{document_id}")
async def download_document(
    document_id: int,
    claims: TokenClaims = Depends(require_view_students),
    service: DocumentService = Depends(get_document_service)
):
    """Stream the file as an attachment under its original name"""
    document, path, _ = await service.open_for_read(document_id)
    return FileResponse(
        path,
        media_type=DEFAULT_CONTENT_TYPE,
        filename=document.original_filename,
    )


@router.delete("/{document_id}", response_model=MessageResponse)
async def delete_document(
    document_id: int,
    claims: TokenClaims = Depends(require_delete_student),
    db: AsyncSession = Depends(get_db),
    service: DocumentService = Depends(get_document_service)
):
    deleted = await service.delete(document_id)
    await ActivityRecorder(db).record(
        claims.id,
        f'Deleted document "{deleted.original_filename}" for student: {deleted.student_name}',
        EntityType.DOCUMENT,
        document_id
    )
    return MessageResponse(message="Document deleted successfully")
