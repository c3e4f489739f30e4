"""
Document Service - document rows and the files behind them

Every write keeps the row and its file in step:

- upload: files are written first; rows are inserted only if every file
  made it to disk. If the insert fails the new files are removed.
- re-upload: the replacement file is written, the row is pointed at it and
  committed, then the old file is removed. A failed removal leaks the old
  file but the re-upload still succeeds.
- delete: the row goes first, then the file. A failed file removal is
  logged as a leak.
"""
from datetime import datetime
from pathlib import Path
from typing import Optional, List, Sequence, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import select

from app.models.document import Document
from app.models.student import Student
from app.models.user import User
from app.schemas.document import DocumentResponse
from app.modules.storage import BlobStorage, IncomingFile, content_type_for
from app.core.exceptions import (
    DocumentNotFoundError,
    StudentNotFoundError,
    BlobNotFoundError,
    InternalError,
    StorageError,
)
from app.core.logging_config import logger
from app.utils.pagination import search_filter


SEARCH_COLUMNS = (Document.original_filename, Student.name)


def to_response(document: Document, student_name: Optional[str], uploaded_by_username: Optional[str]) -> DocumentResponse:
    return DocumentResponse.model_validate(document).model_copy(update={
        "student_name": student_name,
        "uploaded_by_username": uploaded_by_username,
    })


class DocumentService:
    def __init__(self, db: AsyncSession, blob_storage: BlobStorage):
        self.db = db
        self.blobs = blob_storage

    def _base_query(self):
        return (
            select(Document, Student.name, User.username)
            .join(Student, Document.student_id == Student.id)
            .outerjoin(User, Document.uploaded_by == User.id)
            .order_by(Document.upload_date.desc(), Document.id.desc())
        )

    async def _get_student(self, student_id: int) -> Student:
        student = await self.db.get(Student, student_id)
        if student is None:
            raise StudentNotFoundError(student_id)
        return student

    async def get_document(self, document_id: int) -> Document:
        document = await self.db.get(Document, document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)
        return document

    async def get_document_response(self, document_id: int) -> DocumentResponse:
        result = await self.db.execute(self._base_query().where(Document.id == document_id))
        row = result.first()
        if row is None:
            raise DocumentNotFoundError(document_id)
        return to_response(*row)

    async def list_documents(self, search: Optional[str] = None) -> List[DocumentResponse]:
        query = self._base_query()
        condition = search_filter(search, SEARCH_COLUMNS)
        if condition is not None:
            query = query.where(condition)
        result = await self.db.execute(query)
        return [to_response(*row) for row in result.all()]

    async def list_recent(self, limit: int = 10) -> List[DocumentResponse]:
        result = await self.db.execute(self._base_query().limit(limit))
        return [to_response(*row) for row in result.all()]

    async def list_for_student(self, student_id: int) -> List[DocumentResponse]:
        await self._get_student(student_id)
        result = await self.db.execute(self._base_query().where(Document.student_id == student_id))
        return [to_response(*row) for row in result.all()]

    async def upload(
        self,
        student_id: int,
        files: Sequence[IncomingFile],
        actor_id: int
    ) -> Tuple[Student, List[DocumentResponse]]:
        student = await self._get_student(student_id)

        blobs = await self.blobs.store_batch(files)

        documents = [
            Document(
                student_id=student_id,
                uploaded_by=actor_id,
                original_filename=blob.original_filename,
                stored_filename=blob.stored_filename,
                file_path=blob.file_path,
                file_size=blob.file_size,
            )
            for blob in blobs
        ]
        try:
            self.db.add_all(documents)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            await self.blobs.discard_all(blobs)
            logger.log_error_with_context(e, context="document upload", student_id=student_id)
            raise InternalError("Failed to save document records")

        logger.info(f"Stored {len(documents)} document(s) for student {student_id}")
        uploader = await self.db.scalar(select(User.username).where(User.id == actor_id))
        return student, [to_response(document, student.name, uploader) for document in documents]

    async def reupload(self, document_id: int, file: IncomingFile, actor_id: int) -> Tuple[str, DocumentResponse]:
        """Replace a document's file. Returns the previous original filename and the updated document."""
        document = await self.get_document(document_id)
        old_path = document.file_path
        old_name = document.original_filename

        blob = await self.blobs.store_upload(file)

        document.original_filename = blob.original_filename
        document.stored_filename = blob.stored_filename
        document.file_path = blob.file_path
        document.file_size = blob.file_size
        document.uploaded_by = actor_id
        document.upload_date = datetime.utcnow()
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            await self.blobs.discard(blob.file_path)
            logger.log_error_with_context(e, context="document re-upload", document_id=document_id)
            raise InternalError("Failed to update document record")

        if old_path != blob.file_path:
            await self.blobs.discard(old_path)

        return old_name, await self.get_document_response(document_id)

    async def delete(self, document_id: int) -> DocumentResponse:
        response = await self.get_document_response(document_id)
        document = await self.get_document(document_id)
        file_path = document.file_path

        await self.db.delete(document)
        await self.db.commit()

        try:
            await self.blobs.delete(file_path)
        except StorageError as e:
            logger.log_error_with_context(e, context="document delete", leaked_file=file_path)

        return response

    async def open_for_read(self, document_id: int) -> Tuple[Document, Path, str]:
        """Locate a document's file; returns (document, path, inline content type)"""
        document = await self.get_document(document_id)
        if not await self.blobs.exists(document.file_path):
            raise BlobNotFoundError(document_id)
        return document, self.blobs.path_for(document.file_path), content_type_for(document.original_filename)
