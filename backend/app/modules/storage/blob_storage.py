"""
Blob Storage - document files on local disk

Files live flat under UPLOAD_PATH with generated names:

    <sanitized-stem>-<epoch-ms>-<9 random digits>.<ext>

The database row for a document points at the file through ``file_path``.
This module only knows about files; DocumentService decides the ordering
between file writes and row writes:

    upload:    write blob(s) -> insert rows -> commit   (row failure => discard blobs)
    re-upload: write new blob -> update row -> commit -> delete old blob (best effort)
    delete:    delete row -> commit -> delete blob (failure => logged leak)
"""

import re
import time
import secrets
from pathlib import Path
from dataclasses import dataclass
from typing import Optional, List, Sequence, Protocol

import aiofiles
import aiofiles.os
from fastapi import Request

from app.core.config import settings
from app.core.exceptions import BadRequestError, PayloadTooLargeError, StorageError
from app.core.logging_config import logger


CHUNK_SIZE = 64 * 1024

CONTENT_TYPES = {
    "pdf": "application/pdf",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "txt": "text/plain",
    "csv": "text/csv",
    "json": "application/json",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "ppt": "application/vnd.ms-powerpoint",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "zip": "application/zip",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def content_type_for(filename: str) -> str:
    """Content type used when a document is viewed inline"""
    ext = Path(filename).suffix.lower().lstrip(".")
    return CONTENT_TYPES.get(ext, DEFAULT_CONTENT_TYPE)


class IncomingFile(Protocol):
    """Anything shaped like fastapi.UploadFile"""
    filename: Optional[str]

    async def read(self, size: int = -1) -> bytes: ...


@dataclass
class StoredBlob:
    """A file that has been written to disk"""
    original_filename: str
    stored_filename: str
    file_path: str
    file_size: int


class BlobStorage:
    """
    Writes, deletes and locates document files.

    One instance is created in the application lifespan and kept on
    ``app.state.blob_storage``.
    """

    def __init__(self,
                 base_path: Optional[str] = None,
                 max_file_size: Optional[int] = None,
                 max_files: Optional[int] = None):
        self.base_path = Path(base_path) if base_path else settings.UPLOAD_DIR
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.max_file_size = max_file_size if max_file_size is not None else settings.MAX_FILE_SIZE
        self.max_files = max_files if max_files is not None else settings.MAX_FILES_PER_UPLOAD

        logger.debug(f"BlobStorage initialized at {self.base_path}")

    # ==================== NAMING ====================

    @staticmethod
    def generate_name(declared_name: str) -> str:
        """Collision-resistant stored name that keeps the original stem readable"""
        path = Path(declared_name or "file")
        stem = re.sub(r"[^A-Za-z0-9_-]+", "_", path.stem).strip("_")[:100] or "file"
        ext = re.sub(r"[^A-Za-z0-9]+", "", path.suffix).lower()[:10]
        unique = f"{int(time.time() * 1000)}-{secrets.randbelow(10 ** 9):09d}"
        return f"{stem}-{unique}.{ext}" if ext else f"{stem}-{unique}"

    def path_for(self, file_path: str) -> Path:
        path = Path(file_path)
        return path if path.is_absolute() else self.base_path / path

    # ==================== WRITE ====================

    async def store(self, content: bytes, declared_name: str) -> StoredBlob:
        """Write an in-memory file"""
        if len(content) > self.max_file_size:
            raise PayloadTooLargeError(declared_name, self.max_file_size)

        stored_name = self.generate_name(declared_name)
        full_path = self.base_path / stored_name
        try:
            async with aiofiles.open(full_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            await self.discard(str(full_path))
            raise StorageError(f"Failed to write file '{declared_name}': {e}")

        return StoredBlob(
            original_filename=declared_name,
            stored_filename=stored_name,
            file_path=str(full_path),
            file_size=len(content),
        )

    async def store_upload(self, upload: IncomingFile) -> StoredBlob:
        """
        Stream an uploaded file to disk, never holding more than one chunk.

        Raises PayloadTooLargeError as soon as the size limit is crossed; the
        partial file is removed first.
        """
        declared_name = upload.filename or "file"
        stored_name = self.generate_name(declared_name)
        full_path = self.base_path / stored_name
        size = 0

        try:
            async with aiofiles.open(full_path, "wb") as f:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > self.max_file_size:
                        break
                    await f.write(chunk)
        except OSError as e:
            await self.discard(str(full_path))
            raise StorageError(f"Failed to write file '{declared_name}': {e}")

        if size > self.max_file_size:
            await self.discard(str(full_path))
            raise PayloadTooLargeError(declared_name, self.max_file_size)

        return StoredBlob(
            original_filename=declared_name,
            stored_filename=stored_name,
            file_path=str(full_path),
            file_size=size,
        )

    async def store_batch(self, uploads: Sequence[IncomingFile]) -> List[StoredBlob]:
        """All-or-nothing: if any file fails, the ones already written are removed"""
        if not uploads:
            raise BadRequestError("No files uploaded", field="documents")
        if len(uploads) > self.max_files:
            raise BadRequestError(
                f"Too many files. Maximum is {self.max_files} per upload",
                field="documents"
            )

        stored: List[StoredBlob] = []
        try:
            for upload in uploads:
                stored.append(await self.store_upload(upload))
        except Exception:
            await self.discard_all(stored)
            raise
        return stored

    # ==================== DELETE ====================

    async def delete(self, file_path: str) -> bool:
        """
        Remove a file. Idempotent: a missing file is not an error.

        Returns True if a file was removed.
        """
        try:
            await aiofiles.os.remove(self.path_for(file_path))
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete file '{file_path}': {e}")

    async def discard(self, file_path: str) -> bool:
        """Best-effort delete used on compensation paths; never raises"""
        try:
            return await self.delete(file_path)
        except StorageError as e:
            logger.log_error_with_context(e, context="blob discard", file_path=file_path)
            return False

    async def discard_all(self, blobs: Sequence[StoredBlob]) -> None:
        for blob in blobs:
            await self.discard(blob.file_path)

    # ==================== READ ====================

    async def exists(self, file_path: str) -> bool:
        return await aiofiles.os.path.isfile(self.path_for(file_path))

    def list_files(self) -> List[str]:
        """Stored names currently on disk"""
        return sorted(p.name for p in self.base_path.iterdir() if p.is_file())


def get_blob_storage(request: Request) -> BlobStorage:
    """FastAPI dependency: the BlobStorage created in the application lifespan"""
    return request.app.state.blob_storage
