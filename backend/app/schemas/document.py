from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


class DocumentResponse(BaseModel):
    id: int
    student_id: int
    student_name: Optional[str] = None
    uploaded_by: Optional[int] = None
    uploaded_by_username: Optional[str] = None
    original_filename: str
    stored_filename: str
    file_size: int
    upload_date: datetime

    class Config:
        from_attributes = True


class DocumentEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    document: DocumentResponse


class DocumentListResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    documents: List[DocumentResponse]
