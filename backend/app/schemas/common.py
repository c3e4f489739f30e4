from pydantic import BaseModel, Field
from typing import Optional


class Pagination(BaseModel):
    """Paging block returned next to every paginated listing"""
    total: int
    page: int
    limit: int
    total_pages: int = Field(..., serialization_alias="totalPages")


class MessageResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
