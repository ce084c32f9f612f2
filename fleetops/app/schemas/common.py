"""
Shared response schemas.
"""

from pydantic import BaseModel
from typing import Any, Dict


class PageMeta(BaseModel):
    """Pagination envelope shared by every list endpoint."""
    total: int
    page: int
    limit: int
    total_pages: int


class ErrorResponse(BaseModel):
    """Uniform error body returned by the exception handlers."""
    error_code: str
    message: str
    details: Dict[str, Any] = {}
