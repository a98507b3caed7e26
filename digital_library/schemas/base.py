from typing import Any, Dict, Optional

from pydantic import BaseModel, Field
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class StandardResponse(BaseModel):
    """Standard API response format"""
    success: bool = Field(..., description="Whether the request was successful")
    message: str = Field(..., description="Human-readable message")
    data: Optional[Dict[str, Any]] = Field(None, description="Response data")

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "success": True,
                "message": "Book added to library",
                "data": {"book_id": 1},
            }
        }


class ErrorResponse(BaseModel):
    """Error response format"""
    success: bool = Field(False, description="Always false for errors")
    error: str = Field(..., description="User-facing error message")
    detail: Optional[Any] = Field(None, description="Additional error details")
    status_code: int = Field(..., description="HTTP status code")

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "success": False,
                "error": "Book not found",
                "detail": None,
                "status_code": 404
            }
        }
