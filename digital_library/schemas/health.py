from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Comprehensive health check response"""
    success: bool = Field(..., description="Whether the health check was successful")
    status: str = Field(..., description="Overall status (healthy/unhealthy)")
    database: str = Field(..., description="Database backend name")
    connection: str = Field(..., description="Connection status")
    environment: str = Field(..., description="Environment name")
    response_time_ms: float = Field(..., description="Response time in milliseconds")
    pool: Optional[Dict[str, Any]] = Field(None, description="Connection pool statistics")
    error: Optional[str] = Field(None, description="Error message if any")
    status_code: int = Field(..., description="HTTP status code")

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "success": True,
                "status": "healthy",
                "database": "postgresql",
                "connection": "active",
                "environment": "production",
                "response_time_ms": 4.2,
                "pool": {"checked_out": 1},
                "error": None,
                "status_code": 200
            }
        }


class SimpleHealthResponse(BaseModel):
    """Simple health check response"""
    success: bool = Field(..., description="Whether the health check was successful")
    status: str = Field(..., description="Overall status")
    service: str = Field(..., description="Service name")
    message: Optional[str] = Field(None, description="Additional message")
    status_code: int = Field(..., description="HTTP status code")
