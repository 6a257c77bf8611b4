"""
API Response Schemas

Pydantic models for API responses.
Used for OpenAPI documentation.
"""

from typing import Optional
from pydantic import BaseModel, Field


class SuccessResponse(BaseModel):
    """Standard success response."""
    success: bool = Field(True, description="Operation success status")
    message: str = Field(..., description="Success message")

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": True,
                "message": "Correction saved"
            }
        }
    }


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Error message")
    details: Optional[str] = Field(None, description="Short failure description (500 only)")

    model_config = {
        "json_schema_extra": {
            "example": {
                "error": "Correction failed",
                "details": "HTTP 502"
            }
        }
    }


class ConnectionTestResponse(BaseModel):
    """Result of an OpenList connectivity test."""
    status: str = Field(..., description="'success' or 'error'")
    message: str = Field(..., description="Human-readable result")
    url: Optional[str] = Field(None, description="Tested OpenList URL")
