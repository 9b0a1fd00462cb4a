# app/models/api/crm_response.py
"""
CRM API response models.
Entities are returned as their domain models; these cover the AI endpoints
and the error body shared by every route.
"""

from typing import Any

from pydantic import BaseModel, Field


class SummarizeResponse(BaseModel):
    summary: str = Field(..., description="Short sales-context summary of the notes")


class PredictResponse(BaseModel):
    probability: int = Field(..., ge=0, le=100, description="Estimated closing probability")


class AdviseResponse(BaseModel):
    advice: str = Field(..., description="Suggested next steps, risks and tone")


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx response."""

    error: str = Field(..., description="Human readable error message")
    details: Any | None = Field(None, description="Upstream or validation details")
