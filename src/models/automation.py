"""Automation audit log models."""

from typing import Optional
from pydantic import BaseModel, Field


class AutomationLogEntry(BaseModel):
    """One event written by the webhook-driven intake process."""
    id: int
    event_type: str
    email: Optional[str] = None
    classification: Optional[str] = Field(None, description="Label assigned by the reply classifier")
    details: Optional[str] = None
    action_taken: Optional[str] = None
    created_at: Optional[str] = None


class AutomationQuery(BaseModel):
    """Filters and paging for the audit log view."""
    limit: int = Field(default=50, ge=1, le=200)
    offset: int = Field(default=0, ge=0)
    classification: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
