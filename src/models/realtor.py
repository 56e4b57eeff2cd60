"""Realtor models - the referring agents behind each box drop."""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class Realtor(BaseModel):
    """Realtor row as stored in the realtors table."""
    id: int = Field(..., description="Realtor ID")
    first_name: str = Field(..., description="First name")
    last_name: Optional[str] = Field(None, description="Last name")
    email: Optional[str] = Field(None, description="Email address (upsert key for automated intake)")
    phone: Optional[str] = Field(None, description="Phone number")
    company: Optional[str] = Field(None, description="Brokerage / company")
    total_drops: int = Field(default=0, ge=0, description="Box drops referred")
    total_conversions: int = Field(default=0, ge=0, description="Referred drops that converted")
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class RealtorCreate(BaseModel):
    """Fields accepted when creating a realtor."""
    model_config = ConfigDict(extra="ignore")

    first_name: str = Field(..., min_length=1)
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None


class RealtorUpdate(BaseModel):
    """Allow-list for realtor edits; counters are never edited directly."""
    model_config = ConfigDict(extra="ignore")

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
