"""Box drop models and the delivery status lifecycle."""

from datetime import date
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class DropStatus(str, Enum):
    """Lifecycle states of a box drop."""
    REQUESTED = "requested"
    KIT_PREPPED = "kit_prepped"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    FOLLOWED_UP = "followed_up"
    CONVERTED = "converted"
    CANCELLED = "cancelled"


# Forward order used by the "advance" action; cancelled is a side branch.
STATUS_FLOW: list[DropStatus] = [
    DropStatus.REQUESTED,
    DropStatus.KIT_PREPPED,
    DropStatus.OUT_FOR_DELIVERY,
    DropStatus.DELIVERED,
    DropStatus.FOLLOWED_UP,
    DropStatus.CONVERTED,
]

TERMINAL_STATUSES = frozenset({DropStatus.CONVERTED, DropStatus.CANCELLED})

DELIVERED_OR_LATER = frozenset({
    DropStatus.DELIVERED,
    DropStatus.FOLLOWED_UP,
    DropStatus.CONVERTED,
})

FOLLOWUP_FLAGS = (
    "followup_email_homeowner",
    "followup_email_realtor",
    "followup_text_homeowner",
    "followup_call_homeowner",
)

EMAIL_FOLLOWUP_FLAGS = FOLLOWUP_FLAGS[:2]


def next_status(current: DropStatus) -> Optional[DropStatus]:
    """Next forward state, or None at the end of the flow or off it."""
    if current not in STATUS_FLOW:
        return None
    idx = STATUS_FLOW.index(current)
    if idx >= len(STATUS_FLOW) - 1:
        return None
    return STATUS_FLOW[idx + 1]


class ListingStatus(str, Enum):
    """Where the referring listing stands."""
    NEW_LISTING = "new_listing"
    PENDING = "pending"
    OTHER = "other"


class BoxDrop(BaseModel):
    """Box drop row as stored in the box_drops table."""
    id: int
    realtor_id: Optional[int] = None
    homeowner_address: str
    homeowner_name: Optional[str] = None
    homeowner_email: Optional[str] = None
    homeowner_phone: Optional[str] = None
    listing_status: Optional[ListingStatus] = ListingStatus.NEW_LISTING
    campaign_source: Optional[str] = None
    status: DropStatus = DropStatus.REQUESTED
    requested_date: date
    scheduled_date: Optional[date] = None
    delivered_date: Optional[date] = None
    delivery_notes: Optional[str] = None
    followup_email_homeowner: bool = False
    followup_email_realtor: bool = False
    followup_text_homeowner: bool = False
    followup_call_homeowner: bool = False
    quote_requested: bool = False
    booked: bool = False
    revenue: Optional[float] = Field(None, description="Only meaningful when booked")
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def needs_followup(self) -> bool:
        return self.status == DropStatus.DELIVERED and not all(
            getattr(self, flag) for flag in FOLLOWUP_FLAGS
        )

    @property
    def needs_email_followup(self) -> bool:
        return self.status == DropStatus.DELIVERED and not all(
            getattr(self, flag) for flag in EMAIL_FOLLOWUP_FLAGS
        )


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class BoxDropCreate(BaseModel):
    """Fields accepted by manual intake."""
    model_config = ConfigDict(extra="ignore")

    realtor_id: Optional[int] = None
    homeowner_address: str = Field(..., min_length=1)
    homeowner_name: Optional[str] = None
    homeowner_email: Optional[str] = None
    homeowner_phone: Optional[str] = None
    listing_status: ListingStatus = ListingStatus.NEW_LISTING
    campaign_source: Optional[str] = None
    status: DropStatus = DropStatus.REQUESTED
    scheduled_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator(
        "homeowner_name", "homeowner_email", "homeowner_phone",
        "campaign_source", "scheduled_date", "notes", "realtor_id",
        mode="before",
    )
    @classmethod
    def blank_strings_are_null(cls, value):
        return _blank_to_none(value)

    @field_validator("listing_status", mode="before")
    @classmethod
    def default_listing_status(cls, value):
        return _blank_to_none(value) or ListingStatus.NEW_LISTING

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, value):
        return _blank_to_none(value) or DropStatus.REQUESTED


class BoxDropUpdate(BaseModel):
    """
    Allow-list for partial updates.

    Keys outside this model are dropped; keys sent as null are kept so a
    caller can clear a field (e.g. unschedule a drop). Required columns
    reject null.
    """
    model_config = ConfigDict(extra="ignore")

    status: Optional[DropStatus] = None
    realtor_id: Optional[int] = None
    homeowner_address: Optional[str] = None
    homeowner_name: Optional[str] = None
    homeowner_email: Optional[str] = None
    homeowner_phone: Optional[str] = None
    listing_status: Optional[ListingStatus] = None
    campaign_source: Optional[str] = None
    scheduled_date: Optional[date] = None
    delivered_date: Optional[date] = None
    delivery_notes: Optional[str] = None
    followup_email_homeowner: Optional[bool] = None
    followup_email_realtor: Optional[bool] = None
    followup_text_homeowner: Optional[bool] = None
    followup_call_homeowner: Optional[bool] = None
    quote_requested: Optional[bool] = None
    booked: Optional[bool] = None
    revenue: Optional[float] = None
    notes: Optional[str] = None

    @field_validator("scheduled_date", "delivered_date", mode="before")
    @classmethod
    def blank_dates_are_null(cls, value):
        return _blank_to_none(value)

    @field_validator("status", "homeowner_address", *FOLLOWUP_FLAGS, "quote_requested", "booked", mode="before")
    @classmethod
    def not_nullable(cls, value, info):
        # These columns are NOT NULL in box_drops
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value

    def to_fields(self) -> dict:
        """Only the keys the caller actually sent, JSON-ready."""
        return self.model_dump(mode="json", exclude_unset=True)


class AutoDropRequest(BaseModel):
    """Payload posted by the automated intake process."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    realtor_name: Optional[str] = Field(None, alias="realtorName")
    realtor_email: Optional[str] = Field(None, alias="realtorEmail")
    realtor_company: Optional[str] = Field(None, alias="realtorCompany")
    address: Optional[str] = None
    listing_status: Optional[ListingStatus] = Field(None, alias="listingStatus")
    campaign_source: Optional[str] = Field(None, alias="campaignSource")
    homeowner_name: Optional[str] = Field(None, alias="homeownerName")
    homeowner_email: Optional[str] = Field(None, alias="homeownerEmail")
    phone: Optional[str] = None
    scheduling_note: Optional[str] = Field(None, alias="schedulingNote")
    notes: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def blank_strings_are_null(cls, value):
        return _blank_to_none(value)
