"""Read-only reference data: kit supplies and follow-up templates."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class SupplyItem(BaseModel):
    """One line of the per-kit packing list."""
    id: int
    name: str
    qty_per_kit: int = Field(..., ge=0, description="Units of this item in one kit")
    unit_cost: float = Field(default=0.0, ge=0, description="Cost per unit in dollars")


class TemplateType(str, Enum):
    """Channel a follow-up template is written for."""
    EMAIL_HOMEOWNER = "email_homeowner"
    EMAIL_REALTOR = "email_realtor"
    TEXT_HOMEOWNER = "text_homeowner"
    TEXT_REALTOR = "text_realtor"
    VOICEMAIL = "voicemail"


class FollowUpTemplate(BaseModel):
    """Prefill text for a manually sent follow-up."""
    id: int
    name: str
    type: TemplateType
    subject: Optional[str] = None
    body: str
    created_at: Optional[str] = None


class SupplyPlanLine(BaseModel):
    item: SupplyItem
    needed: int
    cost: float


class SupplyPlan(BaseModel):
    """Supplies needed to build every kit scheduled in one week."""
    week_start: str
    week_end: str
    kits: int
    lines: list[SupplyPlanLine] = Field(default_factory=list)
    total_cost: float = 0.0

    def to_response(self) -> dict:
        return {
            "weekStart": self.week_start,
            "weekEnd": self.week_end,
            "kits": self.kits,
            "items": [
                {
                    **line.item.model_dump(),
                    "needed": line.needed,
                    "cost": line.cost,
                }
                for line in self.lines
            ],
            "totalCost": self.total_cost,
        }
