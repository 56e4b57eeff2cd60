"""Route planning request and result models."""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class RouteRequest(BaseModel):
    """Body of POST /api/routes/optimize."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    addresses: list[str] = Field(..., min_length=1)
    start_address: Optional[str] = Field(None, alias="startAddress")
    end_address: Optional[str] = Field(None, alias="endAddress")


class RouteLeg(BaseModel):
    """One driving segment between consecutive stops."""
    from_address: str
    to_address: str
    distance_miles: float
    duration_minutes: int

    def to_response(self) -> dict:
        return {
            "fromAddress": self.from_address,
            "toAddress": self.to_address,
            "distanceMiles": self.distance_miles,
            "durationMinutes": self.duration_minutes,
        }


class RoutePlan(BaseModel):
    """Result of route sequencing, optimized or not."""
    optimized: bool
    start_address: str
    end_address: str
    ordered_addresses: list[str]
    original_order: list[str]
    maps_url: str
    maps_api_url: str
    note: Optional[str] = None
    total_distance_miles: Optional[float] = None
    drive_minutes: Optional[int] = None
    dwell_minutes: Optional[int] = None
    total_minutes: Optional[int] = None
    legs: list[RouteLeg] = Field(default_factory=list)
    polyline: Optional[str] = None

    @property
    def stops(self) -> list[str]:
        return [self.start_address, *self.ordered_addresses, self.end_address]

    def to_response(self) -> dict:
        response = {
            "success": True,
            "optimized": self.optimized,
            "orderedAddresses": self.ordered_addresses,
            "originalOrder": self.original_order,
            "stops": self.stops,
            "stopCount": len(self.stops),
            "mapsUrl": self.maps_url,
            "mapsApiUrl": self.maps_api_url,
            "note": self.note,
        }
        if self.optimized:
            response.update({
                "totalDistanceMiles": self.total_distance_miles,
                "driveMinutes": self.drive_minutes,
                "dwellMinutes": self.dwell_minutes,
                "totalMinutes": self.total_minutes,
                "legs": [leg.to_response() for leg in self.legs],
                "polyline": self.polyline,
            })
        return response
