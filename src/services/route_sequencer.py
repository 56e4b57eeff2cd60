"""Route sequencer - delivery stop ordering through the Google Routes API."""

import re
from typing import Optional
from urllib.parse import quote
import httpx
from src.config import get_home_base_address, get_maps_api_key, get_routes_timeout
from src.models.route import RouteLeg, RoutePlan
from src.utils.errors import InputValidationError, RoutingError
from src.utils.logging import get_structured_logger, log_timing, mask_sensitive_data

logger = get_structured_logger(__name__)

ROUTES_API_URL = "https://routes.googleapis.com/directions/v2:computeRoutes"
ROUTES_FIELD_MASK = ",".join([
    "routes.optimizedIntermediateWaypointIndex",
    "routes.distanceMeters",
    "routes.duration",
    "routes.polyline.encodedPolyline",
    "routes.legs.distanceMeters",
    "routes.legs.duration",
])

METERS_PER_MILE = 1609.344
DWELL_MINUTES_PER_STOP = 5

NOTE_NO_KEY = "Add GOOGLE_MAPS_API_KEY env var to enable route optimization"
NOTE_SINGLE_STOP = "Only one stop, nothing to optimize"
NOTE_FAILED = "Route optimization unavailable, stops kept in the order given"
NOTE_OPTIMIZED = "Stops reordered by Google Routes API"

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)s\s*$")


def _encode(address: str) -> str:
    # Same escaping as JavaScript's encodeURIComponent
    return quote(address, safe="-_.!~*'()")


def build_maps_url(start: str, stops: list[str], end: str) -> str:
    """Path-style Google Maps directions link: start, each stop, end."""
    encoded = [_encode(a) for a in [start, *stops, end]]
    return f"https://www.google.com/maps/dir/{'/'.join(encoded)}/"


def build_maps_api_url(start: str, stops: list[str], end: str) -> str:
    """Google Maps URLs API (api=1) link with waypoints."""
    waypoints = "|".join(_encode(a) for a in stops)
    return (
        "https://www.google.com/maps/dir/?api=1"
        f"&origin={_encode(start)}&destination={_encode(end)}&waypoints={waypoints}"
    )


def parse_duration_seconds(value: object) -> float:
    """Routes API durations are strings like '1234s'."""
    if isinstance(value, (int, float)):
        return float(value)
    match = _DURATION_RE.match(str(value or ""))
    if not match:
        raise RoutingError(f"Unrecognized duration: {value!r}")
    return float(match.group(1))


def meters_to_miles(meters: float) -> float:
    return round(meters / METERS_PER_MILE, 1)


def seconds_to_minutes(seconds: float) -> int:
    # Half-up: 150s is 3 minutes
    return int(seconds / 60 + 0.5)


def validate_addresses(addresses: object) -> list[str]:
    """Stops must be a non-empty list of strings."""
    if not isinstance(addresses, list) or not addresses:
        raise InputValidationError("addresses array is required")
    if not all(isinstance(a, str) and a.strip() for a in addresses):
        raise InputValidationError("addresses must be non-empty strings")
    return list(addresses)


def fallback_plan(start: str, end: str, addresses: list[str], note: str) -> RoutePlan:
    """Stops in the order given, no metrics."""
    return RoutePlan(
        optimized=False,
        start_address=start,
        end_address=end,
        ordered_addresses=list(addresses),
        original_order=list(addresses),
        maps_url=build_maps_url(start, addresses, end),
        maps_api_url=build_maps_api_url(start, addresses, end),
        note=note,
    )


def build_routes_request(start: str, end: str, addresses: list[str]) -> dict:
    return {
        "origin": {"address": start},
        "destination": {"address": end},
        "intermediates": [{"address": a} for a in addresses],
        "travelMode": "DRIVE",
        "optimizeWaypointOrder": True,
    }


def plan_from_response(payload: dict, start: str, end: str, addresses: list[str]) -> RoutePlan:
    """Turn a computeRoutes response into an optimized plan."""
    routes = payload.get("routes") or []
    if not routes:
        raise RoutingError("Routes API returned no routes")
    route = routes[0]

    order = route.get("optimizedIntermediateWaypointIndex")
    if order is None:
        order = list(range(len(addresses)))
    if sorted(order) != list(range(len(addresses))):
        raise RoutingError(f"Optimized order does not cover every stop: {order}")
    ordered = [addresses[i] for i in order]

    distance_meters = float(route.get("distanceMeters") or 0)
    drive_minutes = seconds_to_minutes(parse_duration_seconds(route.get("duration", "0s")))
    dwell_minutes = DWELL_MINUTES_PER_STOP * len(addresses)

    points = [start, *ordered, end]
    legs = []
    for idx, leg in enumerate(route.get("legs") or []):
        if idx + 1 >= len(points):
            break
        legs.append(RouteLeg(
            from_address=points[idx],
            to_address=points[idx + 1],
            distance_miles=meters_to_miles(float(leg.get("distanceMeters") or 0)),
            duration_minutes=seconds_to_minutes(parse_duration_seconds(leg.get("duration", "0s"))),
        ))

    return RoutePlan(
        optimized=True,
        start_address=start,
        end_address=end,
        ordered_addresses=ordered,
        original_order=list(addresses),
        maps_url=build_maps_url(start, ordered, end),
        maps_api_url=build_maps_api_url(start, ordered, end),
        note=NOTE_OPTIMIZED,
        total_distance_miles=meters_to_miles(distance_meters),
        drive_minutes=drive_minutes,
        dwell_minutes=dwell_minutes,
        total_minutes=drive_minutes + dwell_minutes,
        legs=legs,
        polyline=(route.get("polyline") or {}).get("encodedPolyline"),
    )


async def request_optimized_route(
    start: str,
    end: str,
    addresses: list[str],
    api_key: str,
    http_client: Optional[httpx.AsyncClient] = None,
) -> dict:
    """Single computeRoutes call; raises RoutingError on any failure."""
    headers = {
        "Content-Type": "application/json",
        "X-Goog-Api-Key": api_key,
        "X-Goog-FieldMask": ROUTES_FIELD_MASK,
    }
    body = build_routes_request(start, end, addresses)

    client = http_client or httpx.AsyncClient(timeout=get_routes_timeout())
    try:
        response = await client.post(ROUTES_API_URL, json=body, headers=headers)
    except httpx.HTTPError as e:
        raise RoutingError(f"Routes API request failed: {e.__class__.__name__}: {e}")
    finally:
        if http_client is None:
            await client.aclose()

    if response.status_code != 200:
        raise RoutingError(
            f"Routes API returned {response.status_code}: {response.text[:200]}",
            status_code=response.status_code,
        )
    try:
        return response.json()
    except ValueError as e:
        raise RoutingError(f"Routes API returned invalid JSON: {e}")


async def optimize_route(
    addresses: object,
    start_address: Optional[str] = None,
    end_address: Optional[str] = None,
    api_key: Optional[str] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> RoutePlan:
    """
    Order delivery stops, optimized when possible.

    Only malformed input raises. No API key, a single stop, or any failure
    of the routing call gives the original order with deep links, and the
    call is never retried.
    """
    stops = validate_addresses(addresses)
    start = (start_address or "").strip() or get_home_base_address()
    end = (end_address or "").strip() or start
    api_key = api_key or get_maps_api_key()

    if not api_key:
        logger.info("Route optimization skipped, no Maps API key", stop_count=len(stops))
        return fallback_plan(start, end, stops, NOTE_NO_KEY)

    if len(stops) < 2:
        logger.info("Route optimization skipped, single stop", stop_count=len(stops))
        return fallback_plan(start, end, stops, NOTE_SINGLE_STOP)

    try:
        with log_timing("routes_api_compute", logger=logger, stop_count=len(stops)):
            payload = await request_optimized_route(start, end, stops, api_key, http_client=http_client)
            plan = plan_from_response(payload, start, end, stops)
    except Exception as e:
        logger.warning(
            "Route optimization failed, using original order",
            stop_count=len(stops),
            error=mask_sensitive_data(str(e)),
            error_type=e.__class__.__name__,
        )
        return fallback_plan(start, end, stops, NOTE_FAILED)

    logger.info(
        "Route optimized",
        stop_count=len(stops),
        total_distance_miles=plan.total_distance_miles,
        total_minutes=plan.total_minutes,
    )
    return plan
