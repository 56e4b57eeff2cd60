"""Weekly aggregator - Monday-Sunday bucketing and dashboard statistics."""

from datetime import date, timedelta
from typing import Iterable, Optional, Union
from src.models.box_drop import DropStatus, DELIVERED_OR_LATER, EMAIL_FOLLOWUP_FLAGS
from src.services.supabase_client import SupabaseClient, BOX_DROPS, REALTORS, count_rows, fetch_all_rows
from src.services.drops import attach_realtors
from src.utils.errors import InputValidationError, SupabaseError
from src.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)

DateLike = Union[date, str, None]

STATS_COLUMNS = (
    "id", "status", "requested_date", "scheduled_date",
    "followup_email_homeowner", "followup_email_realtor",
    "booked", "revenue",
)


def as_date(value: DateLike) -> Optional[date]:
    """Parse a stored date (or timestamp) value; blanks become None."""
    if value is None:
        return None
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    return date.fromisoformat(text[:10])


def parse_query_date(value: Optional[str], name: str) -> date:
    if not value:
        raise InputValidationError("start and end params required")
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise InputValidationError(f"{name} must be a date in YYYY-MM-DD format")


def week_bounds(today: date) -> tuple[date, date]:
    """Monday and Sunday of the week containing today (Sunday belongs to the week before it)."""
    monday = today - timedelta(days=today.weekday())
    return monday, monday + timedelta(days=6)


def bucket_date(drop: dict) -> Optional[date]:
    """Scheduled date when set, otherwise the requested date."""
    return as_date(drop.get("scheduled_date")) or as_date(drop.get("requested_date"))


def in_range(drop: dict, start: date, end: date) -> bool:
    bucket = bucket_date(drop)
    return bucket is not None and start <= bucket <= end


def drops_in_range(drops: Iterable[dict], start: date, end: date) -> list[dict]:
    """Drops bucketed into [start, end], earliest first."""
    selected = [drop for drop in drops if in_range(drop, start, end)]
    return sorted(selected, key=lambda d: (bucket_date(d), d.get("id") or 0))


def _status(drop: dict) -> Optional[str]:
    status = drop.get("status")
    return status.value if isinstance(status, DropStatus) else status


def conversion_rate(converted: int, delivered: int) -> int:
    """Whole percent, half rounded up; 0 when nothing has been delivered."""
    if delivered <= 0:
        return 0
    return (200 * converted + delivered) // (2 * delivered)


def compute_stats(drops: Iterable[dict], realtor_count: int, today: date) -> dict:
    """Dashboard counters over a snapshot of box drop rows."""
    week_start, week_end = week_bounds(today)

    total_active = 0
    this_week = 0
    pending_followups = 0
    converted = 0
    delivered_or_later = 0
    revenue = 0.0

    delivered_values = {s.value for s in DELIVERED_OR_LATER}

    for drop in drops:
        status = _status(drop)
        if status != DropStatus.CANCELLED.value:
            total_active += 1
            if in_range(drop, week_start, week_end):
                this_week += 1
        if status == DropStatus.DELIVERED.value and not all(drop.get(f) for f in EMAIL_FOLLOWUP_FLAGS):
            pending_followups += 1
        if status == DropStatus.CONVERTED.value:
            converted += 1
        if status in delivered_values:
            delivered_or_later += 1
        if drop.get("booked") and drop.get("revenue") is not None:
            revenue += float(drop["revenue"])

    return {
        "totalDrops": total_active,
        "thisWeek": this_week,
        "pendingFollowups": pending_followups,
        "conversionRate": conversion_rate(converted, delivered_or_later),
        "totalConverted": converted,
        "totalDelivered": delivered_or_later,
        "totalRevenue": round(revenue, 2),
        "realtorCount": realtor_count,
        "weekStart": week_start.isoformat(),
        "weekEnd": week_end.isoformat(),
    }


async def get_dashboard_stats(today: Optional[date] = None) -> dict:
    """Recompute dashboard stats from the store on every call."""
    today = today or date.today()
    with log_timing("dashboard_stats", logger=logger):
        async with SupabaseClient() as client:
            try:
                rows = fetch_all_rows(
                    lambda: client.table(BOX_DROPS).select(*STATS_COLUMNS, count="exact").order("id")
                )
            except Exception as e:
                raise SupabaseError(f"Failed to load drops for stats: {e}")
        realtor_count = await count_rows(REALTORS)
    return compute_stats(rows, realtor_count, today)


async def fetch_drops_for_window(start: date, end: date) -> list[dict]:
    """Rows whose scheduled date, or requested date when unscheduled, falls in the window."""
    lo, hi = start.isoformat(), end.isoformat()
    async with SupabaseClient() as client:
        try:
            scheduled = fetch_all_rows(
                lambda: client.table(BOX_DROPS)
                .select("*", count="exact")
                .gte("scheduled_date", lo)
                .lte("scheduled_date", hi)
                .order("id")
            )
            unscheduled = fetch_all_rows(
                lambda: client.table(BOX_DROPS)
                .select("*", count="exact")
                .is_("scheduled_date", "null")
                .gte("requested_date", lo)
                .lte("requested_date", hi)
                .order("id")
            )
        except Exception as e:
            raise SupabaseError(f"Failed to load weekly drops: {e}")

    rows = {row["id"]: row for row in scheduled + unscheduled}
    return drops_in_range(rows.values(), start, end)


async def get_weekly_drops(start: Optional[str], end: Optional[str]) -> list[dict]:
    """Drops for a calendar window, joined with realtor details."""
    start_date = parse_query_date(start, "start")
    end_date = parse_query_date(end, "end")
    if end_date < start_date:
        raise InputValidationError("end must not be before start")

    rows = await fetch_drops_for_window(start_date, end_date)
    logger.info(
        "Weekly drops loaded",
        week_start=start_date.isoformat(),
        week_end=end_date.isoformat(),
        count=len(rows),
    )
    return await attach_realtors(rows)
