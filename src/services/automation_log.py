"""Read side of the automation audit log."""

from collections import Counter
from typing import Optional
from src.models.automation import AutomationLogEntry, AutomationQuery
from src.services.supabase_client import SupabaseClient, AUTOMATION_LOG, all_rows, fetch_all_rows
from src.utils.errors import InputValidationError, SupabaseError

MAX_LIMIT = 200
DEFAULT_LIMIT = 50


def _to_int(value: Optional[str], name: str, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise InputValidationError(f"{name} must be an integer")


def build_query(params: dict) -> AutomationQuery:
    """Query-string params to a bounded AutomationQuery."""
    limit = min(_to_int(params.get("limit"), "limit", DEFAULT_LIMIT), MAX_LIMIT)
    offset = _to_int(params.get("offset"), "offset", 0)
    if limit < 1 or offset < 0:
        raise InputValidationError("limit must be positive and offset non-negative")
    return AutomationQuery(
        limit=limit,
        offset=offset,
        classification=params.get("classification") or None,
        date_from=params.get("date_from") or None,
        date_to=params.get("date_to") or None,
    )


def classification_breakdown(rows: list[dict]) -> list[dict]:
    """Per-classification counts, most common first."""
    counts = Counter(row.get("classification") for row in rows)
    return [
        {"classification": label, "count": count}
        for label, count in sorted(counts.items(), key=lambda kv: (-kv[1], str(kv[0])))
    ]


async def list_automation_events(query: AutomationQuery) -> dict:
    """Filtered, paginated events plus the classification breakdown of the whole log."""
    async with SupabaseClient() as client:
        try:
            request = client.table(AUTOMATION_LOG).select("*", count="exact")
            if query.classification:
                request = request.eq("classification", query.classification)
            if query.date_from:
                request = request.gte("created_at", query.date_from)
            if query.date_to:
                request = request.lte("created_at", f"{query.date_to}T23:59:59")
            page = (
                request.order("created_at", desc=True)
                .range(query.offset, query.offset + query.limit - 1)
                .execute()
            )
            labels = fetch_all_rows(
                lambda: client.table(AUTOMATION_LOG).select("classification", count="exact").order("id")
            )
        except Exception as e:
            raise SupabaseError(f"Failed to read automation log: {e}")

    events = [AutomationLogEntry.model_validate(row).model_dump() for row in all_rows(page)]
    return {
        "events": events,
        "total": page.count if page.count is not None else len(events),
        "limit": query.limit,
        "offset": query.offset,
        "stats": classification_breakdown(labels),
    }
