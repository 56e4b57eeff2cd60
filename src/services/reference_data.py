"""Static reference data and the weekly supply plan."""

from datetime import date
from typing import Optional
from src.models.box_drop import DropStatus
from src.models.reference import FollowUpTemplate, SupplyItem, SupplyPlan, SupplyPlanLine
from src.services.supabase_client import SupabaseClient, SUPPLY_ITEMS, FOLLOW_UP_TEMPLATES, all_rows
from src.services.weekly import fetch_drops_for_window, parse_query_date, week_bounds
from src.utils.errors import SupabaseError
from src.utils.logging import get_structured_logger, timed

logger = get_structured_logger(__name__)


async def list_supplies() -> list[dict]:
    async with SupabaseClient() as client:
        try:
            result = client.table(SUPPLY_ITEMS).select("*").order("id").execute()
        except Exception as e:
            raise SupabaseError(f"Failed to list supply items: {e}")
    return all_rows(result)


async def list_templates() -> list[dict]:
    """Follow-up templates by name; rows with an unknown type fail validation."""
    async with SupabaseClient() as client:
        try:
            result = client.table(FOLLOW_UP_TEMPLATES).select("*").order("name").execute()
        except Exception as e:
            raise SupabaseError(f"Failed to list follow-up templates: {e}")
    return [FollowUpTemplate.model_validate(row).model_dump(mode="json") for row in all_rows(result)]


def build_supply_plan(items: list[dict], kits: int, week_start: date, week_end: date) -> SupplyPlan:
    """Scale each per-kit quantity by the number of kits to build."""
    lines = []
    for row in items:
        item = SupplyItem.model_validate(row)
        needed = item.qty_per_kit * kits
        lines.append(SupplyPlanLine(item=item, needed=needed, cost=round(needed * item.unit_cost, 2)))

    return SupplyPlan(
        week_start=week_start.isoformat(),
        week_end=week_end.isoformat(),
        kits=kits,
        lines=lines,
        total_cost=round(sum(line.cost for line in lines), 2),
    )


@timed("supply_plan", logger=logger)
async def get_supply_plan(week: Optional[str]) -> SupplyPlan:
    """Supplies for every non-cancelled drop bucketed into the week containing `week`."""
    week_start, week_end = week_bounds(parse_query_date(week, "week"))
    items = await list_supplies()
    drops = await fetch_drops_for_window(week_start, week_end)
    kits = sum(1 for d in drops if d.get("status") != DropStatus.CANCELLED.value)

    plan = build_supply_plan(items, kits, week_start, week_end)
    logger.info("Supply plan built", week_start=plan.week_start, kits=kits, total_cost=plan.total_cost)
    return plan
