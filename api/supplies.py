"""Kit supply items and the weekly supply plan."""

from src.services.reference_data import get_supply_plan, list_supplies
from src.utils.http import JSONHandler


class handler(JSONHandler):
    """GET /api/supplies[?week=YYYY-MM-DD]"""

    async def get(self):
        week = self.query.get("week")
        if week:
            plan = await get_supply_plan(week)
            return plan.to_response()
        return await list_supplies()
