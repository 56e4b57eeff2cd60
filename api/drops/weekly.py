"""Calendar window of box drops."""

from src.services.weekly import get_weekly_drops
from src.utils.http import JSONHandler


class handler(JSONHandler):
    """GET /api/drops/weekly?start=YYYY-MM-DD&end=YYYY-MM-DD"""

    async def get(self):
        return await get_weekly_drops(self.query.get("start"), self.query.get("end"))
