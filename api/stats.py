"""Dashboard statistics endpoint."""

from src.services.weekly import get_dashboard_stats
from src.utils.http import JSONHandler


class handler(JSONHandler):
    """GET /api/stats"""

    async def get(self):
        return await get_dashboard_stats()
