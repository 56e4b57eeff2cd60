"""Automation audit log endpoint."""

from src.services.automation_log import build_query, list_automation_events
from src.utils.http import JSONHandler


class handler(JSONHandler):
    """GET /api/automation?limit&offset&classification&date_from&date_to"""

    async def get(self):
        return await list_automation_events(build_query(self.query))
