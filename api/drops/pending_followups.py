"""Delivered drops with follow-ups still outstanding."""

from src.services.drops import list_pending_followups
from src.utils.http import JSONHandler


class handler(JSONHandler):
    """GET /api/drops/pending-followups"""

    async def get(self):
        return await list_pending_followups()
