"""Follow-up message templates."""

from src.services.reference_data import list_templates
from src.utils.http import JSONHandler


class handler(JSONHandler):
    """GET /api/templates"""

    async def get(self):
        return await list_templates()
