"""Maps configuration check.

Routing runs server-side, so the key itself is never sent to the browser.
"""

from src.config import get_maps_api_key
from src.utils.http import JSONHandler


class handler(JSONHandler):
    """GET /api/config/maps-key"""

    async def get(self):
        return {"configured": get_maps_api_key() is not None}
