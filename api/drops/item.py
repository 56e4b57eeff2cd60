"""Single box drop endpoint: read, partial update, advance, delete."""

from src.services.drops import advance_drop, delete_drop, get_drop, update_drop
from src.utils.errors import InputValidationError
from src.utils.http import JSONHandler


class handler(JSONHandler):
    """
    GET/PATCH/DELETE /api/drops/{id}
    POST /api/drops/{id}/advance
    """

    async def get(self):
        return await get_drop(self.path_id())

    async def patch(self):
        drop_id = self.path_id()
        drop = await update_drop(drop_id, self.json_object())
        return {"success": True, "drop": drop}

    async def post(self):
        action = self.query.get("action") or self.path_segments()[-1]
        if action != "advance":
            raise InputValidationError(f"Unknown action: {action}")
        drop = await advance_drop(self.path_id())
        return {"success": True, "drop": drop}

    async def delete(self):
        await delete_drop(self.path_id())
        return {"success": True}
