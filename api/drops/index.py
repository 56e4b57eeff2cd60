"""Box drop collection endpoint: list and manual intake."""

from src.models.box_drop import BoxDropCreate
from src.services.drops import create_drop, list_drops
from src.utils.errors import InputValidationError
from src.utils.http import JSONHandler


class handler(JSONHandler):
    """GET /api/drops, POST /api/drops[?allow_duplicate=true]."""

    async def get(self):
        query = self.query
        realtor_id = query.get("realtor_id")
        if realtor_id:
            try:
                realtor_id = int(realtor_id)
            except ValueError:
                raise InputValidationError("realtor_id must be an integer")
        return await list_drops(
            status=query.get("status") or None,
            realtor_id=realtor_id or None,
            needs_followup=self.flag("needs_followup"),
        )

    async def post(self):
        data = BoxDropCreate.model_validate(self.json_object())
        row = await create_drop(data, allow_duplicate=self.flag("allow_duplicate"))
        return {"id": row.get("id"), "success": True}
