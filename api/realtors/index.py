"""Realtor collection endpoint."""

from src.models.realtor import RealtorCreate
from src.services.realtors import create_realtor, list_realtors
from src.utils.http import JSONHandler


class handler(JSONHandler):
    """GET/POST /api/realtors"""

    async def get(self):
        return await list_realtors()

    async def post(self):
        row = await create_realtor(RealtorCreate.model_validate(self.json_object()))
        return {"id": row.get("id"), "success": True}
