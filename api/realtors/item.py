"""Single realtor endpoint (no delete)."""

from src.models.realtor import RealtorUpdate
from src.services.realtors import get_realtor, update_realtor
from src.utils.http import JSONHandler


class handler(JSONHandler):
    """GET/PATCH /api/realtors/{id}"""

    async def get(self):
        return await get_realtor(self.path_id())

    async def patch(self):
        realtor_id = self.path_id()
        realtor = await update_realtor(realtor_id, RealtorUpdate.model_validate(self.json_object()))
        return {"success": True, "realtor": realtor}
