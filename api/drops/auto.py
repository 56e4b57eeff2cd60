"""Automated box drop intake used by the email-reply webhook service."""

from src.models.box_drop import AutoDropRequest
from src.services.drops import create_auto_drop
from src.utils.http import JSONHandler


class handler(JSONHandler):
    """POST /api/drops/auto - upsert realtor by email, then create the drop."""

    allow_automation = True

    async def post(self):
        request = AutoDropRequest.model_validate(self.json_object())
        return await create_auto_drop(request)
