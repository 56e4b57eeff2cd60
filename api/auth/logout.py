"""Logout endpoint."""

from src.services.auth import clear_cookie_header
from src.utils.http import JSONHandler


class handler(JSONHandler):
    """Expire the session cookie."""

    requires_auth = False

    async def post(self):
        self.add_header("Set-Cookie", clear_cookie_header())
        return {"success": True}
