"""Password login endpoint."""

from src.services.auth import check_password, session_cookie_header
from src.utils.http import JSONHandler


class handler(JSONHandler):
    """Exchange the shared password for a session cookie."""

    requires_auth = False

    async def post(self):
        body = self.json_object()
        token = check_password(body.get("password"))
        self.add_header("Set-Cookie", session_cookie_header(token))
        return {"success": True}
