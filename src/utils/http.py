"""Shared base for the Vercel serverless JSON handlers under api/."""

import asyncio
import json
from http.server import BaseHTTPRequestHandler
from typing import Any, Optional
from urllib.parse import parse_qs, urlparse
from pydantic import ValidationError
from src.services.auth import is_authorized
from src.utils.errors import (
    AuthenticationError,
    BoxDropError,
    ConfigurationError,
    DuplicateAddressError,
    InputValidationError,
    NotFoundError,
)
from src.utils.logging import correlation_context, get_structured_logger, mask_sensitive_data
from src.utils.logging_config import LoggingConfig

logger = get_structured_logger(__name__)


def run_async(coro):
    """Run a coroutine to completion on the function's event loop."""
    try:
        loop = asyncio.get_event_loop()
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    if loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


def validation_message(error: ValidationError) -> str:
    """First pydantic error as a short reason string."""
    first = error.errors()[0] if error.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "invalid input")
    return f"{location}: {message}" if location else message


class JSONHandler(BaseHTTPRequestHandler):
    """
    JSON request/response plumbing shared by every route.

    Subclasses implement async get/post/patch/delete methods returning a
    JSON-serializable body, or a (status, body) tuple. Errors raised from
    services are mapped to status codes here and nowhere else.
    """

    requires_auth = True
    allow_automation = False
    service_name = "box-drop-crm"

    def do_GET(self):
        self._dispatch("get")

    def do_POST(self):
        self._dispatch("post")

    def do_PATCH(self):
        self._dispatch("patch")

    def do_DELETE(self):
        self._dispatch("delete")

    # Request helpers

    @property
    def url(self):
        return urlparse(self.path)

    @property
    def query(self) -> dict[str, str]:
        """Query string, first value per key."""
        return {k: v[0] for k, v in parse_qs(self.url.query, keep_blank_values=True).items()}

    def path_segments(self) -> list[str]:
        return [segment for segment in self.url.path.split("/") if segment]

    def path_id(self) -> int:
        """Record id from ?id= (Vercel rewrite) or the last numeric path segment."""
        raw = self.query.get("id")
        if raw is None:
            numeric = [s for s in self.path_segments() if s.isdigit()]
            raw = numeric[-1] if numeric else None
        if raw is None:
            raise InputValidationError("id is required")
        try:
            return int(raw)
        except ValueError:
            raise InputValidationError("id must be an integer")

    def json_body(self) -> Any:
        """Parsed request body; empty body is an empty object."""
        content_length = int(self.headers.get('Content-Length', 0) or 0)
        raw_body = self.rfile.read(content_length) if content_length > 0 else b""
        if not raw_body:
            return {}
        try:
            return json.loads(raw_body.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError):
            raise InputValidationError("invalid JSON body")

    def json_object(self) -> dict:
        body = self.json_body()
        if not isinstance(body, dict):
            raise InputValidationError("JSON body must be an object")
        return body

    def flag(self, name: str) -> bool:
        return self.query.get(name, "").lower() in ("true", "1", "yes")

    # Response helpers

    def send_json(self, status: int, payload: Any, headers: Optional[list[tuple[str, str]]] = None) -> None:
        body = json.dumps(payload, default=str).encode('utf-8')
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.send_header('Content-Length', str(len(body)))
        for name, value in headers or []:
            self.send_header(name, value)
        self.end_headers()
        self.wfile.write(body)

    def add_header(self, name: str, value: str) -> None:
        self._extra_headers.append((name, value))

    # Dispatch

    def _authorized(self) -> bool:
        if not self.requires_auth:
            return True
        return is_authorized(
            self.headers.get("Cookie"),
            self.headers.get("Authorization"),
            allow_automation=self.allow_automation,
        )

    def _dispatch(self, method: str) -> None:
        LoggingConfig.ensure_configured()
        self._extra_headers: list[tuple[str, str]] = []
        incoming_id = self.headers.get(LoggingConfig.LOG_CORRELATION_ID_HEADER)

        with correlation_context(incoming_id) as correlation_id:
            self._extra_headers.append((LoggingConfig.LOG_CORRELATION_ID_HEADER, correlation_id))
            status, payload = self._handle(method)
            self.send_json(status, payload, self._extra_headers)
            logger.info(
                "Request handled",
                method=method.upper(),
                path=self.url.path,
                status=status,
            )

    def _handle(self, method: str) -> tuple[int, Any]:
        implementation = getattr(self, method, None)
        if implementation is None:
            return 405, {"error": "method not allowed"}

        try:
            if not self._authorized():
                raise AuthenticationError("Unauthorized")
            result = run_async(implementation())
        except ValidationError as e:
            return 400, {"error": validation_message(e)}
        except InputValidationError as e:
            return 400, {"error": str(e)}
        except AuthenticationError as e:
            return 401, {"error": str(e)}
        except NotFoundError:
            return 404, {"error": "Not found"}
        except DuplicateAddressError as e:
            return 409, e.to_dict()
        except ConfigurationError as e:
            logger.error("Configuration error", error=str(e))
            return 500, {"error": "server not configured"}
        except BoxDropError as e:
            logger.error("Request failed", error=mask_sensitive_data(str(e)), error_type=e.__class__.__name__)
            return 500, {"error": "internal server error"}
        except Exception as e:
            logger.exception("Unhandled error", error=mask_sensitive_data(str(e)))
            return 500, {"error": "internal server error"}

        if isinstance(result, tuple):
            return result
        return 200, result

    def log_message(self, format, *args):
        # Requests are logged through the structured logger in _dispatch
        pass
