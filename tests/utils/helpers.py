"""Test helper functions."""

import json
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any, Dict, Optional
from src.config import SESSION_COOKIE_NAME
from src.services.auth import issue_session_token


class MockSocket:
    """Socket that replays one raw request and captures the raw response."""

    def __init__(self, raw_request: bytes):
        self._request = BytesIO(raw_request)
        self.sent = bytearray()

    def makefile(self, *args, **kwargs):
        return self._request

    def sendall(self, data):
        self.sent.extend(data)

    def settimeout(self, timeout):
        pass

    def close(self):
        pass


@dataclass
class HandlerResponse:
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    raw_body: bytes = b""

    def json(self) -> Any:
        return json.loads(self.raw_body.decode("utf-8"))


def auth_cookie() -> str:
    """Cookie header for a valid session."""
    return f"{SESSION_COOKIE_NAME}={issue_session_token()}"


def call_handler(
    handler_cls,
    method: str,
    path: str,
    body: Any = None,
    headers: Optional[Dict[str, str]] = None,
    authenticated: bool = True,
) -> HandlerResponse:
    """Drive a serverless handler through a full HTTP request/response."""
    payload = b""
    if body is not None:
        payload = body if isinstance(body, bytes) else json.dumps(body).encode("utf-8")

    request_headers = {"Host": "localhost", "Content-Length": str(len(payload))}
    if body is not None:
        request_headers["Content-Type"] = "application/json"
    if authenticated:
        request_headers["Cookie"] = auth_cookie()
    request_headers.update(headers or {})

    head = f"{method} {path} HTTP/1.1\r\n" + "".join(f"{k}: {v}\r\n" for k, v in request_headers.items())
    sock = MockSocket(head.encode("latin-1") + b"\r\n" + payload)

    handler_cls(sock, ("127.0.0.1", 8000), None)

    raw = bytes(sock.sent)
    head_bytes, _, raw_body = raw.partition(b"\r\n\r\n")
    lines = head_bytes.decode("latin-1").split("\r\n")
    status = int(lines[0].split(" ")[1])
    parsed_headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        parsed_headers[name.strip()] = value.strip()
    return HandlerResponse(status=status, headers=parsed_headers, raw_body=raw_body)
