"""Test helper functions."""

import json
from io import BytesIO
from typing import Any, Dict, Optional, Tuple
from unittest.mock import MagicMock


QUERY_METHODS = ("select", "eq", "neq", "limit", "order", "insert", "update")


def make_supabase_query(*results: list) -> MagicMock:
    """Chainable PostgREST query mock; each execute() returns the next result's data."""
    query = MagicMock()
    for name in QUERY_METHODS:
        getattr(query, name).return_value = query
    query.execute.side_effect = [MagicMock(data=data) for data in results]
    return query


def make_supabase_client(query: MagicMock) -> MagicMock:
    client = MagicMock()
    client.table.return_value = query
    return client


class MockSocket:
    """Socket stand-in feeding a raw HTTP request and capturing the response."""

    def __init__(self, raw_request: bytes):
        self._raw_request = raw_request
        self.sent = BytesIO()

    def makefile(self, *args, **kwargs):
        return BytesIO(self._raw_request)

    def sendall(self, data):
        self.sent.write(data)

    def close(self):
        pass


def build_raw_request(
    method: str,
    path: str,
    body: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> bytes:
    """Serialize an HTTP/1.1 request for a handler under test."""
    payload = json.dumps(body).encode("utf-8") if body is not None else b""
    lines = [f"{method} {path} HTTP/1.1", "Host: localhost"]
    for name, value in (headers or {}).items():
        lines.append(f"{name}: {value}")
    if payload:
        lines.append("Content-Type: application/json")
        lines.append(f"Content-Length: {len(payload)}")
    return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8") + payload


def parse_raw_response(raw: bytes) -> Tuple[int, Dict[str, str], Any]:
    """Split a captured HTTP response into status, headers and decoded JSON body."""
    head, _, body = raw.partition(b"\r\n\r\n")
    status_line, *header_lines = head.decode("iso-8859-1").split("\r\n")
    status = int(status_line.split(" ")[1])
    headers = {}
    for line in header_lines:
        name, _, value = line.partition(":")
        headers[name.strip().lower()] = value.strip()
    return status, headers, json.loads(body) if body else None
