"""Room swap listings endpoint for Vercel.

Routes (all JSON):
  GET    /api/users                              list active listings (?block=&floor=)
  POST   /api/users                              create a listing
  GET    /api/users/matches/{id}                 mirror matches for a listing
  GET    /api/users/search/potential-matches     mirror matches for raw criteria
  GET    /api/users/{id}                         fetch one listing
  PUT    /api/users/{id}                         partial update
  DELETE /api/users/{id}                         soft delete
"""

from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import parse_qs, urlsplit
import asyncio
import json
import os
import re

from api.health import build_health_response
from roomswap.models.requests import ListingCreate, ListingFilter, ListingUpdate, MatchCriteria
from roomswap.models.responses import (
    ApiResponse,
    ErrorResponse,
    ListingListResponse,
    ListingMessageResponse,
    ListingResponse,
    MessageResponse,
)
from roomswap.services.listing_store import ListingStore, get_listing_store
from roomswap.services.match_engine import MatchEngine
from roomswap.utils.errors import RoomSwapError, StoreError
from roomswap.utils.logging import correlation_context, get_structured_logger
from roomswap.utils.logging_config import LoggingConfig

LoggingConfig.setup_logging()
logger = get_structured_logger(__name__)

RouteResult = tuple[int, ApiResponse]
RouteHandler = Callable[..., Awaitable[RouteResult]]


async def _health(store, query, body) -> RouteResult:
    return 200, build_health_response()


async def _list_listings(store: ListingStore, query, body) -> RouteResult:
    listings = await store.list(ListingFilter.from_query(query))
    return 200, ListingListResponse.of(listings)


async def _create_listing(store: ListingStore, query, body) -> RouteResult:
    listing = await store.create(ListingCreate.from_body(body))
    return 201, ListingMessageResponse(message="Room swap listing created successfully", data=listing)


async def _find_matches(store: ListingStore, query, body, listing_id: str) -> RouteResult:
    matches = await MatchEngine(store).find_matches_for(listing_id)
    return 200, ListingListResponse.of(matches)


async def _search_potential_matches(store: ListingStore, query, body) -> RouteResult:
    matches = await MatchEngine(store).search_potential_matches(MatchCriteria.from_query(query))
    return 200, ListingListResponse.of(matches)


async def _get_listing(store: ListingStore, query, body, listing_id: str) -> RouteResult:
    return 200, ListingResponse(data=await store.get_by_id(listing_id))


async def _update_listing(store: ListingStore, query, body, listing_id: str) -> RouteResult:
    listing = await store.update(listing_id, ListingUpdate.from_body(body))
    return 200, ListingMessageResponse(message="Listing updated successfully", data=listing)


async def _delete_listing(store: ListingStore, query, body, listing_id: str) -> RouteResult:
    await store.soft_delete(listing_id)
    return 200, MessageResponse(message="Listing deleted successfully")


_LISTING_PATH = re.compile(r"^/api/users/(?P<listing_id>[^/]+)/?$")

# First match wins: the fixed sub-paths must precede /api/users/{id}.
ROUTES: list[tuple[str, re.Pattern, RouteHandler]] = [
    ("GET", re.compile(r"^(/api)?/health/?$"), _health),
    ("GET", re.compile(r"^/api/users/?$"), _list_listings),
    ("POST", re.compile(r"^/api/users/?$"), _create_listing),
    ("GET", re.compile(r"^/api/users/matches/(?P<listing_id>[^/]+)/?$"), _find_matches),
    ("GET", re.compile(r"^/api/users/search/potential-matches/?$"), _search_potential_matches),
    ("GET", _LISTING_PATH, _get_listing),
    ("PUT", _LISTING_PATH, _update_listing),
    ("DELETE", _LISTING_PATH, _delete_listing),
]


def resolve_route(method: str, path: str) -> tuple[Optional[RouteHandler], dict[str, str], int]:
    """Return (handler, path params, status). status is 404/405 when handler is None."""
    path_matched = False
    for route_method, pattern, route_handler in ROUTES:
        match = pattern.match(path)
        if not match:
            continue
        if route_method == method:
            return route_handler, match.groupdict(), 200
        path_matched = True
    return None, {}, 405 if path_matched else 404


async def dispatch(
    method: str,
    path: str,
    query: Optional[dict[str, Any]] = None,
    body: Optional[dict[str, Any]] = None,
    store: Optional[ListingStore] = None,
) -> tuple[int, dict[str, Any]]:
    """Run one request against the listing store and return (status, JSON payload)."""
    method = method.upper()
    route_handler, params, status = resolve_route(method, path)
    if route_handler is None:
        message = "Method not allowed" if status == 405 else "Route not found"
        return status, ErrorResponse(message=message).to_api()

    try:
        if store is None and route_handler is not _health:
            store = get_listing_store()
        status, response = await route_handler(store, query or {}, body or {}, **params)
        return status, response.to_api()
    except StoreError as e:
        logger.exception("Listing store failure", method=method, path=path)
        return e.status_code, ErrorResponse(message="Server error", error=e.message).to_api()
    except RoomSwapError as e:
        logger.info("Request rejected", method=method, path=path, status=e.status_code, reason=e.message)
        return e.status_code, ErrorResponse(message=e.message).to_api()
    except Exception as e:
        logger.exception("Unhandled error", method=method, path=path)
        return 500, ErrorResponse(message="Server error", error=str(e)).to_api()


def _run(coro):
    """Run a coroutine from the synchronous handler."""
    return asyncio.run(coro)


def parse_query(raw_query: str) -> dict[str, str]:
    """Flatten a query string, keeping the first value of repeated keys."""
    return {key: values[0] for key, values in parse_qs(raw_query).items()}


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for listing routes."""

    def _read_body(self) -> dict:
        try:
            content_length = int(self.headers.get('Content-Length', 0) or 0)
            raw_body = self.rfile.read(content_length).decode('utf-8') if content_length > 0 else ""
            body = json.loads(raw_body) if raw_body else {}
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError are both ValueError
            logger.warning("Unreadable request body ignored", reason=type(e).__name__)
            body = {}
        return body if isinstance(body, dict) else {}

    def _send_json(self, status: int, payload: dict, correlation_id: str) -> None:
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.send_header(LoggingConfig.LOG_CORRELATION_ID_HEADER, correlation_id)
        self.end_headers()
        self.wfile.write(json.dumps(payload).encode('utf-8'))

    def _handle(self, method: str) -> None:
        url = urlsplit(self.path)
        incoming_id = self.headers.get(LoggingConfig.LOG_CORRELATION_ID_HEADER)
        with correlation_context(incoming_id) as correlation_id:
            body = self._read_body() if method in ("POST", "PUT") else {}
            status, payload = _run(dispatch(method, url.path, parse_query(url.query), body))
            logger.info("Request completed", method=method, path=url.path, status=status)
            self._send_json(status, payload, correlation_id)

    def do_GET(self):
        self._handle("GET")

    def do_POST(self):
        self._handle("POST")

    def do_PUT(self):
        self._handle("PUT")

    def do_DELETE(self):
        self._handle("DELETE")


def run_local_server(host: str = "127.0.0.1", port: int = 3000) -> None:
    """Serve every route from one process for local development."""
    server = ThreadingHTTPServer((host, port), handler)
    logger.info("Local server listening", host=host, port=port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()


if __name__ == "__main__":
    run_local_server(port=int(os.environ.get("PORT", "3000")))
