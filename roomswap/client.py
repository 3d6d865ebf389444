"""Python client for the room swap HTTP API.

Usage:
    with RoomSwapClient("http://localhost:3000") as client:
        created = client.create_listing({
            "email": "asha@example.com", "name": "Asha", "phoneNo": "9876543210",
            "currentBlock": "A", "currentFloor": "3",
            "desiredBlock": "B", "desiredFloor": "1",
        })
        matches = client.find_matches(created.data.id)
"""

import os
from typing import Any, Optional, Type, TypeVar, Union

import httpx
from pydantic import ValidationError

from roomswap.models.requests import ListingCreate, ListingUpdate
from roomswap.models.responses import (
    ApiResponse,
    HealthResponse,
    ListingListResponse,
    ListingMessageResponse,
    ListingResponse,
    MessageResponse,
)
from roomswap.utils.errors import RoomSwapClientError
from roomswap.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

DEFAULT_BASE_URL = os.environ.get("ROOMSWAP_API_URL", "http://localhost:3000")

R = TypeVar("R", bound=ApiResponse)

_WIRE_NAMES = {
    "phone_no": "phoneNo",
    "current_block": "currentBlock",
    "current_floor": "currentFloor",
    "desired_block": "desiredBlock",
    "desired_floor": "desiredFloor",
    "is_active": "isActive",
}


def _to_wire(payload: Union[ListingCreate, ListingUpdate, dict[str, Any]]) -> dict[str, Any]:
    if isinstance(payload, (ListingCreate, ListingUpdate)):
        payload = payload.model_dump(exclude_none=True)
    return {_WIRE_NAMES.get(key, key): value for key, value in payload.items()}


class RoomSwapClient:
    """Typed bindings for every room swap endpoint."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._http = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def __enter__(self) -> "RoomSwapClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, path: str, model: Type[R], **kwargs: Any) -> R:
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise RoomSwapClientError(0, f"Request to {path} failed", detail=str(e))

        try:
            payload = response.json()
        except ValueError:
            raise RoomSwapClientError(response.status_code, "Response was not JSON", detail=response.text[:200])
        if not isinstance(payload, dict):
            raise RoomSwapClientError(response.status_code, "Unexpected response shape")

        if response.is_error or not payload.get("success", False):
            logger.warning("Room swap API call failed", method=method, path=path, status=response.status_code)
            raise RoomSwapClientError(
                response.status_code,
                payload.get("message"),
                detail=payload.get("error"),
            )

        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise RoomSwapClientError(response.status_code, "Unexpected response shape", detail=str(e))

    def health_check(self) -> HealthResponse:
        return self._request("GET", "/health", HealthResponse)

    def get_listings(self, block: Optional[str] = None, floor: Optional[str] = None) -> ListingListResponse:
        """Active listings, optionally filtered by desired block and floor."""
        params = {key: value for key, value in (("block", block), ("floor", floor)) if value}
        return self._request("GET", "/api/users", ListingListResponse, params=params)

    def get_listing(self, listing_id: str) -> ListingResponse:
        return self._request("GET", f"/api/users/{listing_id}", ListingResponse)

    def create_listing(self, listing: Union[ListingCreate, dict[str, Any]]) -> ListingMessageResponse:
        return self._request("POST", "/api/users", ListingMessageResponse, json=_to_wire(listing))

    def find_matches(self, listing_id: str) -> ListingListResponse:
        return self._request("GET", f"/api/users/matches/{listing_id}", ListingListResponse)

    def search_potential_matches(
        self,
        current_block: str,
        current_floor: str,
        desired_block: str,
        desired_floor: str,
    ) -> ListingListResponse:
        params = {
            "currentBlock": current_block,
            "currentFloor": current_floor,
            "desiredBlock": desired_block,
            "desiredFloor": desired_floor,
        }
        return self._request("GET", "/api/users/search/potential-matches", ListingListResponse, params=params)

    def update_listing(self, listing_id: str, changes: Union[ListingUpdate, dict[str, Any]]) -> ListingMessageResponse:
        return self._request("PUT", f"/api/users/{listing_id}", ListingMessageResponse, json=_to_wire(changes))

    def delete_listing(self, listing_id: str) -> MessageResponse:
        return self._request("DELETE", f"/api/users/{listing_id}", MessageResponse)
