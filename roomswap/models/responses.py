"""Response envelopes shared by the HTTP handlers and the API client."""

from typing import Any, Optional
from pydantic import BaseModel, Field

from roomswap.models.listing import Listing


class ApiResponse(BaseModel):
    """Base envelope: every response says whether it succeeded."""
    success: bool = True

    def to_api(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class HealthResponse(ApiResponse):
    message: str
    timestamp: str


class ListingListResponse(ApiResponse):
    count: int = 0
    data: list[Listing] = Field(default_factory=list)

    @classmethod
    def of(cls, listings: list[Listing]) -> "ListingListResponse":
        return cls(count=len(listings), data=listings)


class ListingResponse(ApiResponse):
    data: Listing


class ListingMessageResponse(ApiResponse):
    message: str
    data: Listing


class MessageResponse(ApiResponse):
    message: str


class ErrorResponse(ApiResponse):
    success: bool = False
    message: str
    error: Optional[str] = None
