"""Error handling utilities."""

from typing import Optional


class RoomSwapError(Exception):
    """Base exception for the room swap service."""
    status_code = 500
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ListingValidationError(RoomSwapError):
    """Request input failed validation."""
    status_code = 400
    default_message = "Invalid listing data"


class MissingFieldsError(ListingValidationError):
    """Required listing fields were not provided on create."""
    default_message = "Please provide all required fields"

    def __init__(self, fields: Optional[list[str]] = None, message: Optional[str] = None):
        self.fields = fields or []
        super().__init__(message)


class MissingCriteriaError(ListingValidationError):
    """Search criteria were incomplete."""
    default_message = "Please provide all search criteria"

    def __init__(self, fields: Optional[list[str]] = None, message: Optional[str] = None):
        self.fields = fields or []
        super().__init__(message)


class ListingNotFoundError(RoomSwapError):
    """No listing exists for the given ID."""
    status_code = 404
    default_message = "Listing not found"

    def __init__(self, listing_id: Optional[str] = None, message: Optional[str] = None):
        self.listing_id = listing_id
        super().__init__(message)


class DuplicateActiveListingError(RoomSwapError):
    """The email already owns an active listing."""
    status_code = 400
    default_message = "You already have an active listing. Please delete it first."

    def __init__(self, email: Optional[str] = None, message: Optional[str] = None):
        self.email = email
        super().__init__(message)


class StoreError(RoomSwapError):
    """Listing store operation error."""
    status_code = 500
    default_message = "Server error"


class RoomSwapClientError(RoomSwapError):
    """API call returned a failure envelope."""

    def __init__(self, status_code: int, message: Optional[str] = None, detail: Optional[str] = None):
        self.status_code = status_code
        self.detail = detail
        super().__init__(message or f"HTTP {status_code}")
