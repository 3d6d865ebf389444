"""Listing store contract and the in-process implementation."""

import os
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime, timezone
from typing import Optional

from ulid import ULID

from roomswap.models.listing import Listing
from roomswap.models.requests import ListingCreate, ListingFilter, ListingQuery, ListingUpdate
from roomswap.utils.errors import (
    DuplicateActiveListingError,
    ListingNotFoundError,
    ListingValidationError,
    StoreError,
)
from roomswap.utils.logging import get_structured_logger, mask_email

logger = get_structured_logger(__name__)

Location = tuple[str, str]

# Global store instance (singleton pattern)
_store: Optional["ListingStore"] = None


def generate_listing_id() -> str:
    """Generate a text-based listing ID (ULID format)."""
    return str(ULID())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def sort_newest_first(listings: list[Listing]) -> list[Listing]:
    """Order by created_at descending; ULIDs break ties deterministically."""
    return sorted(listings, key=lambda listing: (listing.created_at, listing.id), reverse=True)


def check_reactivation(listing: Listing, update: ListingUpdate) -> None:
    """Withdrawn listings stay withdrawn."""
    if update.is_active and not listing.is_active:
        raise ListingValidationError("Withdrawn listings cannot be reactivated. Please create a new listing.")


class ListingStore(ABC):
    """Persistence contract for room swap listings."""

    @abstractmethod
    async def create(self, data: ListingCreate) -> Listing:
        """Persist a new active listing; DuplicateActiveListingError if the email has one."""

    @abstractmethod
    async def get_by_id(self, listing_id: str) -> Listing:
        """Return the listing, active or not; ListingNotFoundError if unknown."""

    @abstractmethod
    async def find_active(self, query: ListingQuery) -> list[Listing]:
        """Active listings matching every set field of query, newest first."""

    @abstractmethod
    async def update(self, listing_id: str, update: ListingUpdate) -> Listing:
        """Apply a partial update and return the stored listing."""

    @abstractmethod
    async def soft_delete(self, listing_id: str) -> None:
        """Mark the listing inactive. Calling it again is a no-op."""

    async def list(self, filters: Optional[ListingFilter] = None) -> list[Listing]:
        """Active listings, optionally narrowed to a desired block and/or floor."""
        filters = filters or ListingFilter()
        return await self.find_active(
            ListingQuery(desired_block=filters.block, desired_floor=filters.floor)
        )


class InMemoryListingStore(ListingStore):
    """Process-local store with (block, floor) indexes for both locations.

    All mutations happen under one lock, so the active-email check and the
    insert it guards are atomic.
    """

    def __init__(self):
        self._listings: dict[str, Listing] = {}
        self._active_by_email: dict[str, str] = {}
        self._by_current: dict[Location, set[str]] = defaultdict(set)
        self._by_desired: dict[Location, set[str]] = defaultdict(set)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._listings)

    def _index(self, listing: Listing) -> None:
        # only active listings are reachable through the indexes
        if not listing.is_active:
            return
        self._by_current[(listing.current_block, listing.current_floor)].add(listing.id)
        self._by_desired[(listing.desired_block, listing.desired_floor)].add(listing.id)
        self._active_by_email[listing.email] = listing.id

    def _unindex(self, listing: Listing) -> None:
        self._by_current[(listing.current_block, listing.current_floor)].discard(listing.id)
        self._by_desired[(listing.desired_block, listing.desired_floor)].discard(listing.id)
        if self._active_by_email.get(listing.email) == listing.id:
            del self._active_by_email[listing.email]

    def _get(self, listing_id: str) -> Listing:
        listing = self._listings.get(listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        return listing

    def _candidates(self, query: ListingQuery) -> list[Listing]:
        if query.current_block and query.current_floor:
            ids = self._by_current.get((query.current_block, query.current_floor), set())
        elif query.desired_block and query.desired_floor:
            ids = self._by_desired.get((query.desired_block, query.desired_floor), set())
        else:
            return list(self._listings.values())
        return [self._listings[listing_id] for listing_id in ids]

    async def create(self, data: ListingCreate) -> Listing:
        with self._lock:
            if data.email in self._active_by_email:
                logger.info("Rejected duplicate active listing", email=mask_email(data.email))
                raise DuplicateActiveListingError(data.email)

            now = utc_now()
            listing = Listing(
                id=generate_listing_id(),
                **data.model_dump(),
                created_at=now,
                updated_at=now,
                is_active=True,
            )
            self._listings[listing.id] = listing
            self._index(listing)

        logger.info("Listing created", listing_id=listing.id, email=mask_email(listing.email))
        return listing

    async def get_by_id(self, listing_id: str) -> Listing:
        with self._lock:
            return self._get(listing_id)

    async def find_active(self, query: ListingQuery) -> list[Listing]:
        with self._lock:
            found = [listing for listing in self._candidates(query) if query.matches(listing)]
        return sort_newest_first(found)

    async def update(self, listing_id: str, update: ListingUpdate) -> Listing:
        with self._lock:
            listing = self._get(listing_id)
            check_reactivation(listing, update)
            changes = update.changes()
            if not changes:
                return listing

            updated = listing.model_copy(update={**changes, "updated_at": utc_now()})
            self._unindex(listing)
            self._listings[listing_id] = updated
            self._index(updated)

        logger.info("Listing updated", listing_id=listing_id, fields=sorted(changes))
        return updated

    async def soft_delete(self, listing_id: str) -> None:
        with self._lock:
            listing = self._get(listing_id)
            if not listing.is_active:
                return
            withdrawn = listing.model_copy(update={"is_active": False, "updated_at": utc_now()})
            self._unindex(listing)
            self._listings[listing_id] = withdrawn
            self._index(withdrawn)

        logger.info("Listing withdrawn", listing_id=listing_id)


def get_listing_store() -> ListingStore:
    """Get or create the process-wide listing store selected by LISTING_STORE_BACKEND."""
    global _store

    if _store is None:
        backend = os.environ.get("LISTING_STORE_BACKEND", "supabase").strip().lower()
        if backend == "memory":
            _store = InMemoryListingStore()
        elif backend == "supabase":
            from roomswap.services.supabase_store import SupabaseListingStore
            _store = SupabaseListingStore()
        else:
            raise StoreError(f"Unknown LISTING_STORE_BACKEND: {backend}")
        logger.info("Listing store initialized", backend=backend)

    return _store


def reset_listing_store() -> None:
    """Drop the cached store (used between tests and after config changes)."""
    global _store
    _store = None
