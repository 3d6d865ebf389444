"""Listing store backed by a Supabase (Postgres) table.

The at-most-one-active-listing-per-email rule is enforced by the partial
unique index in sql/room_swap_listings.sql; the lookup before insert only
produces the friendlier error in the common case.
"""

import os
from typing import Any, Optional

from roomswap.models.listing import Listing
from roomswap.models.requests import ListingCreate, ListingQuery, ListingUpdate
from roomswap.services.listing_store import (
    ListingStore,
    check_reactivation,
    generate_listing_id,
    utc_now,
)
from roomswap.services.supabase_client import SupabaseClient, is_unique_violation
from roomswap.utils.errors import (
    DuplicateActiveListingError,
    ListingNotFoundError,
    RoomSwapError,
    StoreError,
)
from roomswap.utils.logging import get_structured_logger, log_timing, mask_email

logger = get_structured_logger(__name__)

DEFAULT_LISTINGS_TABLE = "room_swap_listings"


def _to_listing(row: dict[str, Any]) -> Listing:
    return Listing.model_validate(row)


class SupabaseListingStore(ListingStore):
    """ListingStore over a PostgREST table with snake_case columns."""

    def __init__(self, table: Optional[str] = None):
        self.table = table or os.environ.get("LISTINGS_TABLE", DEFAULT_LISTINGS_TABLE)

    async def _fetch(self, client, listing_id: str) -> Listing:
        result = client.table(self.table).select("*").eq("id", listing_id).limit(1).execute()
        if not result.data:
            raise ListingNotFoundError(listing_id)
        return _to_listing(result.data[0])

    async def create(self, data: ListingCreate) -> Listing:
        async with SupabaseClient() as client:
            try:
                existing = (
                    client.table(self.table)
                    .select("id")
                    .eq("email", data.email)
                    .eq("is_active", True)
                    .limit(1)
                    .execute()
                )
                if existing.data:
                    raise DuplicateActiveListingError(data.email)

                now = utc_now().isoformat()
                row = {
                    "id": generate_listing_id(),
                    **data.model_dump(),
                    "created_at": now,
                    "updated_at": now,
                    "is_active": True,
                }
                result = client.table(self.table).insert(row).execute()
                if not result.data:
                    raise StoreError("Failed to create listing: no data returned")
            except RoomSwapError:
                raise
            except Exception as e:
                if is_unique_violation(e):
                    logger.info("Concurrent duplicate listing rejected", email=mask_email(data.email))
                    raise DuplicateActiveListingError(data.email)
                raise StoreError(f"Failed to create listing: {e}")

        listing = _to_listing(result.data[0])
        logger.info("Listing created", listing_id=listing.id, email=mask_email(listing.email))
        return listing

    async def get_by_id(self, listing_id: str) -> Listing:
        async with SupabaseClient() as client:
            try:
                return await self._fetch(client, listing_id)
            except RoomSwapError:
                raise
            except Exception as e:
                raise StoreError(f"Failed to get listing: {e}")

    async def find_active(self, query: ListingQuery) -> list[Listing]:
        async with SupabaseClient() as client:
            try:
                with log_timing("find_active_listings", logger=logger, table=self.table):
                    request = client.table(self.table).select("*").eq("is_active", True)
                    for column, value in query.conditions().items():
                        request = request.eq(column, value)
                    if query.exclude_id:
                        request = request.neq("id", query.exclude_id)
                    result = request.order("created_at", desc=True).execute()
            except Exception as e:
                raise StoreError(f"Failed to query listings: {e}")

        return [_to_listing(row) for row in result.data or []]

    async def update(self, listing_id: str, update: ListingUpdate) -> Listing:
        async with SupabaseClient() as client:
            try:
                listing = await self._fetch(client, listing_id)
                check_reactivation(listing, update)
                changes = update.changes()
                if not changes:
                    return listing

                result = (
                    client.table(self.table)
                    .update({**changes, "updated_at": utc_now().isoformat()})
                    .eq("id", listing_id)
                    .execute()
                )
                if not result.data:
                    raise ListingNotFoundError(listing_id)
            except RoomSwapError:
                raise
            except Exception as e:
                raise StoreError(f"Failed to update listing: {e}")

        logger.info("Listing updated", listing_id=listing_id, fields=sorted(changes))
        return _to_listing(result.data[0])

    async def soft_delete(self, listing_id: str) -> None:
        async with SupabaseClient() as client:
            try:
                listing = await self._fetch(client, listing_id)
                if not listing.is_active:
                    return
                client.table(self.table).update({
                    "is_active": False,
                    "updated_at": utc_now().isoformat(),
                }).eq("id", listing_id).execute()
            except RoomSwapError:
                raise
            except Exception as e:
                raise StoreError(f"Failed to delete listing: {e}")

        logger.info("Listing withdrawn", listing_id=listing_id)
