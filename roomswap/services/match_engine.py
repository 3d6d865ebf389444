"""Mirror matching: find listings that want what you have and have what you want."""

from typing import Optional

from roomswap.models.listing import Listing
from roomswap.models.requests import ListingQuery, MatchCriteria
from roomswap.services.listing_store import ListingStore
from roomswap.utils.logging import get_structured_logger, timed

logger = get_structured_logger(__name__)


class MatchEngine:
    """Stateless query over a listing store.

    A listing B mirrors A when B's current location is A's desired location
    and B's desired location is A's current location. Blocks are compared
    lowercase, floors as exact strings. Only active listings are returned.
    """

    def __init__(self, store: ListingStore):
        self.store = store

    async def find_mirror(
        self,
        current_block: str,
        current_floor: str,
        desired_block: str,
        desired_floor: str,
        exclude_id: Optional[str] = None,
    ) -> list[Listing]:
        """Active listings living at the desired location and wanting the current one."""
        query = ListingQuery(
            current_block=desired_block.lower(),
            current_floor=desired_floor,
            desired_block=current_block.lower(),
            desired_floor=current_floor,
            exclude_id=exclude_id,
        )
        return await self.store.find_active(query)

    @timed("find_matches_for")
    async def find_matches_for(self, listing_id: str) -> list[Listing]:
        """Mirror matches for an existing listing, never including itself.

        Raises ListingNotFoundError if listing_id is unknown.
        """
        listing = await self.store.get_by_id(listing_id)
        matches = await self.find_mirror(
            listing.current_block,
            listing.current_floor,
            listing.desired_block,
            listing.desired_floor,
            exclude_id=listing.id,
        )
        logger.info("Matches found for listing", listing_id=listing_id, match_count=len(matches))
        return matches

    @timed("search_potential_matches")
    async def search_potential_matches(self, criteria: MatchCriteria) -> list[Listing]:
        """Mirror matches for a location pair that need not belong to any listing."""
        matches = await self.find_mirror(
            criteria.current_block,
            criteria.current_floor,
            criteria.desired_block,
            criteria.desired_floor,
        )
        logger.info(
            "Potential matches searched",
            current_block=criteria.current_block,
            desired_block=criteria.desired_block,
            match_count=len(matches),
        )
        return matches
