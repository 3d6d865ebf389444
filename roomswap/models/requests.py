"""Validated inputs for listing operations.

Raw request bodies and query strings are parsed here, at the boundary, so the
store and the match engine only ever see normalized values: blocks and emails
lowercased, every string trimmed, empty strings treated as absent.
"""

from typing import Any, Mapping, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from roomswap.models.listing import Listing
from roomswap.utils.errors import ListingValidationError, MissingCriteriaError, MissingFieldsError


# field name -> accepted wire keys, preferred first
_LISTING_KEYS = {
    "email": ("email",),
    "name": ("name",),
    "phone_no": ("phoneNo", "phone_no"),
    "current_block": ("currentBlock", "currentHostelBlock", "current_block"),
    "current_floor": ("currentFloor", "current_floor"),
    "desired_block": ("desiredBlock", "desiredHostelBlock", "desired_block"),
    "desired_floor": ("desiredFloor", "desired_floor"),
}

_CRITERIA_KEYS = {
    "current_block": ("currentBlock", "current_block"),
    "current_floor": ("currentFloor", "current_floor"),
    "desired_block": ("desiredBlock", "desired_block"),
    "desired_floor": ("desiredFloor", "desired_floor"),
}


def _pick(source: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    """Return the first truthy value among keys; blank strings count as missing."""
    for key in keys:
        value = source.get(key)
        if isinstance(value, str):
            value = value.strip()
        if value:
            return value
    return None


def _collect(source: Mapping[str, Any], mapping: dict[str, tuple[str, ...]]) -> dict[str, Any]:
    return {field: _pick(source, keys) for field, keys in mapping.items()}


def _validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"Invalid value for {location}: {first.get('msg')}" if location else str(first.get("msg"))


class _Normalized(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, coerce_numbers_to_str=True)

    @field_validator("email", "current_block", "desired_block", check_fields=False)
    @classmethod
    def _lowercase(cls, value: Optional[str]) -> Optional[str]:
        return value.lower() if value else value


class ListingCreate(_Normalized):
    """Body of a new listing submission. Every field is required."""
    email: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    phone_no: str = Field(..., min_length=1)
    current_block: str = Field(..., min_length=1)
    current_floor: str = Field(..., min_length=1)
    desired_block: str = Field(..., min_length=1)
    desired_floor: str = Field(..., min_length=1)

    @classmethod
    def from_body(cls, body: Optional[Mapping[str, Any]]) -> "ListingCreate":
        """Parse a request body, raising MissingFieldsError before anything is stored."""
        if not isinstance(body, Mapping):
            body = {}
        data = _collect(body, _LISTING_KEYS)
        missing = [_LISTING_KEYS[field][0] for field, value in data.items() if value is None]
        if missing:
            raise MissingFieldsError(missing)
        try:
            return cls(**data)
        except ValidationError as e:
            raise ListingValidationError(_validation_message(e))


class ListingUpdate(_Normalized):
    """Partial update. Only truthy strings and a non-None is_active are applied."""
    name: Optional[str] = None
    phone_no: Optional[str] = None
    current_block: Optional[str] = None
    current_floor: Optional[str] = None
    desired_block: Optional[str] = None
    desired_floor: Optional[str] = None
    is_active: Optional[bool] = None

    @classmethod
    def from_body(cls, body: Optional[Mapping[str, Any]]) -> "ListingUpdate":
        if not isinstance(body, Mapping):
            body = {}
        data = _collect(body, {k: v for k, v in _LISTING_KEYS.items() if k != "email"})
        is_active = body.get("isActive", body.get("is_active"))
        try:
            return cls(**data, is_active=is_active)
        except ValidationError as e:
            raise ListingValidationError(_validation_message(e))

    def changes(self) -> dict[str, Any]:
        """Fields to write, keyed by listing attribute name."""
        updates = {
            field: value
            for field, value in self.model_dump(exclude={"is_active"}).items()
            if value
        }
        if self.is_active is not None:
            updates["is_active"] = self.is_active
        return updates


class ListingFilter(_Normalized):
    """Optional filters for browsing active listings by desired location."""
    block: Optional[str] = None
    floor: Optional[str] = None

    @field_validator("block")
    @classmethod
    def _lowercase_block(cls, value: Optional[str]) -> Optional[str]:
        return value.lower() if value else None

    @field_validator("floor")
    @classmethod
    def _blank_floor(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    @classmethod
    def from_query(cls, query: Optional[Mapping[str, Any]]) -> "ListingFilter":
        query = query or {}
        try:
            return cls(block=_pick(query, ("block",)), floor=_pick(query, ("floor",)))
        except ValidationError as e:
            raise ListingValidationError(_validation_message(e))


class MatchCriteria(_Normalized):
    """A current/desired location pair to find mirror listings for."""
    current_block: str = Field(..., min_length=1)
    current_floor: str = Field(..., min_length=1)
    desired_block: str = Field(..., min_length=1)
    desired_floor: str = Field(..., min_length=1)

    @classmethod
    def from_query(cls, query: Optional[Mapping[str, Any]]) -> "MatchCriteria":
        """Parse search query parameters; all four criteria are required."""
        data = _collect(query or {}, _CRITERIA_KEYS)
        missing = [_CRITERIA_KEYS[field][0] for field, value in data.items() if value is None]
        if missing:
            raise MissingCriteriaError(missing)
        try:
            return cls(**data)
        except ValidationError as e:
            raise ListingValidationError(_validation_message(e))


class ListingQuery(BaseModel):
    """Equality filter over active listings, evaluated by the store."""
    current_block: Optional[str] = None
    current_floor: Optional[str] = None
    desired_block: Optional[str] = None
    desired_floor: Optional[str] = None
    exclude_id: Optional[str] = None

    def conditions(self) -> dict[str, str]:
        """Listing attribute -> required value, for the fields that are set."""
        return self.model_dump(exclude={"exclude_id"}, exclude_none=True)

    def matches(self, listing: Listing) -> bool:
        if not listing.is_active:
            return False
        if self.exclude_id is not None and listing.id == self.exclude_id:
            return False
        return all(getattr(listing, field) == value for field, value in self.conditions().items())
