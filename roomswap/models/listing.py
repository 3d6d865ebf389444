"""Room swap listing model."""

from enum import Enum
from typing import Any, Optional
from datetime import datetime
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class ListingStatus(str, Enum):
    """Listing lifecycle states. WITHDRAWN is terminal."""
    ACTIVE = "ACTIVE"
    WITHDRAWN = "WITHDRAWN"


class Listing(BaseModel):
    """One user's room swap request: where they live now and where they want to be."""
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    id: str = Field(..., description="Listing ID (ULID)")
    email: str = Field(..., description="Owner email, lowercase")
    name: str = Field(..., description="Owner name")
    phone_no: str = Field(..., alias="phoneNo", description="Contact phone number")
    current_block: str = Field(
        ...,
        alias="currentBlock",
        validation_alias=AliasChoices("currentBlock", "current_block", "currentHostelBlock"),
        description="Hostel block the owner lives in, lowercase"
    )
    current_floor: str = Field(..., alias="currentFloor", description="Floor the owner lives on")
    desired_block: str = Field(
        ...,
        alias="desiredBlock",
        validation_alias=AliasChoices("desiredBlock", "desired_block", "desiredHostelBlock"),
        description="Hostel block the owner wants, lowercase"
    )
    desired_floor: str = Field(..., alias="desiredFloor", description="Floor the owner wants")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")
    is_active: bool = Field(default=True, alias="isActive")

    @field_validator("email", "current_block", "desired_block")
    @classmethod
    def _lowercase(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("name", "phone_no", "current_floor", "desired_floor")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()

    @property
    def status(self) -> ListingStatus:
        return ListingStatus.ACTIVE if self.is_active else ListingStatus.WITHDRAWN

    def to_api(self) -> dict[str, Any]:
        """Serialize with wire (camelCase) field names."""
        return self.model_dump(mode="json", by_alias=True)
