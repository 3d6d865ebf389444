"""Tests for Listing model."""

import pytest
from datetime import datetime, timezone
from pydantic import ValidationError
from roomswap.models.listing import Listing, ListingStatus


def make_listing(**overrides) -> Listing:
    data = {
        "id": "01ARZ3NDEKTSV4RRFFQ69G5FAV",
        "email": "Asha@Example.com",
        "name": " Asha Rao ",
        "phoneNo": "9876543210",
        "currentBlock": "A",
        "currentFloor": "3",
        "desiredBlock": "B",
        "desiredFloor": "1",
        "createdAt": datetime(2024, 12, 9, 12, 0, tzinfo=timezone.utc),
    }
    data.update(overrides)
    return Listing(**data)


@pytest.mark.unit
def test_listing_normalizes_email_and_blocks():
    """Emails and blocks are lowercased, names trimmed."""
    listing = make_listing()

    assert listing.email == "asha@example.com"
    assert listing.current_block == "a"
    assert listing.desired_block == "b"
    assert listing.name == "Asha Rao"
    assert listing.is_active is True  # Default value


@pytest.mark.unit
def test_listing_keeps_floor_case():
    """Floors are stored verbatim apart from surrounding whitespace."""
    listing = make_listing(currentFloor=" 2A ", desiredFloor="Ground")

    assert listing.current_floor == "2A"
    assert listing.desired_floor == "Ground"


@pytest.mark.unit
def test_listing_accepts_legacy_hostel_block_keys():
    """currentHostelBlock/desiredHostelBlock are accepted on input."""
    data = {
        "id": "01ARZ3NDEKTSV4RRFFQ69G5FAV",
        "email": "asha@example.com",
        "name": "Asha",
        "phoneNo": "9876543210",
        "currentHostelBlock": "C",
        "currentFloor": "3",
        "desiredHostelBlock": "D",
        "desiredFloor": "1",
        "createdAt": "2024-12-09T12:00:00+00:00",
    }

    listing = Listing.model_validate(data)

    assert listing.current_block == "c"
    assert listing.desired_block == "d"


@pytest.mark.unit
def test_listing_from_snake_case_row():
    """Rows from the database use column names."""
    listing = Listing.model_validate({
        "id": "01ARZ3NDEKTSV4RRFFQ69G5FAV",
        "email": "asha@example.com",
        "name": "Asha",
        "phone_no": "9876543210",
        "current_block": "a",
        "current_floor": "3",
        "desired_block": "b",
        "desired_floor": "1",
        "created_at": "2024-12-09T12:00:00+00:00",
        "is_active": False,
    })

    assert listing.phone_no == "9876543210"
    assert listing.is_active is False


@pytest.mark.unit
def test_listing_to_api_uses_wire_names():
    """Serialized listings use camelCase keys."""
    payload = make_listing().to_api()

    assert payload["phoneNo"] == "9876543210"
    assert payload["currentBlock"] == "a"
    assert payload["desiredFloor"] == "1"
    assert payload["isActive"] is True
    assert payload["createdAt"].startswith("2024-12-09T12:00:00")
    assert "current_block" not in payload


@pytest.mark.unit
def test_listing_status():
    """is_active maps onto the two-state status."""
    assert make_listing().status == ListingStatus.ACTIVE
    assert make_listing(isActive=False).status == ListingStatus.WITHDRAWN


@pytest.mark.unit
def test_listing_missing_required_fields():
    """Test that required fields are enforced."""
    with pytest.raises(ValidationError):
        Listing(
            id="01ARZ3NDEKTSV4RRFFQ69G5FAV",
            email="asha@example.com",
            # Missing name, phone and locations
        )
