"""End-to-end listing lifecycle through the request dispatcher."""

import pytest

from api.users import dispatch
from roomswap.services.listing_store import get_listing_store
from tests.utils.assertions import assert_listing_envelope, ids_of
from tests.utils.factories import create_listing_body


@pytest.mark.integration
@pytest.mark.asyncio
async def test_swap_lifecycle():
    """Two students find each other, one withdraws, the other relists and matches someone new."""
    store = get_listing_store()
    asha = create_listing_body(
        email="asha@example.com", current_block="A", current_floor="3", desired_block="B", desired_floor="1",
    )
    ravi = create_listing_body(
        email="ravi@example.com", current_block="b", current_floor="1", desired_block="a", desired_floor="3",
    )

    status, created_asha = await dispatch("POST", "/api/users", body=asha, store=store)
    assert status == 201
    _, created_ravi = await dispatch("POST", "/api/users", body=ravi, store=store)
    asha_id, ravi_id = created_asha["data"]["id"], created_ravi["data"]["id"]

    _, matches = await dispatch("GET", f"/api/users/matches/{asha_id}", store=store)
    assert_listing_envelope(matches, 1)
    assert matches["data"][0]["id"] == ravi_id

    _, searched = await dispatch(
        "GET",
        "/api/users/search/potential-matches",
        query={"currentBlock": "B", "currentFloor": "1", "desiredBlock": "A", "desiredFloor": "3"},
        store=store,
    )
    assert [listing["id"] for listing in searched["data"]] == [asha_id]

    # Ravi moves on: new desired location, so the pair no longer mirrors
    _, updated = await dispatch("PUT", f"/api/users/{ravi_id}", body={"desiredFloor": "4"}, store=store)
    assert updated["data"]["desiredFloor"] == "4"
    _, matches = await dispatch("GET", f"/api/users/matches/{asha_id}", store=store)
    assert matches["count"] == 0

    # Asha withdraws and relists with the same email
    status, _ = await dispatch("DELETE", f"/api/users/{asha_id}", store=store)
    assert status == 200
    status, relisted = await dispatch("POST", "/api/users", body=asha, store=store)
    assert status == 201
    new_asha_id = relisted["data"]["id"]
    assert new_asha_id != asha_id

    status, rejected = await dispatch("POST", "/api/users", body=asha, store=store)
    assert status == 400
    assert rejected["success"] is False

    # A newcomer in A/4 wants B/1: mirrors Ravi's updated listing
    newcomer = create_listing_body(
        email="meera@example.com", current_block="A", current_floor="4", desired_block="B", desired_floor="1",
    )
    _, created_newcomer = await dispatch("POST", "/api/users", body=newcomer, store=store)
    _, matches = await dispatch("GET", f"/api/users/matches/{ravi_id}", store=store)
    assert ids_of_payload(matches) == [created_newcomer["data"]["id"]]

    _, everything = await dispatch("GET", "/api/users", store=store)
    assert_listing_envelope(everything, 3)
    assert asha_id not in ids_of_payload(everything)

    _, withdrawn = await dispatch("GET", f"/api/users/{asha_id}", store=store)
    assert withdrawn["data"]["isActive"] is False
    assert ids_of(await store.list()) == ids_of_payload(everything)


def ids_of_payload(payload):
    return [listing["id"] for listing in payload["data"]]
