# Wishlist API test suite: idempotent add/remove, toggle, clear, and saved counters.
from __future__ import annotations

from fastapi.testclient import TestClient
from sqlalchemy import event

from uninest import models, schemas
from uninest.main import app
from uninest.routes.wishlist import GUEST_WISHLIST_OWNER, add_to_wishlist, toggle_wishlist


# Helper: create a landlord with one listing and return the listing JSON
def create_listing(client: TestClient, email: str = "owner@example.com") -> dict:
    r = client.post(
        "/api/auth/register",
        json={"name": "Owner", "email": email, "password": "secret123", "role": "landlord"},
    )
    assert r.status_code == 200, r.text
    landlord = r.json()["user"]
    r = client.post(
        "/api/properties",
        json={
            "title": "Room with a View",
            "description": "Top floor",
            "propertyType": "PG",
            "address": "5 Lake Road",
            "city": "Kolkata",
            "rent": 5500,
            "deposit": 11000,
            "landlordId": landlord["id"],
        },
    )
    assert r.status_code == 200, r.text
    return r.json()["property"]


def saved_count(db_session, property_id: str) -> int:
    db_session.expire_all()
    return db_session.get(models.Property, property_id).saved_count


def test_get_without_record_returns_empty_list(client: TestClient, db_session):
    r = client.get("/api/wishlist")
    assert r.status_code == 200
    assert r.json() == {"propertyIds": []}
    assert db_session.query(models.Wishlist).count() == 0


def test_add_is_idempotent_and_keeps_insertion_order(client: TestClient, db_session):
    r = client.post("/api/wishlist", json={"propertyId": "p-2"})
    assert r.status_code == 200, r.text
    assert r.json() == {"message": "Added to wishlist", "propertyIds": ["p-2"]}

    client.post("/api/wishlist", json={"propertyId": "p-1"})
    r = client.post("/api/wishlist", json={"propertyId": "p-2"})
    assert r.json()["propertyIds"] == ["p-2", "p-1"]

    assert client.get("/api/wishlist").json() == {"propertyIds": ["p-2", "p-1"]}
    wishlist = db_session.query(models.Wishlist).one()
    assert wishlist.user_id == GUEST_WISHLIST_OWNER


def test_remove_absent_id_leaves_list_unchanged(client: TestClient):
    r = client.delete("/api/wishlist?propertyId=nothing-here")
    assert r.status_code == 200
    assert r.json() == {"message": "Removed from wishlist", "propertyIds": []}

    client.post("/api/wishlist", json={"propertyId": "p-1"})
    client.post("/api/wishlist", json={"propertyId": "p-2"})
    r = client.delete("/api/wishlist?propertyId=p-3")
    assert r.json()["propertyIds"] == ["p-1", "p-2"]

    r = client.delete("/api/wishlist?propertyId=p-1")
    assert r.json()["propertyIds"] == ["p-2"]
    r = client.delete("/api/wishlist?propertyId=p-1")
    assert r.json()["propertyIds"] == ["p-2"]


def test_toggle_twice_restores_original(client: TestClient):
    client.post("/api/wishlist", json={"propertyId": "p-1"})

    r = client.put("/api/wishlist", json={"propertyId": "p-9"})
    assert r.status_code == 200, r.text
    assert r.json() == {"message": "Added to wishlist", "propertyIds": ["p-1", "p-9"], "isInWishlist": True}

    r = client.put("/api/wishlist", json={"propertyId": "p-9"})
    assert r.json() == {"message": "Removed from wishlist", "propertyIds": ["p-1"], "isInWishlist": False}


def test_clear_all_keeps_record(client: TestClient, db_session):
    client.post("/api/wishlist", json={"propertyId": "p-1"})
    client.post("/api/wishlist", json={"propertyId": "p-2"})

    r = client.delete("/api/wishlist?clearAll=true")
    assert r.status_code == 200
    assert r.json() == {"message": "Wishlist cleared", "propertyIds": []}
    assert db_session.query(models.Wishlist).count() == 1
    assert db_session.query(models.WishlistItem).count() == 0

    # Clearing with no record at all also succeeds
    db_session.query(models.Wishlist).delete()
    db_session.commit()
    assert client.delete("/api/wishlist?clearAll=true").status_code == 200


def test_property_id_is_required(client: TestClient):
    expected = {"success": False, "message": "Property ID is required"}
    r = client.post("/api/wishlist", json={})
    assert r.status_code == 400
    assert r.json() == expected
    r = client.put("/api/wishlist", json={"propertyId": "  "})
    assert r.status_code == 400
    assert r.json() == expected
    r = client.delete("/api/wishlist")
    assert r.status_code == 400
    assert r.json() == expected


def test_saved_count_follows_membership(client: TestClient, db_session):
    listing = create_listing(client)
    pid = listing["id"]

    client.post("/api/wishlist", json={"propertyId": pid})
    client.post("/api/wishlist", json={"propertyId": pid})
    assert saved_count(db_session, pid) == 1

    client.put("/api/wishlist", json={"propertyId": pid})
    assert saved_count(db_session, pid) == 0
    client.put("/api/wishlist", json={"propertyId": pid})
    assert saved_count(db_session, pid) == 1

    client.delete("/api/wishlist?clearAll=true")
    assert saved_count(db_session, pid) == 0

    client.delete(f"/api/wishlist?propertyId={pid}")
    assert saved_count(db_session, pid) == 0


# Helper: let `rival_write` commit right after `session` reads the guest wishlist, before it writes
def interleave_after_wishlist_read(session, rival_write) -> None:
    fired = []

    @event.listens_for(session, "do_orm_execute")
    def _interleave(state):
        if fired or not state.is_select or models.Wishlist.__mapper__ not in state.all_mappers:
            return None
        fired.append(True)
        frozen = state.invoke_statement().freeze()
        rival_write()
        return frozen()


def test_concurrent_first_adds_both_land(client: TestClient):
    database = app.state.database
    slow, fast = database.session(), database.session()
    try:
        interleave_after_wishlist_read(
            slow, lambda: add_to_wishlist(schemas.WishlistRequest(property_id="p-1"), db=fast)
        )
        # slow saw no wishlist, then lost the insert race on wishlists.user_id
        result = add_to_wishlist(schemas.WishlistRequest(property_id="p-2"), db=slow)
        assert result.property_ids == ["p-1", "p-2"]
    finally:
        slow.close()
        fast.close()

    assert client.get("/api/wishlist").json() == {"propertyIds": ["p-1", "p-2"]}


def test_concurrent_add_of_same_id_is_not_duplicated(client: TestClient, db_session):
    client.post("/api/wishlist", json={"propertyId": "p-0"})
    database = app.state.database
    slow, fast = database.session(), database.session()
    try:
        interleave_after_wishlist_read(
            slow, lambda: add_to_wishlist(schemas.WishlistRequest(property_id="p-1"), db=fast)
        )
        result = add_to_wishlist(schemas.WishlistRequest(property_id="p-1"), db=slow)
        assert result.message == "Added to wishlist"
        assert result.property_ids == ["p-0", "p-1"]
    finally:
        slow.close()
        fast.close()

    assert client.get("/api/wishlist").json() == {"propertyIds": ["p-0", "p-1"]}
    assert db_session.query(models.WishlistItem).count() == 2


def test_concurrent_toggle_retries_against_rival_state(client: TestClient):
    database = app.state.database
    slow, fast = database.session(), database.session()
    try:
        interleave_after_wishlist_read(
            slow, lambda: add_to_wishlist(schemas.WishlistRequest(property_id="p-1"), db=fast)
        )
        # After the retry slow sees the rival's p-1, so the toggle removes it
        result = toggle_wishlist(schemas.WishlistRequest(property_id="p-1"), db=slow)
        assert result.is_in_wishlist is False
        assert result.property_ids == []
    finally:
        slow.close()
        fast.close()

    r = client.get("/api/wishlist")
    assert r.status_code == 200
    assert r.json() == {"propertyIds": []}
