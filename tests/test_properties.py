# Property API test suite: create defaults, required fields, search filters, ownership and counter bookkeeping.
from __future__ import annotations

from typing import Tuple

from fastapi.testclient import TestClient

from uninest import models
from uninest.routes.properties import generate_slug, slugify


# Helper: register a user and return (token, user JSON)
def register(client: TestClient, email: str, role: str, name: str = "Test User", phone: str | None = None) -> Tuple[str, dict]:
    payload = {"name": name, "email": email, "password": "secret123", "role": role}
    if phone:
        payload["phone"] = phone
    r = client.post("/api/auth/register", json=payload)
    assert r.status_code == 200, r.text
    data = r.json()
    return data["token"], data["user"]


def property_payload(landlord_id: str, **overrides) -> dict:
    payload = {
        "title": "Sunny PG near Campus",
        "description": "Two minutes from the main gate",
        "propertyType": "PG",
        "address": "12 College Street",
        "city": "Kolkata",
        "rent": 6500,
        "deposit": 13000,
        "landlordId": landlord_id,
    }
    payload.update(overrides)
    return payload


# Helper: create a property and return its JSON
def create_property(client: TestClient, landlord_id: str, **overrides) -> dict:
    r = client.post("/api/properties", json=property_payload(landlord_id, **overrides))
    assert r.status_code == 200, r.text
    return r.json()["property"]


def landlord_total(db_session, landlord_id: str) -> int:
    db_session.expire_all()
    return db_session.get(models.LandlordProfile, landlord_id).total_properties


def test_create_applies_defaults(client: TestClient, db_session):
    _, landlord = register(client, "owner@example.com", "landlord", name="Ravi Landlord", phone="9000000002")

    r = client.post("/api/properties", json=property_payload(landlord["id"]))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "Property created successfully"
    prop = body["property"]

    assert prop["slug"].startswith("sunny-pg-near-campus-")
    assert prop["bhk"] is None
    assert prop["state"] == "West Bengal"
    assert prop["pincode"] == ""
    assert prop["landmark"] == ""
    assert prop["latitude"] == 22.5
    assert prop["longitude"] == 88.4
    assert prop["nearbyColleges"] == []
    for key in ("totalRooms", "totalBeds", "availableBeds", "bedsPerRoom", "bathrooms", "floorNumber", "totalFloors"):
        assert prop[key] == 1, key
    assert prop["roomSize"] == ""
    assert prop["maintenanceCharges"] == 0
    assert prop["electricityCharges"] == "separate"
    assert prop["waterCharges"] == "included"
    assert prop["foodIncluded"] is False
    assert prop["foodCharges"] is None
    assert prop["mealsPerDay"] == 0
    assert prop["genderPreference"] == "ANY"
    assert prop["occupancyType"] == "double"
    assert prop["furnishing"] == "SEMI_FURNISHED"
    assert prop["furnishingDetails"] == []
    assert prop["amenities"] == []
    assert prop["rules"] == {
        "nonVegAllowed": True,
        "smokingAllowed": False,
        "drinkingAllowed": False,
        "petsAllowed": False,
        "visitorsAllowed": True,
        "oppositeSexAllowed": False,
        "gateClosingTime": None,
    }
    assert prop["images"] == []
    assert prop["availableFrom"]
    assert prop["minimumStay"] == 6
    assert prop["noticePeriod"] == 1
    assert prop["landlordName"] == "Ravi Landlord"
    assert prop["landlordPhone"] == "9000000002"
    assert prop["status"] == "ACTIVE"
    assert prop["isVerified"] is False
    assert prop["isFeatured"] is False
    assert prop["viewCount"] == prop["inquiryCount"] == prop["savedCount"] == 0
    assert prop["createdAt"] and prop["updatedAt"]

    assert landlord_total(db_session, landlord["id"]) == 1


def test_create_keeps_supplied_optional_fields(client: TestClient):
    _, landlord = register(client, "owner@example.com", "landlord")
    prop = create_property(
        client,
        landlord["id"],
        slug="custom-slug",
        bhk=2,
        amenities=["WiFi", "AC", "WiFi"],
        rules={"smokingAllowed": True, "gateClosingTime": "22:00"},
        images=[{"url": "https://img.example.com/a.jpg"}, {"url": "https://img.example.com/b.jpg", "isPrimary": True}],
        genderPreference="FEMALE",
    )
    assert prop["slug"] == "custom-slug"
    assert prop["bhk"] == 2
    assert prop["amenities"] == ["WiFi", "AC"]
    assert prop["rules"]["smokingAllowed"] is True
    assert prop["rules"]["nonVegAllowed"] is True
    assert prop["rules"]["gateClosingTime"] == "22:00"
    assert prop["images"][1] == {"url": "https://img.example.com/b.jpg", "isPrimary": True, "caption": ""}
    assert prop["landlordPhone"] == ""
    assert prop["genderPreference"] == "FEMALE"


def test_create_reports_first_missing_field_and_persists_nothing(client: TestClient, db_session):
    _, landlord = register(client, "owner@example.com", "landlord")
    full = property_payload(landlord["id"])
    order = ["title", "description", "propertyType", "address", "city", "rent", "deposit", "landlordId"]

    for i, field in enumerate(order):
        # Drop this field and every one after it; the first dropped is the one reported
        payload = {k: v for k, v in full.items() if k not in order[i:]}
        r = client.post("/api/properties", json=payload)
        assert r.status_code == 400, (field, r.text)
        assert r.json() == {"success": False, "message": f"{field} is required"}

    r = client.post("/api/properties", json={**full, "title": "   "})
    assert r.status_code == 400
    assert r.json()["message"] == "title is required"

    assert db_session.query(models.Property).count() == 0
    assert landlord_total(db_session, landlord["id"]) == 0


def test_create_accepts_zero_deposit(client: TestClient):
    _, landlord = register(client, "owner@example.com", "landlord")
    prop = create_property(client, landlord["id"], deposit=0)
    assert prop["deposit"] == 0


def test_create_rejects_unknown_or_non_landlord(client: TestClient):
    _, student = register(client, "student@example.com", "student")
    expected = {"success": False, "message": "Invalid landlord - user not found or not a landlord"}

    r = client.post("/api/properties", json=property_payload(student["id"]))
    assert r.status_code == 400
    assert r.json() == expected

    r = client.post("/api/properties", json=property_payload("0" * 32))
    assert r.status_code == 400
    assert r.json() == expected


def test_list_filters_and_pagination(client: TestClient):
    _, landlord = register(client, "owner@example.com", "landlord")
    lid = landlord["id"]
    a = create_property(client, lid, title="A", city="Kolkata", rent=5000, genderPreference="MALE", amenities=["WiFi", "AC"])
    b = create_property(client, lid, title="B", city="Salt Lake, Kolkata", rent=8000, genderPreference="FEMALE", amenities=["WiFi"])
    c = create_property(client, lid, title="C", city="Durgapur", rent=3000, propertyType="FLAT", isFeatured=True)
    d = create_property(client, lid, title="D", city="Kolkata", rent=4000, status="INACTIVE")

    def ids(query: str) -> list[str]:
        r = client.get(f"/api/properties{query}")
        assert r.status_code == 200, r.text
        return [p["id"] for p in r.json()["properties"]]

    # Newest first, ACTIVE only by default
    assert ids("") == [c["id"], b["id"], a["id"]]
    assert ids("?city=kolKATA") == [b["id"], a["id"]]
    assert ids("?gender=MALE") == [c["id"], a["id"]]
    assert ids("?gender=ANY") == [c["id"], b["id"], a["id"]]
    assert ids("?type=FLAT") == [c["id"]]
    assert ids("?minPrice=4000&maxPrice=6000") == [a["id"]]
    assert ids("?amenities=WiFi,AC") == [a["id"]]
    assert ids("?amenities=WiFi") == [b["id"], a["id"]]
    assert ids("?featured=true") == [c["id"]]
    assert ids("?status=INACTIVE") == [d["id"]]
    # A landlord-scoped query sees every status
    assert ids(f"?landlordId={lid}") == [d["id"], c["id"], b["id"], a["id"]]

    r = client.get("/api/properties?page=2&limit=2")
    body = r.json()
    assert [p["id"] for p in body["properties"]] == [a["id"]]
    assert body["pagination"] == {"page": 2, "limit": 2, "total": 3, "totalPages": 2}


def test_get_by_id_or_slug_counts_views(client: TestClient):
    _, landlord = register(client, "owner@example.com", "landlord")
    prop = create_property(client, landlord["id"])

    r = client.get(f"/api/properties/{prop['id']}")
    assert r.status_code == 200, r.text
    assert r.json()["property"]["viewCount"] == 1

    r = client.get(f"/api/properties/{prop['slug']}")
    assert r.status_code == 200
    assert r.json()["property"]["id"] == prop["id"]
    assert r.json()["property"]["viewCount"] == 2

    r = client.get("/api/properties/no-such-listing")
    assert r.status_code == 404
    assert r.json()["message"] == "Property not found"


def test_update_merges_and_checks_ownership(client: TestClient, db_session):
    _, owner = register(client, "owner@example.com", "landlord")
    _, other = register(client, "other@example.com", "landlord")
    prop = create_property(client, owner["id"], amenities=["WiFi"], bhk=1)

    r = client.put("/api/properties", json={"landlordId": owner["id"], "rent": 7000})
    assert r.status_code == 400
    assert r.json()["message"] == "Property ID is required"

    r = client.put("/api/properties", json={"id": "0" * 32, "landlordId": owner["id"], "rent": 7000})
    assert r.status_code == 404

    r = client.put("/api/properties", json={"id": prop["id"], "landlordId": other["id"], "rent": 1})
    assert r.status_code == 403
    assert r.json() == {"success": False, "message": "Unauthorized"}
    db_session.expire_all()
    assert db_session.get(models.Property, prop["id"]).rent == 6500

    r = client.put(
        "/api/properties",
        json={
            "id": prop["id"],
            "landlordId": owner["id"],
            "rent": 7000,
            "amenities": ["AC", "WiFi"],
            "bhk": None,
            "title": None,
        },
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["message"] == "Property updated successfully"
    updated = body["property"]
    assert updated["rent"] == 7000
    assert updated["amenities"] == ["AC", "WiFi"]
    assert updated["bhk"] is None
    assert updated["title"] == prop["title"]
    assert updated["deposit"] == prop["deposit"]


def test_landlord_cannot_self_verify(client: TestClient, db_session):
    _, landlord = register(client, "owner@example.com", "landlord")
    prop = create_property(client, landlord["id"], isVerified=True)
    assert prop["isVerified"] is False

    r = client.put(
        "/api/properties",
        json={"id": prop["id"], "landlordId": landlord["id"], "isVerified": True, "title": "Verified PG"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["property"]["title"] == "Verified PG"
    assert r.json()["property"]["isVerified"] is False

    db_session.expire_all()
    assert db_session.get(models.Property, prop["id"]).is_verified is False


def test_delete_keeps_counter_and_wishlists_consistent(client: TestClient, db_session):
    _, owner = register(client, "owner@example.com", "landlord")
    _, other = register(client, "other@example.com", "landlord")
    first = create_property(client, owner["id"], title="First")
    second = create_property(client, owner["id"], title="Second", amenities=["WiFi"])
    assert landlord_total(db_session, owner["id"]) == 2

    client.post("/api/wishlist", json={"propertyId": second["id"]})
    client.post("/api/wishlist", json={"propertyId": first["id"]})

    r = client.delete(f"/api/properties?id={second['id']}")
    assert r.status_code == 400
    assert r.json()["message"] == "Property ID and landlord ID are required"

    r = client.delete(f"/api/properties?id={second['id']}&landlordId={other['id']}")
    assert r.status_code == 403
    assert db_session.get(models.Property, second["id"]) is not None

    r = client.delete(f"/api/properties?id={second['id']}&landlordId={owner['id']}")
    assert r.status_code == 200, r.text
    assert r.json() == {"success": True, "message": "Property deleted successfully"}

    db_session.expire_all()
    assert db_session.get(models.Property, second["id"]) is None
    assert db_session.query(models.PropertyAmenity).count() == 0
    assert landlord_total(db_session, owner["id"]) == 1
    assert client.get("/api/wishlist").json()["propertyIds"] == [first["id"]]

    r = client.delete(f"/api/properties?id={second['id']}&landlordId={owner['id']}")
    assert r.status_code == 404


def test_landlord_counter_never_goes_negative(client: TestClient, db_session):
    _, owner = register(client, "owner@example.com", "landlord")
    prop = create_property(client, owner["id"])

    profile = db_session.get(models.LandlordProfile, owner["id"])
    profile.total_properties = 0
    db_session.commit()

    r = client.delete(f"/api/properties?id={prop['id']}&landlordId={owner['id']}")
    assert r.status_code == 200
    assert landlord_total(db_session, owner["id"]) == 0


def test_landlord_dashboard_aggregates(client: TestClient):
    _, owner = register(client, "owner@example.com", "landlord")
    _, student = register(client, "student@example.com", "student")
    active = create_property(client, owner["id"], title="Active")
    create_property(client, owner["id"], title="Paused", status="INACTIVE")
    client.get(f"/api/properties/{active['id']}")
    r = client.post(
        "/api/inquiries",
        json={"propertyId": active["id"], "studentId": student["id"], "message": "Is a bed free?"},
    )
    assert r.status_code == 200, r.text

    r = client.get(f"/api/properties/landlord?userId={owner['id']}")
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["totalProperties"] == 2
    assert body["activeListings"] == 1
    assert body["totalViews"] == 1
    assert body["totalInquiries"] == 1
    assert body["pendingInquiries"] == 1

    r = client.get("/api/properties/landlord")
    assert r.status_code == 400


def test_slug_helpers():
    assert slugify("  Cosy Room @ Salt Lake!! ") == "cosy-room-salt-lake"
    assert slugify("!!!") == "property"
    slug = generate_slug("Cosy Room")
    prefix, suffix = slug.rsplit("-", 1)
    assert prefix == "cosy-room"
    assert suffix.isalnum() and suffix == suffix.lower()
