"""
HTTP tests for the place and user endpoints.

Runs the FastAPI app in-process against SQLite, a fake geocoder and a
temporary upload directory.
"""

import logging
from pathlib import Path

import pytest
from httpx import AsyncClient

from conftest import PNG_BYTES, assert_links_consistent, load_places, load_user, stored_files

ADDRESS = "1600 Amphitheatre Parkway"

PLACE_FIELDS = {
    "title": "Googleplex",
    "description": "Google headquarters campus",
    "address": ADDRESS,
}


async def _post_place(client: AsyncClient, headers: dict, *, fields=None, image=None):
    files = {"image": image or ("holiday.png", PNG_BYTES, "image/png")}
    return await client.post(
        "/api/places",
        data=fields or PLACE_FIELDS,
        files=files,
        headers=headers,
    )


@pytest.mark.asyncio
async def test_end_to_end_create_forbid_delete(client, db, blob_store, headers_one, headers_two, user_one, user_two):
    """U1 creates, cannot delete U2's place, deletes own place."""
    r = await _post_place(client, headers_one)
    assert r.status_code == 201, r.text
    place = r.json()["place"]
    assert place["creator"] == str(user_one.id)
    assert place["location"] == {"lat": 37.4224764, "lng": -122.0842499}
    assert Path(place["image"]).name != "holiday.png"
    assert Path(place["image"]).suffix == ".png"
    assert (await load_user(db, user_one.id)).place_ids == [place["id"]]

    r = await _post_place(client, headers_two, fields={**PLACE_FIELDS, "title": "Other"})
    assert r.status_code == 201, r.text
    other_place = r.json()["place"]

    r = await client.delete(f"/api/places/{other_place['id']}", headers=headers_one)
    assert r.status_code == 403
    assert r.json()["code"] == "forbidden"

    r = await client.delete(f"/api/places/{place['id']}", headers=headers_one)
    assert r.status_code == 200
    assert r.json()["message"] == "Deleted place."

    r = await client.get(f"/api/places/{place['id']}")
    assert r.status_code == 404
    assert (await load_user(db, user_one.id)).place_ids == []
    assert [p.name for p in stored_files(blob_store)] == [Path(other_place["image"]).name]
    await assert_links_consistent(db)


@pytest.mark.asyncio
async def test_get_place_and_list_by_user(client, headers_one, user_one):
    created = (await _post_place(client, headers_one)).json()["place"]

    r = await client.get(f"/api/places/{created['id']}")
    assert r.status_code == 200
    assert r.json() == {"place": created}

    r = await client.get(f"/api/places/user/{user_one.id}")
    assert r.status_code == 200
    assert [p["id"] for p in r.json()["places"]] == [created["id"]]


@pytest.mark.asyncio
async def test_list_by_user_without_places_is_404(client, user_two):
    r = await client.get(f"/api/places/user/{user_two.id}")
    assert r.status_code == 404
    assert r.json()["code"] == "not_found"


@pytest.mark.asyncio
async def test_create_requires_credential(client, db, blob_store, user_one):
    r = await _post_place(client, {})
    assert r.status_code == 401
    assert r.json()["detail"] == "Authentication failed"
    assert r.headers["WWW-Authenticate"] == "Bearer"
    assert stored_files(blob_store) == []
    assert await load_places(db) == []


@pytest.mark.asyncio
async def test_bad_token_looks_like_missing_token(client, user_one):
    missing = await _post_place(client, {})
    bad = await _post_place(client, {"Authorization": "Bearer not.a.token"})
    wrong_scheme = await _post_place(client, {"Authorization": "Basic abc"})

    assert missing.status_code == bad.status_code == wrong_scheme.status_code == 401
    assert missing.json()["detail"] == bad.json()["detail"] == wrong_scheme.json()["detail"]


@pytest.mark.asyncio
async def test_gif_upload_rejected(client, db, blob_store, headers_one):
    r = await _post_place(client, headers_one, image=("cat.gif", b"GIF89a" + b"\x00" * 16, "image/gif"))
    assert r.status_code == 422
    assert r.json()["code"] == "admission_error"
    assert stored_files(blob_store) == []
    assert await load_places(db) == []


@pytest.mark.asyncio
async def test_missing_image_rejected(client, db, headers_one):
    r = await client.post("/api/places", data=PLACE_FIELDS, headers=headers_one)
    assert r.status_code == 422
    assert r.json()["code"] == "validation_error"
    assert await load_places(db) == []


@pytest.mark.asyncio
async def test_invalid_fields_remove_stored_image(client, db, blob_store, headers_one, user_one):
    r = await _post_place(client, headers_one, fields={**PLACE_FIELDS, "description": "abc"})
    assert r.status_code == 422
    body = r.json()
    assert body["code"] == "validation_error"
    assert "description" in body["detail"]
    assert stored_files(blob_store) == []
    assert (await load_user(db, user_one.id)).place_ids == []


@pytest.mark.asyncio
async def test_geocode_failure_removes_stored_image(client, db, blob_store, geocoder, headers_one):
    geocoder.unresolvable.add("Atlantis")
    r = await _post_place(client, headers_one, fields={**PLACE_FIELDS, "address": "Atlantis"})
    assert r.status_code == 422
    assert r.json()["code"] == "geocode_error"
    assert stored_files(blob_store) == []
    assert await load_places(db) == []


@pytest.mark.asyncio
async def test_options_passes_without_credential(client):
    r = await client.options("/api/places")
    assert r.status_code == 204
    assert "POST" in r.headers["Allow"]

    r = await client.options("/api/places/00000000-0000-0000-0000-000000000000")
    assert r.status_code == 204


@pytest.mark.asyncio
async def test_cors_preflight(client):
    r = await client.options(
        "/api/places",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Authorization",
        },
    )
    assert r.status_code == 200
    assert r.headers["access-control-allow-origin"] == "*"


@pytest.mark.asyncio
async def test_update_by_owner(client, headers_one):
    created = (await _post_place(client, headers_one)).json()["place"]

    r = await client.patch(
        f"/api/places/{created['id']}",
        json={"title": "Renamed", "description": "A brand new description"},
        headers=headers_one,
    )

    assert r.status_code == 200
    place = r.json()["place"]
    assert place["title"] == "Renamed"
    assert place["description"] == "A brand new description"
    assert place["address"] == created["address"]
    assert place["location"] == created["location"]


@pytest.mark.asyncio
async def test_update_by_other_user_forbidden(client, headers_one, headers_two):
    created = (await _post_place(client, headers_one)).json()["place"]

    r = await client.patch(
        f"/api/places/{created['id']}",
        json={"title": "Mine now", "description": "Definitely mine"},
        headers=headers_two,
    )

    assert r.status_code == 403
    r = await client.get(f"/api/places/{created['id']}")
    assert r.json()["place"]["title"] == "Googleplex"


@pytest.mark.asyncio
async def test_update_validation(client, headers_one):
    created = (await _post_place(client, headers_one)).json()["place"]

    r = await client.patch(
        f"/api/places/{created['id']}",
        json={"title": "", "description": "Long enough"},
        headers=headers_one,
    )

    assert r.status_code == 422
    assert r.json()["code"] == "validation_error"


@pytest.mark.asyncio
async def test_malformed_body_lists_field_errors_without_warnings(client, headers_one, recwarn):
    created = (await _post_place(client, headers_one)).json()["place"]

    r = await client.patch(
        f"/api/places/{created['id']}",
        json={"title": "Only a title"},
        headers=headers_one,
    )

    assert r.status_code == 422
    body = r.json()
    assert body["code"] == "validation_error"
    assert [e["field"] for e in body["errors"]] == ["body.description"]
    assert not [w for w in recwarn if "HTTP_422" in str(w.message)]


@pytest.mark.asyncio
async def test_delete_missing_place(client, headers_one):
    r = await client.delete("/api/places/00000000-0000-0000-0000-000000000000", headers=headers_one)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_unknown_route(client):
    r = await client.get("/api/nothing-here")
    assert r.status_code == 404
    assert r.json()["detail"] == "Could not find this route"


@pytest.mark.asyncio
async def test_request_id_echoed(client):
    r = await client.get("/health", headers={"X-Request-ID": "req-abc"})
    assert r.status_code == 200
    assert r.headers["X-Request-ID"] == "req-abc"


@pytest.mark.asyncio
async def test_users_listing_hides_credential(client, headers_one, user_one, user_two):
    created = (await _post_place(client, headers_one)).json()["place"]

    r = await client.get("/api/users")
    assert r.status_code == 200
    users = {u["email"]: u for u in r.json()["users"]}
    assert set(users) == {"one@example.com", "two@example.com"}
    assert users["one@example.com"]["places"] == [created["id"]]
    assert all("password" not in u for u in users.values())

    r = await client.get(f"/api/users/{user_two.id}")
    assert r.status_code == 200
    assert r.json()["user"]["name"] == "User Two"


ACCESS_LOGGER = "src.api.middleware.request_id"


@pytest.mark.asyncio
async def test_access_log_names_authenticated_user(client, headers_one, user_one, caplog):
    with caplog.at_level(logging.INFO, logger=ACCESS_LOGGER):
        r = await _post_place(client, headers_one)
        await client.get(f"/api/places/{r.json()['place']['id']}")

    access = [rec for rec in caplog.records if rec.name == ACCESS_LOGGER]
    assert [(rec.method, rec.status_code) for rec in access] == [("POST", 201), ("GET", 200)]
    assert access[0].user_id == str(user_one.id)
    assert not hasattr(access[1], "user_id")


@pytest.mark.asyncio
async def test_health_checks_log_at_debug(client, caplog):
    with caplog.at_level(logging.DEBUG, logger=ACCESS_LOGGER):
        await client.get("/health")

    access = [rec for rec in caplog.records if rec.name == ACCESS_LOGGER]
    assert [rec.levelno for rec in access] == [logging.DEBUG]
