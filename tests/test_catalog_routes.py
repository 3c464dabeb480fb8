"""
tests/test_catalog_routes.py -- Integration tests for admin catalog routes and public catalog reads.

Covers:
  - POST /admin/avatar, /admin/element, /admin/map require role == admin
  - PUT /admin/element/{id} replaces the image; unknown id is 400
  - map placements must reference existing elements and fit inside the map
  - GET /elements and GET /avatars are public and camelCase
"""

from __future__ import annotations


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _create_element(client, token, width=1, height=1, static=True) -> int:
    resp = client.post(
        "/api/v1/admin/element",
        json={"imageUrl": "http://img/desk.png", "width": width, "height": height, "static": static},
        headers=_auth(token),
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["id"]


# ---------------------------------------------------------------------------
# Role checks
# ---------------------------------------------------------------------------


class TestAdminRoleCheck:
    def test_no_token_is_unauthorized(self, api_client):
        client, _, _ = api_client
        resp = client.post("/api/v1/admin/avatar", json={"image": "http://img/a.png", "name": "a"})
        assert resp.status_code == 401

    def test_regular_user_is_forbidden(self, api_client, new_user):
        client, _, _ = api_client
        _, token = new_user()
        paths = [
            ("/api/v1/admin/avatar", {"image": "http://img/a.png", "name": "a"}),
            ("/api/v1/admin/element", {"imageUrl": "http://img/e.png", "width": 1, "height": 1, "static": False}),
            ("/api/v1/admin/map", {"thumbnail": "http://img/t.png", "dimensions": "10x10", "defaultElements": []}),
        ]
        for path, body in paths:
            resp = client.post(path, json=body, headers=_auth(token))
            assert resp.status_code == 403, f"{path} should be admin-only"
            assert resp.json()["error"]["code"] == "forbidden"


# ---------------------------------------------------------------------------
# Avatars
# ---------------------------------------------------------------------------


class TestAvatars:
    def test_create_avatar_returns_id(self, api_client):
        client, admin_token, _ = api_client
        resp = client.post(
            "/api/v1/admin/avatar",
            json={"image": "http://img/knight.png", "name": "knight"},
            headers=_auth(admin_token),
        )
        assert resp.status_code == 200
        assert isinstance(resp.json()["avatarId"], int)

    def test_avatars_listed_publicly(self, api_client):
        client, admin_token, _ = api_client
        avatar_id = client.post(
            "/api/v1/admin/avatar",
            json={"image": "http://img/wizard.png", "name": "wizard"},
            headers=_auth(admin_token),
        ).json()["avatarId"]

        resp = client.get("/api/v1/avatars")
        assert resp.status_code == 200
        rows = {a["id"]: a for a in resp.json()["avatars"]}
        assert rows[avatar_id] == {"id": avatar_id, "imageUrl": "http://img/wizard.png", "name": "wizard"}

    def test_missing_name_is_validation_error(self, api_client):
        client, admin_token, _ = api_client
        resp = client.post("/api/v1/admin/avatar", json={"image": "http://img/x.png"}, headers=_auth(admin_token))
        assert resp.status_code == 400


# ---------------------------------------------------------------------------
# Elements
# ---------------------------------------------------------------------------


class TestElements:
    def test_create_and_list(self, api_client):
        client, admin_token, _ = api_client
        element_id = _create_element(client, admin_token, width=2, height=3, static=True)

        resp = client.get("/api/v1/elements")
        assert resp.status_code == 200
        rows = {e["id"]: e for e in resp.json()["elements"]}
        assert rows[element_id] == {
            "id": element_id,
            "imageUrl": "http://img/desk.png",
            "width": 2,
            "height": 3,
            "static": True,
        }

    def test_non_positive_size_rejected(self, api_client):
        client, admin_token, _ = api_client
        resp = client.post(
            "/api/v1/admin/element",
            json={"imageUrl": "http://img/e.png", "width": 0, "height": 1, "static": False},
            headers=_auth(admin_token),
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "validation_error"

    def test_update_image(self, api_client):
        client, admin_token, _ = api_client
        element_id = _create_element(client, admin_token)

        resp = client.put(
            f"/api/v1/admin/element/{element_id}",
            json={"imageUrl": "http://img/desk-v2.png"},
            headers=_auth(admin_token),
        )
        assert resp.status_code == 200
        rows = {e["id"]: e for e in client.get("/api/v1/elements").json()["elements"]}
        assert rows[element_id]["imageUrl"] == "http://img/desk-v2.png"

    def test_update_unknown_element(self, api_client):
        client, admin_token, _ = api_client
        resp = client.put(
            "/api/v1/admin/element/999999",
            json={"imageUrl": "http://img/x.png"},
            headers=_auth(admin_token),
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "not_found"

    def test_update_requires_admin(self, api_client, new_user):
        client, admin_token, _ = api_client
        element_id = _create_element(client, admin_token)
        _, token = new_user()
        resp = client.put(
            f"/api/v1/admin/element/{element_id}",
            json={"imageUrl": "http://img/x.png"},
            headers=_auth(token),
        )
        assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Maps
# ---------------------------------------------------------------------------


class TestMaps:
    def test_create_map_with_placements(self, api_client):
        client, admin_token, _ = api_client
        element_id = _create_element(client, admin_token, width=2, height=2)
        resp = client.post(
            "/api/v1/admin/map",
            json={
                "name": "office",
                "thumbnail": "http://img/office.png",
                "dimensions": "100x200",
                "defaultElements": [
                    {"elementId": element_id, "x": 0, "y": 0},
                    {"elementId": element_id, "x": 98, "y": 198},
                ],
            },
            headers=_auth(admin_token),
        )
        assert resp.status_code == 200, resp.text
        map_id = resp.json()["id"]

        template = client.app.state.catalog.get_map(map_id)
        assert (template.width, template.height) == (100, 200)
        assert [(p.element_id, p.x, p.y) for p in template.placements] == [(element_id, 0, 0), (element_id, 98, 198)]

    def test_unknown_element_is_invalid_reference(self, api_client):
        client, admin_token, _ = api_client
        resp = client.post(
            "/api/v1/admin/map",
            json={"dimensions": "10x10", "defaultElements": [{"elementId": 999999, "x": 0, "y": 0}]},
            headers=_auth(admin_token),
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "invalid_reference"

    def test_placement_outside_map_rejected(self, api_client):
        client, admin_token, _ = api_client
        element_id = _create_element(client, admin_token, width=3, height=1)
        resp = client.post(
            "/api/v1/admin/map",
            json={"dimensions": "10x10", "defaultElements": [{"elementId": element_id, "x": 8, "y": 0}]},
            headers=_auth(admin_token),
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "validation_error"

    def test_bad_dimensions_rejected(self, api_client):
        client, admin_token, _ = api_client
        for dimensions in ("10by10", "0x10", "", "x"):
            resp = client.post(
                "/api/v1/admin/map",
                json={"dimensions": dimensions, "defaultElements": []},
                headers=_auth(admin_token),
            )
            assert resp.status_code == 400, f"{dimensions!r} should be rejected"
