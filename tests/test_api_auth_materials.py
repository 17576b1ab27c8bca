"""
Auth and rate-table API tests.
"""

from furnish import models


class TestAuth:

    def test_register_and_me(self, client):
        response = client.post("/api/auth/register", json={
            "email": "  New.Maker@Furnish.test ",
            "password": "strongpassword123",
            "display_name": "New Maker",
        })
        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["email"] == "new.maker@furnish.test"
        assert data["user"]["is_admin"] is False
        assert "password_hash" not in data["user"]

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
        assert me.status_code == 200
        assert me.json()["display_name"] == "New Maker"

    def test_duplicate_registration(self, client, auth_headers):
        response = client.post("/api/auth/register", json={
            "email": "maker@furnish.test", "password": "anotherpassword",
        })
        assert response.status_code == 409

    def test_configured_admin(self, client, admin_headers):
        assert client.get("/api/auth/me", headers=admin_headers).json()["is_admin"] is True

    def test_login(self, client, auth_headers):
        response = client.post("/api/auth/login", json={
            "email": "maker@furnish.test", "password": "strongpassword123",
        })
        assert response.status_code == 200
        assert response.json()["access_token"]

    def test_login_wrong_password(self, client, auth_headers):
        response = client.post("/api/auth/login", json={
            "email": "maker@furnish.test", "password": "wrong",
        })
        assert response.status_code == 401

    def test_refresh(self, client):
        tokens = client.post("/api/auth/register", json={
            "email": "refresh@furnish.test", "password": "strongpassword123",
        }).json()
        response = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert response.status_code == 200
        assert response.json()["user_id"] == tokens["user_id"]

    def test_access_token_cannot_refresh(self, client):
        tokens = client.post("/api/auth/register", json={
            "email": "refresh@furnish.test", "password": "strongpassword123",
        }).json()
        response = client.post("/api/auth/refresh", json={"refresh_token": tokens["access_token"]})
        assert response.status_code == 401

    def test_guest_registers_and_keeps_designs(self, client):
        guest = client.post("/api/auth/guest").json()
        headers = {"Authorization": f"Bearer {guest['access_token']}"}
        assert guest["user"]["is_provisional"] is True

        created = client.post("/api/designs/", json={
            "furniture_type": "chair", "material": "wood",
        }, headers=headers)
        assert created.status_code == 200

        claimed = client.post("/api/auth/register", json={
            "email": "former.guest@furnish.test", "password": "strongpassword123",
        }, headers=headers).json()
        assert claimed["claimed_provisional"] is True
        assert claimed["user_id"] == guest["user_id"]
        assert claimed["user"]["email"] == "former.guest@furnish.test"
        assert claimed["user"]["is_provisional"] is False
        assert claimed["user"]["design_count"] == 1

        login = client.post("/api/auth/login", json={
            "email": "former.guest@furnish.test", "password": "strongpassword123",
        })
        assert login.json()["user_id"] == guest["user_id"]

    def test_register_without_guest_token_creates_new_account(self, client):
        client.post("/api/auth/guest")
        fresh = client.post("/api/auth/register", json={
            "email": "fresh@furnish.test", "password": "strongpassword123",
        }).json()
        assert fresh["claimed_provisional"] is False
        assert fresh["user"]["design_count"] == 0

    def test_registered_user_token_does_not_merge_accounts(self, client, auth_headers):
        second = client.post("/api/auth/register", json={
            "email": "second@furnish.test", "password": "strongpassword123",
        }, headers=auth_headers).json()
        assert second["claimed_provisional"] is False
        me = client.get("/api/auth/me", headers=auth_headers).json()
        assert me["email"] == "maker@furnish.test"

    def test_bad_token(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    def test_logout_revokes_refresh_tokens(self, client):
        tokens = client.post("/api/auth/register", json={
            "email": "leaving@furnish.test", "password": "strongpassword123",
        }).json()
        headers = {"Authorization": f"Bearer {tokens['access_token']}"}

        response = client.post("/api/auth/logout", headers=headers)
        assert response.status_code == 200
        assert response.json() == {"ok": True, "revoked": 1}

        response = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert response.status_code == 401

    def test_me_counts_designs(self, client, auth_headers):
        client.post("/api/designs/", json={"furniture_type": "desk", "material": "wood"},
                    headers=auth_headers)
        me = client.get("/api/auth/me", headers=auth_headers).json()
        assert me["design_count"] == 1
        assert me["order_count"] == 0


class TestMaterials:

    def test_seed_is_idempotent(self, client):
        assert client.get("/api/materials/seed").json() == {"ok": True, "seeded": 3}
        assert client.get("/api/materials/seed").json() == {"ok": True, "seeded": 0}

    def test_list_rates(self, client):
        client.get("/api/materials/seed")
        rows = client.get("/api/materials/").json()
        by_material = {r["material"]: r for r in rows}
        assert set(by_material) == {"wood", "metal", "plastic"}
        assert by_material["wood"]["unit_cost"] == 0.051
        assert by_material["metal"]["assembly_surcharge"] == 250.0

    def test_admin_updates_rate(self, client, admin_headers, db):
        client.get("/api/materials/seed")
        response = client.patch("/api/materials/Metal", json={"unit_cost": 0.5},
                                headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["unit_cost"] == 0.5
        row = db.query(models.MaterialRateRecord).filter_by(material="metal").one()
        assert row.unit_cost == 0.5

    def test_non_admin_cannot_update_rate(self, client, auth_headers):
        client.get("/api/materials/seed")
        response = client.patch("/api/materials/wood", json={"unit_cost": 0.0},
                                headers=auth_headers)
        assert response.status_code == 403

    def test_negative_rate_is_rejected(self, client, admin_headers):
        client.get("/api/materials/seed")
        response = client.patch("/api/materials/wood", json={"unit_cost": -1},
                                headers=admin_headers)
        assert response.status_code == 400

    def test_nan_rate_is_rejected(self, client, admin_headers):
        client.get("/api/materials/seed")
        response = client.patch(
            "/api/materials/wood",
            content='{"unit_cost": NaN}',
            headers={**admin_headers, "Content-Type": "application/json"},
        )
        assert response.status_code == 400
        rows = {r["material"]: r for r in client.get("/api/materials/").json()}
        assert rows["wood"]["unit_cost"] == 0.051

    def test_unseeded_material(self, client, admin_headers):
        response = client.patch("/api/materials/wood", json={"unit_cost": 0.06},
                                headers=admin_headers)
        assert response.status_code == 404


def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "app": "furnish"}
