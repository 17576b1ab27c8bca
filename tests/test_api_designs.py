"""
Design API tests — generation, persistence, ownership and price recompute.
"""

import csv
import io

import pytest

from furnish import models
from furnish.engine.assembler import assemble
from furnish.engine.cost_model import compute_cost
from furnish.engine.rates import DEFAULT_RATES


def _create(client, headers, **body):
    payload = {"furniture_type": "table", "material": "wood"}
    payload.update(body)
    response = client.post("/api/designs/", json=payload, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


class TestCreateDesign:

    def test_create_manual_design(self, client, auth_headers):
        data = _create(client, auth_headers)
        expected = assemble("table", "wood")
        assert data["id"] > 0
        assert data["furniture_type"] == "table"
        assert data["material_color"] == "#8B4513"
        assert data["dimensions"] == {"length": 120.0, "width": 80.0, "height": 75.0}
        assert data["total_cost"] == expected.total_cost
        assert data["assembly_time"] == 78
        assert data["instructions"] == expected.instructions
        assert data["currency"] == "INR"
        assert data["ai_enhanced"] is False
        assert len(data["cost_breakdown"]) == len(data["parts"])

    def test_partial_dimensions_are_default_filled(self, client, auth_headers):
        data = _create(client, auth_headers, furniture_type="bookshelf",
                       dimensions={"height": 240})
        assert data["dimensions"] == {"length": 80.0, "width": 30.0, "height": 240.0}
        shelf = next(p for p in data["parts"] if p["name"] == "Shelf")
        assert shelf["quantity"] == 7

    def test_requires_auth(self, client):
        response = client.post("/api/designs/", json={"furniture_type": "table", "material": "wood"})
        assert response.status_code == 401

    def test_unknown_type_is_rejected(self, client, auth_headers):
        response = client.post("/api/designs/", json={
            "furniture_type": "spaceship", "material": "wood",
        }, headers=auth_headers)
        assert response.status_code == 422
        assert response.json()["error"] == "unknown_furniture_type"

    def test_unsupported_material_is_rejected(self, client, auth_headers):
        response = client.post("/api/designs/", json={
            "furniture_type": "chair", "material": "glass",
        }, headers=auth_headers)
        assert response.status_code == 422
        assert response.json()["error"] == "unsupported_material"

    def test_invalid_dimension_is_rejected(self, client, auth_headers, db):
        response = client.post("/api/designs/", json={
            "furniture_type": "desk", "material": "wood", "dimensions": {"width": -10},
        }, headers=auth_headers)
        assert response.status_code == 422
        assert response.json()["error"] == "invalid_dimension"
        assert db.query(models.DesignRecord).count() == 0

    def test_invalid_color_is_rejected(self, client, auth_headers):
        response = client.post("/api/designs/", json={
            "furniture_type": "chair", "material": "metal", "material_color": "walnut",
        }, headers=auth_headers)
        assert response.status_code == 422
        assert response.json()["error"] == "invalid_color"


class TestInterpret:

    def test_free_text_design(self, client, auth_headers):
        response = client.post("/api/designs/interpret", json={
            "query": "a red plastic chair",
        }, headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["furniture_type"] == "chair"
        assert data["material"] == "plastic"
        assert data["material_color"] == "#D32F2F"
        assert data["ai_enhanced"] is True
        assert data["user_query"] == "a red plastic chair"
        assert data["assembly_time"] == 40

    def test_unrecognized_text(self, client, auth_headers, db):
        response = client.post("/api/designs/interpret", json={
            "query": "a spaceship",
        }, headers=auth_headers)
        assert response.status_code == 422
        assert response.json()["error"] == "unrecognized_intent"
        assert db.query(models.DesignRecord).count() == 0


class TestPreviewAndCatalog:

    def test_preview_is_not_persisted(self, client, auth_headers, db):
        response = client.post("/api/designs/preview", json={
            "furniture_type": "desk", "material": "metal",
        }, headers=auth_headers)
        assert response.status_code == 200
        assert "id" not in response.json()
        assert db.query(models.DesignRecord).count() == 0

    def test_catalog(self, client):
        response = client.get("/api/designs/catalog")
        assert response.status_code == 200
        data = response.json()
        assert [t["id"] for t in data["furniture_types"]] == [
            "table", "chair", "bookshelf", "desk", "bed frame",
        ]
        assert {m["material"] for m in data["materials"]} == {"wood", "metal", "plastic"}
        assert data["currency"] == "INR"


class TestListAndGet:

    def test_list_only_own_designs(self, client, auth_headers, other_headers):
        _create(client, auth_headers)
        _create(client, auth_headers, furniture_type="chair")
        _create(client, other_headers, furniture_type="desk")

        response = client.get("/api/designs/", headers=auth_headers)
        assert response.status_code == 200
        types = [d["furniture_type"] for d in response.json()]
        assert sorted(types) == ["chair", "table"]

    def test_listing_ignores_tampered_stored_total(self, client, auth_headers, db):
        created = _create(client, auth_headers)
        record = db.get(models.DesignRecord, created["id"])
        record.total_cost = 1.0
        db.commit()

        listed = client.get("/api/designs/", headers=auth_headers).json()
        assert listed[0]["total_cost"] == created["total_cost"]
        single = client.get(f"/api/designs/{created['id']}", headers=auth_headers).json()
        assert single["total_cost"] == created["total_cost"]

    def test_listing_never_writes_back(self, client, auth_headers, db):
        created = _create(client, auth_headers)
        record = db.get(models.DesignRecord, created["id"])
        record.total_cost = 1.0
        db.commit()

        client.get("/api/designs/", headers=auth_headers)
        db.expire_all()
        assert db.get(models.DesignRecord, created["id"]).total_cost == 1.0

    def test_listing_absorbs_rate_change(self, client, auth_headers, admin_headers):
        created = _create(client, auth_headers)
        client.get("/api/materials/seed")
        response = client.patch("/api/materials/wood", json={"unit_cost": 0.102},
                                headers=admin_headers)
        assert response.status_code == 200

        listed = client.get("/api/designs/", headers=auth_headers).json()
        pricier = DEFAULT_RATES.with_overrides({"wood": {"unit_cost": 0.102}})
        parts = assemble("table", "wood").parts
        assert listed[0]["total_cost"] == compute_cost(parts, "wood", pricier)
        assert listed[0]["total_cost"] > created["total_cost"]

    def test_get_other_users_design(self, client, auth_headers, other_headers):
        created = _create(client, auth_headers)
        response = client.get(f"/api/designs/{created['id']}", headers=other_headers)
        assert response.status_code == 403

    def test_get_missing_design(self, client, auth_headers):
        response = client.get("/api/designs/9999", headers=auth_headers)
        assert response.status_code == 404


class TestDeleteDesign:

    def test_delete_own_design(self, client, auth_headers):
        created = _create(client, auth_headers)
        response = client.delete(f"/api/designs/{created['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"ok": True, "deleted": created["id"]}
        assert client.get(f"/api/designs/{created['id']}", headers=auth_headers).status_code == 404

    def test_cannot_delete_other_users_design(self, client, auth_headers, other_headers):
        created = _create(client, auth_headers)
        response = client.delete(f"/api/designs/{created['id']}", headers=other_headers)
        assert response.status_code == 403


@pytest.mark.parametrize("furniture_type", ["table", "chair", "bookshelf", "desk", "bed frame"])
def test_every_type_round_trips_through_storage(client, auth_headers, furniture_type):
    created = _create(client, auth_headers, furniture_type=furniture_type, material="metal")
    fetched = client.get(f"/api/designs/{created['id']}", headers=auth_headers).json()
    assert fetched["parts"] == created["parts"]
    assert fetched["total_cost"] == created["total_cost"]


class TestPartsExport:

    def test_parts_csv(self, client, auth_headers):
        created = _create(client, auth_headers)
        response = client.get(f"/api/designs/{created['id']}/parts.csv", headers=auth_headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "parts.csv" in response.headers["content-disposition"]

        rows = list(csv.reader(io.StringIO(response.text)))
        assert rows[0][0] == "Part Name"
        assert [r[0] for r in rows[1:-1]] == [p["name"] for p in created["parts"]]
        assert rows[-1][0] == "TOTAL"
        assert float(rows[-1][-1]) == created["total_cost"]

    def test_parts_csv_of_other_users_design(self, client, auth_headers, other_headers):
        created = _create(client, auth_headers)
        response = client.get(f"/api/designs/{created['id']}/parts.csv", headers=other_headers)
        assert response.status_code == 403
