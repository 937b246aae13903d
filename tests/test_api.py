"""
Tests for project API endpoints.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.db.models import Account, Company, Project
from app.exceptions import NotFound, register_exception_handlers

NEW_PROJECT = {
    "address1": "88 Oak Ave",
    "city": "Hamilton",
    "state": "ON",
    "postalCode": "L8P 1A1",
    "country": "Canada",
    "projectName": "Oak Flip",
    "strategy": "Flip",
    "stage": "Lead",
}


@pytest.fixture
def photo_project(db_session, test_project):
    """Project with one photo log entry."""
    test_project.photo_log = [
        {"id": "p1", "url": "/uploads/p1", "date": "2025-01-02", "description": ""}
    ]
    db_session.commit()
    return test_project


# ============================================================================
# PROJECT API TESTS
# ============================================================================


class TestProjectAPI:
    """Test project endpoints."""

    def test_list_projects(self, client, test_project):
        response = client.get("/api/projects/")
        assert response.status_code == 200
        names = [p["projectName"] for p in response.json()]
        assert "Maple Duplex" in names

    def test_create_project(self, client, geocoder):
        response = client.post("/api/projects/", json=NEW_PROJECT)
        assert response.status_code == 201
        data = response.json()
        assert data["projectName"] == "Oak Flip"
        assert data["location"] == {"lat": 43.6532, "lng": -79.3832}
        assert data["archived"] is False
        assert "id" in data
        assert geocoder.calls == ["88 Oak Ave, Hamilton, ON, L8P 1A1, Canada"]

    def test_create_project_ungeocodable_address(self, client, geocoder, db_session):
        geocoder.unresolvable.add("Nowhere")
        response = client.post("/api/projects/", json={**NEW_PROJECT, "city": "Nowhere"})
        assert response.status_code == 400
        assert "geocode" in response.json()["detail"]
        assert db_session.query(Project).count() == 0

    def test_create_project_missing_required_field(self, client):
        payload = {k: v for k, v in NEW_PROJECT.items() if k != "projectName"}
        response = client.post("/api/projects/", json=payload)
        assert response.status_code == 400

    def test_get_project(self, client, test_project):
        response = client.get(f"/api/projects/{test_project.id}")
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == test_project.id
        assert data["postalCode"] == "M5V 2T6"
        assert data["flipAnalyzer"] == {}

    def test_get_nonexistent_project(self, client):
        response = client.get("/api/projects/nonexistent-id")
        assert response.status_code == 404

    def test_update_without_address_change_skips_geocoding(self, client, geocoder, test_project):
        response = client.put(
            f"/api/projects/{test_project.id}",
            json={"stage": "Rehab", "city": "Toronto"},
        )
        assert response.status_code == 200
        assert response.json()["stage"] == "Rehab"
        assert geocoder.calls == []

    def test_update_address_regeocodes(self, client, geocoder, test_project):
        geocoder.location = {"lat": 45.4215, "lng": -75.6972}
        response = client.put(f"/api/projects/{test_project.id}", json={"city": "Ottawa"})
        assert response.status_code == 200
        data = response.json()
        assert data["city"] == "Ottawa"
        assert data["location"] == {"lat": 45.4215, "lng": -75.6972}
        assert geocoder.calls == ["12 Maple St, Ottawa, ON, M5V 2T6, Canada"]

    def test_update_bad_address_blocks_write(self, client, geocoder, test_project):
        geocoder.unresolvable.add("Atlantis")
        response = client.put(f"/api/projects/{test_project.id}", json={"city": "Atlantis"})
        assert response.status_code == 400
        assert client.get(f"/api/projects/{test_project.id}").json()["city"] == "Toronto"

    def test_update_bumps_version(self, client, test_project):
        before = client.get(f"/api/projects/{test_project.id}").json()["version"]
        after = client.put(
            f"/api/projects/{test_project.id}", json={"archived": True}
        ).json()
        assert after["archived"] is True
        assert after["version"] == before + 1

    def test_delete_project(self, client, db_session, test_project):
        db_session.add(Account(project_id=test_project.id, name="Materials"))
        db_session.add(Company(project_id=test_project.id, name="Acme Roofing"))
        db_session.commit()

        response = client.delete(f"/api/projects/{test_project.id}")
        assert response.status_code == 204
        assert client.get(f"/api/projects/{test_project.id}").status_code == 404
        assert db_session.query(Account).count() == 0
        assert db_session.query(Company).count() == 0

    def test_delete_nonexistent_project(self, client):
        assert client.delete("/api/projects/nope").status_code == 404

    def test_duplicate_project(self, client, test_project):
        client.put(f"/api/projects/{test_project.id}", json={"archived": True})
        client.put(f"/api/projects/{test_project.id}/budget", json={"roof": 12000})

        response = client.post(f"/api/projects/{test_project.id}/duplicate")
        assert response.status_code == 201
        data = response.json()
        assert data["id"] != test_project.id
        assert data["projectName"] == "Copy of Maple Duplex"
        assert data["archived"] is False
        assert data["budget"] == {"roof": 12000}
        assert data["location"] == {"lat": 43.6532, "lng": -79.3832}


# ============================================================================
# PROGRESS UPDATE TESTS
# ============================================================================


class TestProjectUpdatesAPI:
    """Test progress update endpoints."""

    def test_create_and_list_newest_first(self, client, test_project):
        url = f"/api/projects/{test_project.id}/updates"
        client.post(url, json={"title": "Demo", "description": "Kitchen gutted", "author": "Sam"})
        client.post(url, json={"title": "Framing", "description": "Walls up"})

        updates = client.get(url).json()
        assert [u["title"] for u in updates] == ["Framing", "Demo"]
        assert updates[1]["author"] == "Sam"
        assert updates[0]["author"] == "Unknown"

    def test_title_and_description_required(self, client, test_project):
        response = client.post(
            f"/api/projects/{test_project.id}/updates", json={"title": "No body"}
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Title and description are required."

    def test_display_at_parsed_or_defaulted(self, client, test_project):
        url = f"/api/projects/{test_project.id}/updates"
        dated = client.post(
            url,
            json={"title": "A", "description": "B", "displayAt": "2025-02-01T09:30:00+00:00"},
        ).json()
        assert dated["displayAt"].startswith("2025-02-01T09:30:00")

        undated = client.post(
            url, json={"title": "A", "description": "B", "displayAt": "not a date"}
        ).json()
        assert undated["displayAt"]

    def test_edit_update(self, client, test_project):
        url = f"/api/projects/{test_project.id}/updates"
        created = client.post(url, json={"title": "Demo", "description": "Started"}).json()

        response = client.put(f"{url}/{created['id']}", json={"description": "Finished"})
        assert response.status_code == 200
        assert response.json()["description"] == "Finished"
        assert response.json()["title"] == "Demo"

    def test_edit_missing_update(self, client, test_project):
        response = client.put(
            f"/api/projects/{test_project.id}/updates/missing", json={"title": "X"}
        )
        assert response.status_code == 404
        assert response.json()["detail"] == "Update not found"

    def test_delete_update(self, client, test_project):
        url = f"/api/projects/{test_project.id}/updates"
        created = client.post(url, json={"title": "Demo", "description": "Started"}).json()

        response = client.delete(f"{url}/{created['id']}")
        assert response.json() == {"success": True}
        assert client.get(url).json() == []


# ============================================================================
# EMBEDDED DOCUMENT TESTS
# ============================================================================


class TestEmbeddedDocumentsAPI:
    """Test property specs, owner data, budget and photo log endpoints."""

    def test_property_specs_round_trip(self, client, test_project):
        url = f"/api/projects/{test_project.id}/property-specs"
        assert client.get(url).json() == {}

        client.put(url, json={"propertyType": "Duplex", "beds": 4, "squareFeet": 1850})
        response = client.put(url, json={"beds": 5})
        # PUT replaces the whole document
        assert response.json() == {"beds": 5}
        assert client.get(url).json() == {"beds": 5}

    def test_owner_data(self, client, test_project):
        url = f"/api/projects/{test_project.id}/owner-data"
        response = client.put(url, json={"leadTemperature": "Hot", "leadSource": "Mailer"})
        assert response.status_code == 200
        assert client.get(url).json()["leadTemperature"] == "Hot"

    def test_budget_is_free_form(self, client, test_project):
        url = f"/api/projects/{test_project.id}/budget"
        budget = {"rehab": {"kitchen": 18000, "baths": [6000, 4500]}, "contingency": 0.1}
        client.put(url, json=budget)
        assert client.get(url).json() == budget

    def test_budget_rejects_non_finite_numbers(self, client, test_project):
        url = f"/api/projects/{test_project.id}/budget"
        response = client.put(
            url,
            content='{"rehab": {"kitchen": NaN}}',
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert client.get(url).json() == {}

    def test_embedded_document_missing_project(self, client):
        assert client.get("/api/projects/nope/budget").status_code == 404
        assert client.put("/api/projects/nope/owner-data", json={}).status_code == 404

    def test_photo_log_edit(self, client, photo_project):
        url = f"/api/projects/{photo_project.id}/photo-log"
        response = client.put(f"{url}/p1", json={"description": "Front elevation"})
        assert response.status_code == 200
        assert response.json()["description"] == "Front elevation"
        assert response.json()["date"] == "2025-01-02"

    def test_photo_log_delete(self, client, photo_project):
        url = f"/api/projects/{photo_project.id}/photo-log"
        assert client.delete(f"{url}/missing").status_code == 404
        assert client.delete(f"{url}/p1").json() == {"success": True}
        assert client.get(url).json() == []


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestCalculateAPI:
    """Test stateless analyzer calculations."""

    def test_flip(self, client):
        response = client.post(
            "/api/calculate/flip",
            json={
                "arv": 300000,
                "purchasePrice": 180000,
                "repairCostType": "perSF",
                "repairCostPerSF": 25,
                "repairCostSF": 1600,
                "buyingCosts": 5000,
                "holdingCosts": 6000,
                "sellingCosts": 18000,
                "desiredProfit": 30000,
            },
        )
        assert response.status_code == 200
        results = {row["key"]: row["value"] for row in response.json()["results"]}
        assert results["repairCost"] == 40000
        assert results["maxOfferPrice"] == 201000

    def test_flip_requires_arv(self, client):
        response = client.post("/api/calculate/flip", json={"purchasePrice": 1})
        assert response.status_code == 400

    def test_brrrr(self, client):
        response = client.post(
            "/api/calculate/brrrr",
            json={
                "phase1": [{"value": 100000}, {"value": 20000}, None, None, {"value": 5000}],
                "phase2": {"items": [None] * 6 + [{"perYear": 1200}], "refiAmount": 150000, "years": 2},
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["cashNeededOverTime"][2] == {"x": "After Refi", "y": -150000}
        assert data["longTermReturns"][1]["totalReturn"] == 111490

    def test_brrrr_positional_phase2(self, client):
        response = client.post(
            "/api/calculate/brrrr",
            json={
                "phase1": [{"value": 100000}, {"value": 20000}, None, None, {"value": 5000}],
                "phase2": {"refiAmount": 150000, "years": 2, "6": {"perYear": 1200}},
            },
        )
        assert response.status_code == 200
        returns = response.json()["longTermReturns"]
        assert [r["netCashFlow"] for r in returns] == [1200, 2400]

    def test_brrrr_rejects_long_horizon(self, client):
        response = client.post(
            "/api/calculate/brrrr", json={"phase2": {"items": [], "years": 30000}}
        )
        assert response.status_code == 400

    def test_flip_rejects_non_finite_numbers(self, client):
        response = client.post(
            "/api/calculate/flip",
            content='{"arv": Infinity, "purchasePrice": 180000}',
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400


class TestErrorHandling:
    """Test the error taxonomy on a bare app."""

    @pytest.fixture
    def bare_client(self):
        app = FastAPI()
        register_exception_handlers(app)

        @app.get("/missing")
        async def missing():
            raise NotFound("Widget not found")

        @app.get("/broken")
        async def broken():
            raise RuntimeError("unexpected")

        return TestClient(app, raise_server_exceptions=False)

    def test_app_error_shape(self, bare_client):
        response = bare_client.get("/missing")
        assert response.status_code == 404
        assert response.json() == {"detail": "Widget not found"}

    def test_unhandled_error_is_json_500(self, bare_client):
        response = bare_client.get("/broken")
        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}
