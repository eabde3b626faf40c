"""
Aircraft components API

Tests for:
- GET /api/aircraft-components - list sorted by due margin, single by id
- POST /api/aircraft-components - interval validation
- PATCH /api/aircraft-components - partial updates and date normalisation
- POST/DELETE /api/aircraft-components/{id}/extension - base values untouched
- DELETE /api/aircraft-components - soft delete
- 403 for non-staff users
"""

from datetime import datetime, timezone

import pytest

URL = "/api/aircraft-components"


def component_doc(_id, **overrides):
    doc = {
        "_id": _id,
        "aircraft_id": "ac-1",
        "name": f"Item {_id}",
        "component_type": "inspection",
        "interval_type": "HOURS",
        "interval_hours": 100.0,
        "interval_days": None,
        "current_due_hours": 1100.0,
        "current_due_date": None,
        "extension_limit_hours": None,
        "status": "active",
        "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
        "updated_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def components(fake_db, aircraft):
    fake_db.aircraft_components.seed(
        component_doc("healthy", current_due_hours=1100.0),
        component_doc("overdue", current_due_hours=1000.0),
        component_doc("extended", current_due_hours=1000.0, extension_limit_hours=10),
        component_doc("soon", current_due_hours=1012.0),
        component_doc("voided", voided_at=datetime(2024, 6, 1, tzinfo=timezone.utc)),
        component_doc("other-aircraft", aircraft_id="ac-2"),
    )


# ============================================================
# READ
# ============================================================

class TestListComponents:

    def test_sorted_by_margin_with_status(self, client, components):
        response = client.get(URL, params={"aircraft_id": "ac-1"})
        assert response.status_code == 200
        data = response.json()
        assert [c["id"] for c in data] == ["overdue", "extended", "soon", "healthy"]
        statuses = {c["id"]: c["due"]["status"] for c in data}
        assert statuses == {
            "overdue": "Overdue",
            "extended": "Within Extension",
            "soon": "Due Soon",
            "healthy": "Healthy",
        }
        extended = next(c for c in data if c["id"] == "extended")
        assert extended["due"]["extended_due_hours"] == 1010
        assert extended["due"]["due_in"] == "5.0h"
        assert extended["current_due_hours"] == 1000

    def test_single_component(self, client, components):
        response = client.get(URL, params={"id": "soon"})
        assert response.status_code == 200
        assert response.json()["due"]["due_in"] == "7.0h"

    def test_voided_component_not_found(self, client, components):
        assert client.get(URL, params={"id": "voided"}).status_code == 404

    def test_aircraft_id_required(self, client):
        assert client.get(URL).status_code == 400

    def test_unknown_aircraft_hours(self, client, fake_db):
        fake_db.aircrafts.seed({"_id": "ac-3", "registration": "ZK-NEW", "total_hours": None})
        fake_db.aircraft_components.seed(component_doc("c", aircraft_id="ac-3"))
        data = client.get(URL, params={"aircraft_id": "ac-3"}).json()
        assert data[0]["due"]["due_in"] == "N/A"
        assert data[0]["due"]["margin"] is None

    def test_members_are_forbidden(self, client, components, as_member):
        assert client.get(URL, params={"aircraft_id": "ac-1"}).status_code == 403


# ============================================================
# CREATE / UPDATE / DELETE
# ============================================================

class TestWriteComponents:

    def test_create(self, client, fake_db, aircraft):
        response = client.post(URL, json={
            "aircraft_id": "ac-1",
            "name": "Annual inspection",
            "interval_type": "BOTH",
            "interval_hours": 100,
            "interval_days": 365,
            "current_due_hours": 1100,
            "current_due_date": "2025-01-01T23:30:00Z",
        })
        assert response.status_code == 201
        data = response.json()
        assert data["current_due_date"] == "2025-01-01"
        assert data["due"]["status"] == "Healthy"
        stored = fake_db.aircraft_components.get(data["id"])
        assert stored["voided_at"] is None

    def test_create_requires_interval_hours(self, client, aircraft):
        response = client.post(URL, json={"aircraft_id": "ac-1", "name": "Oil", "interval_type": "HOURS"})
        assert response.status_code == 422

    def test_create_requires_interval_days_for_calendar(self, client, aircraft):
        response = client.post(URL, json={
            "aircraft_id": "ac-1", "name": "ELT battery", "interval_type": "CALENDAR", "interval_hours": 50,
        })
        assert response.status_code == 422

    def test_create_unknown_aircraft(self, client):
        response = client.post(URL, json={
            "aircraft_id": "nope", "name": "Oil", "interval_type": "HOURS", "interval_hours": 50,
        })
        assert response.status_code == 404

    def test_create_rejects_bad_extension(self, client, aircraft):
        response = client.post(URL, json={
            "aircraft_id": "ac-1", "name": "Oil", "interval_type": "HOURS", "interval_hours": 50,
            "extension_limit_hours": 150,
        })
        assert response.status_code == 422

    def test_patch_partial(self, client, fake_db, components):
        response = client.patch(URL, json={"id": "healthy", "notes": "checked", "current_due_date": ""})
        assert response.status_code == 200
        stored = fake_db.aircraft_components.get("healthy")
        assert stored["notes"] == "checked"
        assert stored["current_due_date"] is None
        assert stored["current_due_hours"] == 1100.0

    def test_patch_interval_type_needs_days(self, client, components):
        response = client.patch(URL, json={"id": "healthy", "interval_type": "CALENDAR"})
        assert response.status_code == 400

    @pytest.mark.parametrize("field", ["name", "interval_type", "component_type", "status"])
    def test_patch_cannot_clear_required_field(self, client, fake_db, components, field):
        response = client.patch(URL, json={"id": "healthy", field: None})
        assert response.status_code == 400
        assert fake_db.aircraft_components.get("healthy").get(field) is not None

    def test_patch_bad_date(self, client, components):
        response = client.patch(URL, json={"id": "healthy", "current_due_date": "31/12/2025"})
        assert response.status_code == 400

    def test_delete_is_soft(self, client, fake_db, components):
        response = client.request("DELETE", URL, json={"id": "healthy"})
        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert fake_db.aircraft_components.get("healthy")["voided_at"] is not None
        ids = [c["id"] for c in client.get(URL, params={"aircraft_id": "ac-1"}).json()]
        assert "healthy" not in ids


# ============================================================
# EXTENSIONS
# ============================================================

class TestExtensions:

    def test_extend_keeps_base_values(self, client, fake_db, components):
        response = client.post(f"{URL}/overdue/extension", json={"extension_limit_hours": 10})
        assert response.status_code == 200
        data = response.json()
        assert data["current_due_hours"] == 1000
        assert data["due"]["extended_due_hours"] == 1010
        assert data["due"]["status"] == "Within Extension"
        assert fake_db.aircraft_components.get("overdue")["current_due_hours"] == 1000.0

    def test_revert_keeps_base_values(self, client, fake_db, components):
        response = client.delete(f"{URL}/extended/extension")
        assert response.status_code == 200
        data = response.json()
        assert data["extension_limit_hours"] is None
        assert data["current_due_hours"] == 1000
        assert data["due"]["status"] == "Overdue"

    def test_extend_via_patch(self, client, fake_db, components):
        response = client.patch(URL, json={"id": "overdue", "extension_limit_hours": 10})
        assert response.status_code == 200
        assert response.json()["due"]["effective_due_hours"] == 1010

    def test_extension_out_of_range(self, client, components):
        response = client.post(f"{URL}/overdue/extension", json={"extension_limit_hours": -5})
        assert response.status_code == 422
