"""Tests for Profile CRUD endpoints and per-user projections."""
from datetime import datetime, timezone, timedelta

from schedula.config import settings
from tests.conftest import create_test_profile, create_test_event, register


class TestProfileCRUD:
    """Profile create / get / update / list."""

    def test_create_profile(self, client):
        data = create_test_profile(client, name="Alice", role="organizer", tz="US/Eastern")
        assert data["display_name"] == "Alice"
        assert data["role"] == "organizer"
        assert data["status"] == "active"
        assert data["timezone"] == "US/Eastern"
        assert "user_id" in data

    def test_duplicate_email_rejected(self, client):
        create_test_profile(client, name="Alice")
        resp = client.post("/api/profiles/", json={"email": "alice@example.com", "display_name": "Other"})
        assert resp.status_code == 409
        assert resp.json()["detail"]["code"] == "duplicate_profile"

    def test_get_profile(self, client):
        user = create_test_profile(client)
        resp = client.get(f"/api/profiles/{user['user_id']}")
        assert resp.status_code == 200
        assert resp.json()["display_name"] == "Test User"

    def test_get_profile_not_found(self, client):
        resp = client.get("/api/profiles/00000000-0000-0000-0000-000000000000")
        assert resp.status_code == 404
        assert resp.json()["detail"]["code"] == "not_found"

    def test_update_profile(self, client):
        user = create_test_profile(client)
        resp = client.patch(f"/api/profiles/{user['user_id']}", json={
            "display_name": "Updated Name",
            "timezone": "Europe/London",
        })
        assert resp.status_code == 200
        assert resp.json()["display_name"] == "Updated Name"
        assert resp.json()["timezone"] == "Europe/London"

    def test_list_profiles(self, client):
        create_test_profile(client, name="Alice")
        create_test_profile(client, name="Bob")
        resp = client.get("/api/profiles/")
        assert resp.status_code == 200
        names = [u["display_name"] for u in resp.json()]
        assert "Alice" in names
        assert "Bob" in names


class TestAttendeeDashboard:
    """Per-user RSVP projection."""

    def test_rsvps_by_user(self, client):
        org = create_test_profile(client, name="Organizer", role="organizer")
        user = create_test_profile(client, name="Attendee")
        first = create_test_event(client, org["user_id"], title="First")
        second = create_test_event(client, org["user_id"], title="Second")
        register(client, first["event_id"], user["user_id"])
        register(client, second["event_id"], user["user_id"])

        resp = client.get(f"/api/profiles/{user['user_id']}/rsvps")
        assert resp.status_code == 200
        assert {r["event_id"] for r in resp.json()} == {first["event_id"], second["event_id"]}

    def test_rsvps_by_user_can_hide_cancelled(self, client):
        org = create_test_profile(client, name="Organizer", role="organizer")
        user = create_test_profile(client, name="Attendee")
        event = create_test_event(client, org["user_id"])
        rsvp = register(client, event["event_id"], user["user_id"]).json()
        client.post(f"/api/rsvps/{rsvp['rsvp_id']}/cancel", json={"actor_user_id": user["user_id"]})

        resp = client.get(f"/api/profiles/{user['user_id']}/rsvps?include_cancelled=false")
        assert resp.status_code == 200
        assert resp.json() == []

    def test_suspended_user_cannot_register(self, client):
        org = create_test_profile(client, name="Organizer", role="organizer")
        user = create_test_profile(client, name="Attendee")
        event = create_test_event(client, org["user_id"])
        client.patch(f"/api/profiles/{user['user_id']}", json={"status": "suspended"})

        resp = register(client, event["event_id"], user["user_id"])
        assert resp.status_code == 403


class TestOrganizerApproval:
    """Organizer signups wait for an admin when approval is required."""

    def _event_payload(self, organizer_id):
        start = datetime.now(timezone.utc) + timedelta(days=1)
        return {
            "organizer_id": organizer_id,
            "title": "Too Early",
            "start_time_utc": start.isoformat(),
            "end_time_utc": (start + timedelta(hours=1)).isoformat(),
            "capacity": 10,
        }

    def test_pending_organizer_blocked_until_approved(self, client, monkeypatch):
        monkeypatch.setattr(settings, "ORGANIZER_APPROVAL_REQUIRED", True)
        admin = create_test_profile(client, name="Admin", role="admin")
        org = create_test_profile(client, name="Organizer", role="organizer")
        assert org["status"] == "pending"

        resp = client.post("/api/events/", json=self._event_payload(org["user_id"]))
        assert resp.status_code == 403
        assert resp.json()["detail"]["code"] == "forbidden"

        approved = client.post(f"/api/profiles/{org['user_id']}/approve", json={"actor_user_id": admin["user_id"]})
        assert approved.status_code == 200
        assert approved.json()["status"] == "active"
        assert client.post("/api/events/", json=self._event_payload(org["user_id"])).status_code == 201

        titles = [n["title"] for n in client.get(f"/api/notifications/?user_id={org['user_id']}").json()]
        assert "Account approved" in titles

    def test_attendees_start_active(self, client, monkeypatch):
        monkeypatch.setattr(settings, "ORGANIZER_APPROVAL_REQUIRED", True)
        assert create_test_profile(client, name="Attendee")["status"] == "active"

    def test_pending_organizer_cannot_manage_existing_event(self, client):
        org = create_test_profile(client, name="Organizer", role="organizer")
        event = create_test_event(client, org["user_id"], publish=False)
        client.patch(f"/api/profiles/{org['user_id']}", json={"status": "pending"})

        resp = client.post(f"/api/events/{event['event_id']}/publish", json={"actor_user_id": org["user_id"]})
        assert resp.status_code == 403

    def test_only_admin_approves(self, client, monkeypatch):
        monkeypatch.setattr(settings, "ORGANIZER_APPROVAL_REQUIRED", True)
        org = create_test_profile(client, name="Organizer", role="organizer")
        other = create_test_profile(client, name="Other", role="attendee")
        resp = client.post(f"/api/profiles/{org['user_id']}/approve", json={"actor_user_id": other["user_id"]})
        assert resp.status_code == 403
        assert client.get(f"/api/profiles/{org['user_id']}").json()["status"] == "pending"

    def test_approve_requires_pending(self, client):
        admin = create_test_profile(client, name="Admin", role="admin")
        org = create_test_profile(client, name="Organizer", role="organizer")
        resp = client.post(f"/api/profiles/{org['user_id']}/approve", json={"actor_user_id": admin["user_id"]})
        assert resp.status_code == 400
