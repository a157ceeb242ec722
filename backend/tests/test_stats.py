"""Tests for the Statistics Aggregator: per-event counts and organizer totals."""
from tests.conftest import create_test_profile, create_test_event, register


class TestEventStats:

    def test_capacity_two_walkthrough(self, client):
        """Three registrations, one cancel, one check-in on a two-seat event."""
        org = create_test_profile(client, name="Organizer", role="organizer")
        u1, u2, u3 = (create_test_profile(client, name=f"U{i}") for i in (1, 2, 3))
        event = create_test_event(client, org["user_id"], capacity=2)
        event_id = event["event_id"]

        r1 = register(client, event_id, u1["user_id"]).json()
        r2 = register(client, event_id, u2["user_id"]).json()
        r3 = register(client, event_id, u3["user_id"]).json()
        assert [r1["status"], r2["status"], r3["status"]] == ["confirmed", "confirmed", "waitlisted"]

        client.post(f"/api/rsvps/{r1['rsvp_id']}/cancel", json={"actor_user_id": u1["user_id"]})
        confirmed = client.get(f"/api/events/{event_id}/rsvps?status=confirmed").json()
        assert {r["user_id"] for r in confirmed} == {u2["user_id"], u3["user_id"]}

        client.post(f"/api/rsvps/{r2['rsvp_id']}/check-in", json={"operator_id": org["user_id"]})
        attendance = client.get(f"/api/events/{event_id}/attendance").json()
        assert [a["user_id"] for a in attendance] == [u2["user_id"]]

        stats = client.get(f"/api/events/{event_id}/stats").json()
        assert stats["confirmed"] == 2
        assert stats["waitlisted"] == 0
        assert stats["cancelled"] == 1
        assert stats["checked_in"] == 1
        assert stats["fill_rate"] == 1.0

    def test_partial_fill(self, client):
        org = create_test_profile(client, name="Organizer", role="organizer")
        user = create_test_profile(client, name="Solo")
        event = create_test_event(client, org["user_id"], capacity=4)
        register(client, event["event_id"], user["user_id"])

        stats = client.get(f"/api/events/{event['event_id']}/stats").json()
        assert stats["capacity"] == 4
        assert stats["confirmed"] == 1
        assert stats["fill_rate"] == 0.25

    def test_zero_capacity_fill_rate(self, client):
        org = create_test_profile(client, name="Organizer", role="organizer")
        event = create_test_event(client, org["user_id"], capacity=0)
        assert client.get(f"/api/events/{event['event_id']}/stats").json()["fill_rate"] == 0.0

    def test_pending_counted_separately(self, client):
        org = create_test_profile(client, name="Organizer", role="organizer")
        user = create_test_profile(client, name="Hopeful")
        event = create_test_event(client, org["user_id"], requires_approval=True)
        register(client, event["event_id"], user["user_id"])

        stats = client.get(f"/api/events/{event['event_id']}/stats").json()
        assert stats["pending"] == 1
        assert stats["confirmed"] == 0

    def test_unknown_event_is_zeroed(self, client):
        resp = client.get("/api/events/nope/stats")
        assert resp.status_code == 200
        assert resp.json() == {
            "event_id": "nope", "capacity": 0, "confirmed": 0, "waitlisted": 0,
            "pending": 0, "cancelled": 0, "checked_in": 0, "fill_rate": 0.0,
        }


class TestOrganizerTotals:

    def test_sums_across_events_with_revenue(self, client):
        org = create_test_profile(client, name="Organizer", role="organizer")
        users = [create_test_profile(client, name=f"Guest {i}") for i in range(3)]
        paid = create_test_event(client, org["user_id"], capacity=2, title="Workshop",
                                 pricing_type="paid", price_amount="25.00")
        free = create_test_event(client, org["user_id"], capacity=3, title="Meetup")

        for u in users:
            register(client, paid["event_id"], u["user_id"])
        register(client, free["event_id"], users[0]["user_id"])

        totals = client.get(f"/api/organizers/{org['user_id']}/stats").json()
        assert totals["event_count"] == 2
        assert totals["capacity"] == 5
        assert totals["confirmed"] == 3
        assert totals["waitlisted"] == 1
        assert totals["fill_rate"] == 0.6
        assert totals["revenue"] == 50.0

    def test_other_organizers_excluded(self, client):
        org = create_test_profile(client, name="Organizer", role="organizer")
        rival = create_test_profile(client, name="Rival", role="organizer")
        create_test_event(client, org["user_id"], capacity=5)
        create_test_event(client, rival["user_id"], capacity=7)

        assert client.get(f"/api/organizers/{org['user_id']}/stats").json()["capacity"] == 5

    def test_unknown_organizer_is_zeroed(self, client):
        totals = client.get("/api/organizers/ghost/stats").json()
        assert totals["event_count"] == 0
        assert totals["capacity"] == 0
        assert totals["fill_rate"] == 0.0
        assert totals["revenue"] == 0.0
