"""Tests for event creation, admin review and the upcoming-events feed.

Covers:
- Creation in the leader's club, always pending
- Field validation (price consistency, deadline, required fields)
- Poster upload ahead of the insert; upload outage leaves no event
- Single-shot review: a second decision is a 409 and changes nothing
- Upcoming feed: approved, not past, visible, not already registered
- Reminder lists: approved events starting soon with students yet to attend
"""
from datetime import timedelta

from clubhub.services.clock import campus_today
from tests.conftest import (
    approve_event, approved_event, auth, create_test_event, create_test_user, join_club, setup_campus,
)


class TestEventCreate:

    def test_create_event_pending(self, client):
        campus = setup_campus(client)
        resp = create_test_event(client, campus["leader"], title="Robot Wars")
        assert resp.status_code == 201
        data = resp.json()
        assert data["title"] == "Robot Wars"
        assert data["status"] == "pending"
        assert data["club_id"] == campus["club"]["club_id"]
        assert data["created_by"] == campus["leader"]["user_id"]
        assert data["price"] == 0
        assert data["poster"] is None

    def test_student_cannot_create(self, client):
        campus = setup_campus(client)
        resp = create_test_event(client, campus["student"])
        assert resp.status_code == 403

    def test_blank_title_rejected(self, client):
        campus = setup_campus(client)
        resp = create_test_event(client, campus["leader"], title="   ")
        assert resp.status_code == 400

    def test_paid_event_needs_price(self, client):
        campus = setup_campus(client)
        resp = create_test_event(client, campus["leader"], is_paid="true", price="0")
        assert resp.status_code == 400

    def test_free_event_with_price_rejected(self, client):
        campus = setup_campus(client)
        resp = create_test_event(client, campus["leader"], is_paid="false", price="150")
        assert resp.status_code == 400

    def test_paid_event_keeps_price(self, client):
        campus = setup_campus(client)
        resp = create_test_event(client, campus["leader"], is_paid="true", price="250")
        assert resp.status_code == 201
        assert resp.json()["is_paid"] is True
        assert resp.json()["price"] == 250

    def test_deadline_after_date_rejected(self, client):
        campus = setup_campus(client)
        resp = create_test_event(
            client, campus["leader"], days_ahead=3,
            registration_deadline=(campus_today() + timedelta(days=10)).isoformat(),
        )
        assert resp.status_code == 400


class TestPosterUpload:

    def test_poster_stored(self, client, blob_store):
        campus = setup_campus(client)
        files = {"poster": ("poster.png", b"\x89PNG fake image", "image/png")}
        resp = create_test_event(client, campus["leader"], files=files)
        assert resp.status_code == 201
        poster = resp.json()["poster"]
        assert poster in blob_store.objects
        assert blob_store.objects[poster] == (b"\x89PNG fake image", "image/png")

    def test_non_image_poster_rejected(self, client, blob_store):
        campus = setup_campus(client)
        files = {"poster": ("notes.txt", b"hello", "text/plain")}
        resp = create_test_event(client, campus["leader"], files=files)
        assert resp.status_code == 400
        assert blob_store.objects == {}

    def test_upload_failure_creates_no_event(self, client, blob_store):
        campus = setup_campus(client)
        blob_store.fail = True
        files = {"poster": ("poster.png", b"\x89PNG", "image/png")}
        resp = create_test_event(client, campus["leader"], files=files)
        assert resp.status_code == 502
        assert resp.json()["detail"]["code"] == "upstream_error"
        assert client.get("/api/events/mine", headers=auth(campus["leader"])).json() == []


class TestEventReview:

    def test_approve(self, client):
        campus = setup_campus(client)
        event = create_test_event(client, campus["leader"]).json()
        data = approve_event(client, campus["admin"], event["event_id"])
        assert data["status"] == "approved"

    def test_second_review_conflicts(self, client):
        campus = setup_campus(client)
        event = create_test_event(client, campus["leader"]).json()
        approve_event(client, campus["admin"], event["event_id"])

        resp = client.post(
            f"/api/events/{event['event_id']}/review",
            json={"decision": "rejected"},
            headers=auth(campus["admin"]),
        )
        assert resp.status_code == 409
        assert client.get(f"/api/events/{event['event_id']}").json()["status"] == "approved"

    def test_reject_then_approve_conflicts(self, client):
        campus = setup_campus(client)
        event = create_test_event(client, campus["leader"]).json()
        url = f"/api/events/{event['event_id']}/review"
        assert client.post(url, json={"decision": "rejected"}, headers=auth(campus["admin"])).status_code == 200
        resp = client.post(url, json={"decision": "approved"}, headers=auth(campus["admin"]))
        assert resp.status_code == 409
        assert client.get(f"/api/events/{event['event_id']}").json()["status"] == "rejected"

    def test_only_admin_reviews(self, client):
        campus = setup_campus(client)
        event = create_test_event(client, campus["leader"]).json()
        resp = client.post(
            f"/api/events/{event['event_id']}/review",
            json={"decision": "approved"},
            headers=auth(campus["leader"]),
        )
        assert resp.status_code == 403

    def test_unknown_decision_rejected(self, client):
        campus = setup_campus(client)
        event = create_test_event(client, campus["leader"]).json()
        resp = client.post(
            f"/api/events/{event['event_id']}/review",
            json={"decision": "pending"},
            headers=auth(campus["admin"]),
        )
        assert resp.status_code == 422

    def test_review_unknown_event(self, client):
        campus = setup_campus(client)
        resp = client.post(
            "/api/events/00000000-0000-0000-0000-000000000000/review",
            json={"decision": "approved"},
            headers=auth(campus["admin"]),
        )
        assert resp.status_code == 404

    def test_pending_list(self, client):
        campus = setup_campus(client)
        first = create_test_event(client, campus["leader"], title="First").json()
        second = create_test_event(client, campus["leader"], title="Second").json()
        approve_event(client, campus["admin"], first["event_id"])

        pending = client.get("/api/events/pending", headers=auth(campus["admin"])).json()
        assert [e["event_id"] for e in pending] == [second["event_id"]]


class TestUpcomingEvents:

    def _titles(self, client, student):
        resp = client.get("/api/events/upcoming", headers=auth(student))
        assert resp.status_code == 200
        return [e["title"] for e in resp.json()]

    def test_only_approved_and_future(self, client):
        campus = setup_campus(client)
        approved_event(client, campus, title="Approved")
        create_test_event(client, campus["leader"], title="Still Pending")
        approved_event(client, campus, title="Already Over", days_ahead=-2)
        assert self._titles(client, campus["student"]) == ["Approved"]

    def test_club_only_hidden_from_non_members(self, client):
        campus = setup_campus(client)
        approved_event(client, campus, title="Members Night", visibility="club-only")
        approved_event(client, campus, title="Open Day", visibility="open-to-all")
        assert self._titles(client, campus["student"]) == ["Open Day"]

        join_club(client, campus["student"], campus["club"], campus["leader"])
        assert sorted(self._titles(client, campus["student"])) == ["Members Night", "Open Day"]

    def test_registered_events_excluded(self, client):
        campus = setup_campus(client)
        event = approved_event(client, campus, title="Hackathon")
        approved_event(client, campus, title="Meetup")
        resp = client.post(f"/api/events/{event['event_id']}/register", headers=auth(campus["student"]))
        assert resp.status_code == 201
        assert self._titles(client, campus["student"]) == ["Meetup"]

    def test_ordered_by_date(self, client):
        campus = setup_campus(client)
        approved_event(client, campus, title="Later", days_ahead=20)
        approved_event(client, campus, title="Sooner", days_ahead=2)
        assert self._titles(client, campus["student"]) == ["Sooner", "Later"]

    def test_leader_mine_lists_own_events(self, client):
        campus = setup_campus(client)
        create_test_event(client, campus["leader"], title="Mine")
        other = create_test_user(client, name="Another Student")
        mine = client.get("/api/events/mine", headers=auth(campus["leader"])).json()
        assert [e["title"] for e in mine] == ["Mine"]
        assert client.get("/api/events/mine", headers=auth(other)).status_code == 403


class TestEventReminders:

    def _register(self, client, student, event):
        resp = client.post(f"/api/events/{event['event_id']}/register", headers=auth(student))
        assert resp.status_code == 201, resp.text
        return resp.json()

    def test_reminders_cover_window_and_skip_attended(self, client):
        campus = setup_campus(client)
        other = create_test_user(client, name="Another Student")
        tomorrow = approved_event(client, campus, title="Tomorrow", days_ahead=1)
        next_week = approved_event(client, campus, title="Next Week", days_ahead=7)
        create_test_event(client, campus["leader"], title="Unapproved", days_ahead=1)
        self._register(client, campus["student"], tomorrow)
        checked_in = self._register(client, other, tomorrow)
        self._register(client, campus["student"], next_week)
        client.post("/api/attendance/scan", json={"qr_data": checked_in["qr_payload"]}, headers=auth(campus["leader"]))

        resp = client.get("/api/events/reminders", headers=auth(campus["admin"]))
        assert resp.status_code == 200
        reminders = resp.json()
        assert [r["event"]["title"] for r in reminders] == ["Tomorrow"]
        assert reminders[0]["recipients"] == [{
            "student_id": campus["student"]["user_id"],
            "name": "Student S",
            "email": campus["student"]["email"],
        }]

    def test_wider_window(self, client):
        campus = setup_campus(client)
        approved_event(client, campus, title="Tomorrow", days_ahead=1)
        approved_event(client, campus, title="Next Week", days_ahead=7)
        resp = client.get("/api/events/reminders?days=7", headers=auth(campus["admin"]))
        assert [r["event"]["title"] for r in resp.json()] == ["Tomorrow", "Next Week"]
        assert all(r["recipients"] == [] for r in resp.json())

    def test_blocked_students_not_reminded(self, client):
        campus = setup_campus(client)
        event = approved_event(client, campus, days_ahead=1)
        self._register(client, campus["student"], event)
        client.patch(f"/api/users/{campus['student']['user_id']}/toggle-active", headers=auth(campus["admin"]))

        reminders = client.get("/api/events/reminders", headers=auth(campus["admin"])).json()
        assert reminders[0]["recipients"] == []

    def test_admin_only(self, client):
        campus = setup_campus(client)
        assert client.get("/api/events/reminders", headers=auth(campus["leader"])).status_code == 403
