"""Tests for dashboard aggregates."""
from tests.conftest import (
    approved_event, auth, create_test_club, create_test_event, create_test_user, join_club, make_leader, setup_campus,
)


def _register(client, student, event_id) -> dict:
    resp = client.post(f"/api/events/{event_id}/register", headers=auth(student))
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestReports:

    def test_admin_stats(self, client):
        campus = setup_campus(client)
        other = create_test_user(client, name="Other Student")
        event = approved_event(client, campus)
        create_test_event(client, campus["leader"], title="Awaiting Review")
        first = _register(client, campus["student"], event["event_id"])
        _register(client, other, event["event_id"])
        client.post("/api/attendance/scan", json={"qr_data": first["qr_payload"]}, headers=auth(campus["leader"]))

        resp = client.get("/api/reports/admin", headers=auth(campus["admin"]))
        assert resp.status_code == 200
        assert resp.json() == {
            "total_users": 4,
            "total_clubs": 1,
            "total_events": 2,
            "pending_events": 1,
            "total_registrations": 2,
            "attended_registrations": 1,
            "attendance_rate": 50,
        }

    def test_student_stats(self, client):
        campus = setup_campus(client)
        join_club(client, campus["student"], campus["club"], campus["leader"])
        event = approved_event(client, campus)
        registration = _register(client, campus["student"], event["event_id"])
        client.post("/api/attendance/scan", json={"qr_data": registration["qr_payload"]}, headers=auth(campus["leader"]))

        resp = client.get("/api/reports/student", headers=auth(campus["student"]))
        assert resp.status_code == 200
        assert resp.json() == {
            "my_clubs": 1,
            "registered_events": 1,
            "upcoming_events": 1,
            "attended_events": 1,
            "attendance_rate": 100,
        }

    def test_empty_rates_are_zero(self, client):
        campus = setup_campus(client)
        stats = client.get("/api/reports/student", headers=auth(campus["student"])).json()
        assert stats["attendance_rate"] == 0
        assert client.get("/api/reports/admin", headers=auth(campus["admin"])).json()["attendance_rate"] == 0

    def test_admin_only(self, client):
        campus = setup_campus(client)
        assert client.get("/api/reports/admin", headers=auth(campus["student"])).status_code == 403


class TestReportFilters:

    def _campus_with_two_clubs(self, client):
        campus = setup_campus(client)
        chess = create_test_club(client, campus["admin"], name="Chess Club")
        chess_leader = make_leader(client, campus["admin"], chess, name="Chess Leader")
        robotics = approved_event(client, campus)
        resp = create_test_event(client, chess_leader, title="Blitz Night")
        assert resp.status_code == 201
        _register(client, campus["student"], robotics["event_id"])
        return campus, chess

    def test_club_filter(self, client):
        campus, chess = self._campus_with_two_clubs(client)
        admin = auth(campus["admin"])

        robotics = client.get(f"/api/reports/admin?club_id={campus['club']['club_id']}", headers=admin).json()
        assert robotics["total_events"] == 1
        assert robotics["pending_events"] == 0
        assert robotics["total_registrations"] == 1

        chess_stats = client.get(f"/api/reports/admin?club_id={chess['club_id']}", headers=admin).json()
        assert chess_stats["total_events"] == 1
        assert chess_stats["pending_events"] == 1
        assert chess_stats["total_registrations"] == 0
        assert chess_stats["total_clubs"] == 2

    def test_current_ranges_include_todays_activity(self, client):
        campus, _ = self._campus_with_two_clubs(client)
        for time_range in ("this_week", "this_month", "this_semester", "this_year"):
            stats = client.get(f"/api/reports/admin?time_range={time_range}", headers=auth(campus["admin"])).json()
            assert stats["total_events"] == 2, time_range
            assert stats["total_registrations"] == 1, time_range

    def test_custom_range_in_the_past_is_empty(self, client):
        campus, _ = self._campus_with_two_clubs(client)
        resp = client.get(
            "/api/reports/admin?time_range=custom&start_date=2020-01-01&end_date=2020-12-31",
            headers=auth(campus["admin"]),
        )
        assert resp.status_code == 200
        stats = resp.json()
        assert stats["total_events"] == 0
        assert stats["total_registrations"] == 0
        assert stats["total_users"] == 4

    def test_custom_range_needs_both_dates(self, client):
        campus = setup_campus(client)
        resp = client.get("/api/reports/admin?time_range=custom&start_date=2020-01-01", headers=auth(campus["admin"]))
        assert resp.status_code == 400

    def test_reversed_custom_range(self, client):
        campus = setup_campus(client)
        resp = client.get(
            "/api/reports/admin?time_range=custom&start_date=2020-02-01&end_date=2020-01-01",
            headers=auth(campus["admin"]),
        )
        assert resp.status_code == 400

    def test_unknown_range_and_club(self, client):
        campus = setup_campus(client)
        admin = auth(campus["admin"])
        assert client.get("/api/reports/admin?time_range=fortnight", headers=admin).status_code == 400
        resp = client.get("/api/reports/admin?club_id=00000000-0000-0000-0000-000000000000", headers=admin)
        assert resp.status_code == 404
