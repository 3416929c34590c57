# Audit trail, activity listing, attendance and capability checks

from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import create_engine, select

from models import ActivityLog, Attendance, Doctor, Role, utc_now
from permissions import (
    ACTIVITY_READ, ATTENDANCE_WRITE, RECORDS_READ, RECORDS_WRITE, has_capability,
)
from routers.attendance import _as_utc
from services.audit import AuditTrail, list_activity


class TestAuditTrail:

    def test_record_appends_row(self, engine, session, make_user):
        user = make_user("actor@x.com")
        entry = AuditTrail(engine).record(user.id, "CREATE", "doctor", 3, {"code": "D3"})
        assert entry is not None
        rows = list_activity(session)
        assert len(rows) == 1
        assert rows[0]["user_name"] == "actor"
        assert rows[0]["details"] == {"code": "D3"}

    def test_failed_write_does_not_raise(self, caplog):
        # No tables in this database
        broken = AuditTrail(create_engine("sqlite://"))
        assert broken.record(1, "CREATE", "doctor", 1, {}) is None
        assert "Activity logging failed" in caplog.text

    def test_unencodable_details_do_not_raise(self, engine, session, caplog):
        # Neither a mapping nor an object with attributes
        assert AuditTrail(engine).record(None, "CREATE", "doctor", 1, {"bad": object()}) is None
        assert "Activity logging failed" in caplog.text
        assert session.exec(select(ActivityLog)).all() == []

    def test_mutation_survives_audit_failure(self, app, user_client, session):
        app.state.audit = AuditTrail(create_engine("sqlite://"))
        response = user_client.post("/api/doctors", json={"code": "D9", "name": "Dr. Nine"})
        assert response.status_code == 200
        assert session.exec(select(Doctor)).one().code == "D9"
        assert session.exec(select(ActivityLog)).all() == []

    def test_list_filters_and_order(self, engine, session):
        audit = AuditTrail(engine)
        audit.record(None, "CREATE", "doctor", 1)
        audit.record(None, "UPDATE", "investment", 2)
        audit.record(None, "CREATE", "product", 3)

        assert [row["entity_type"] for row in list_activity(session)] == ["product", "investment", "doctor"]
        assert [row["entity_id"] for row in list_activity(session, action="CREATE")] == [3, 1]
        assert len(list_activity(session, limit=1)) == 1


class TestActivityEndpoint:

    def test_admin_reads_logs(self, admin_client):
        admin_client.post("/api/products", json={"name": "P", "category": "C"})
        response = admin_client.get("/api/logs")
        assert response.status_code == 200
        logs = response.json()
        assert logs[0]["action"] == "CREATE"
        assert logs[0]["entity_type"] == "product"
        assert logs[0]["user_name"] == "admin"

    @pytest.mark.parametrize("fixture", ["user_client", "mr_client"])
    def test_others_forbidden(self, request, fixture):
        response = request.getfixturevalue(fixture).get("/api/logs")
        assert response.status_code == 403

    def test_anonymous_rejected(self, client):
        assert client.get("/api/logs").status_code == 401


class TestAttendance:
    punch = {"type": "punch_in", "lat": 13.08, "lon": 80.27, "accuracy": 12.5,
             "photo": "data:image/jpeg;base64,AAAA", "device_time": "2024-05-01T09:02:00"}

    def test_mr_punch_in_stored_in_own_table(self, mr_client, session):
        response = mr_client.post("/api/attendance", json=self.punch)
        assert response.status_code == 200
        body = response.json()
        assert body["type"] == "punch_in"
        assert body["lat"] == 13.08

        record = session.get(Attendance, body["id"])
        assert record.photo == "data:image/jpeg;base64,AAAA"

        # The ledger entry references the attendance row and carries no photo or GPS
        log = session.exec(select(ActivityLog)).one()
        assert (log.action, log.entity_type, log.entity_id) == ("ATTENDANCE", "attendance", record.id)
        assert log.details == {"type": "punch_in"}

    def test_my_attendance_newest_first(self, mr_client):
        mr_client.post("/api/attendance", json=self.punch)
        mr_client.post("/api/attendance", json=dict(self.punch, type="punch_out"))
        rows = mr_client.get("/api/attendance/me").json()
        assert [row["type"] for row in rows] == ["punch_out", "punch_in"]

    def test_only_own_rows(self, mr_client, admin_client):
        admin_client.post("/api/attendance", json=self.punch)
        assert mr_client.get("/api/attendance/me").json() == []

    def test_office_user_cannot_punch(self, user_client):
        assert user_client.post("/api/attendance", json=self.punch).status_code == 403

    def test_invalid_type(self, mr_client):
        assert mr_client.post("/api/attendance", json=dict(self.punch, type="lunch")).status_code == 400


class TestCapabilities:

    @pytest.mark.parametrize("role,capability,allowed", [
        (Role.ADMIN, ACTIVITY_READ, True),
        (Role.ADMIN, ATTENDANCE_WRITE, True),
        (Role.USER, RECORDS_WRITE, True),
        (Role.USER, ACTIVITY_READ, False),
        (Role.USER, ATTENDANCE_WRITE, False),
        (Role.MR, RECORDS_READ, True),
        (Role.MR, ATTENDANCE_WRITE, True),
        (Role.MR, ACTIVITY_READ, False),
    ])
    def test_role_table(self, role, capability, allowed):
        assert has_capability(role.value, capability) is allowed

    def test_unknown_role_has_nothing(self):
        assert not has_capability("guest", RECORDS_READ)


class TestTimestamps:

    def test_row_defaults_are_timezone_aware(self):
        doctor = Doctor(code="T1", name="Dr. Time")
        assert doctor.created_at.tzinfo is not None
        assert doctor.created_at.utcoffset() == timedelta(0)
        assert utc_now().tzinfo is timezone.utc

    def test_naive_device_time_taken_as_utc(self):
        assert _as_utc(datetime(2024, 5, 1, 9, 2)) == datetime(2024, 5, 1, 9, 2, tzinfo=timezone.utc)
        assert _as_utc(None) is None

    def test_offset_device_time_kept(self):
        ist = timezone(timedelta(hours=5, minutes=30))
        assert _as_utc(datetime(2024, 5, 1, 9, 2, tzinfo=ist)).utcoffset() == timedelta(hours=5, minutes=30)

    def test_punch_with_offset_device_time_stored(self, mr_client, session):
        punch = dict(TestAttendance.punch, device_time="2024-05-01T09:02:00+05:30")
        response = mr_client.post("/api/attendance", json=punch)
        assert response.status_code == 200
        record = session.get(Attendance, response.json()["id"])
        assert record.device_time is not None
