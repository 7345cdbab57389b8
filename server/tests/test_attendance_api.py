from __future__ import annotations

from datetime import datetime

from churchcms.models.attendance import AttendanceRecord
from churchcms.models.service import Service


def test_marking_twice_returns_same_record(client, authorize, db_session, tree, admin_user, make_member, sunday_service):
    m2 = make_member("Member Two", tree.c1)
    authorize(admin_user)
    body = {"member_id": m2.id, "service_id": sunday_service.id, "method": "manual"}

    first = client.post("/api/attendance", json=body)
    assert first.status_code == 201, first.text
    second = client.post("/api/attendance", json={**body, "method": "qr_code", "location": "Main hall"})
    assert second.status_code == 200
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["method"] == "manual"

    assert db_session.query(AttendanceRecord).filter_by(member_id=m2.id, service_id=sunday_service.id).count() == 1

    stats = client.get("/api/attendance/stats", params={"serviceId": sunday_service.id})
    assert stats.status_code == 200
    assert stats.json() == [
        {
            "service_id": sunday_service.id,
            "service_name": "Sunday Service",
            "total_present": 1,
            "by_method": {"manual": 1},
            "by_cell": {str(tree.c1.id): 1},
        }
    ]


def test_only_admin_and_group_pastor_mark(client, authorize, tree, group_pastor_user, cell_leader_user, make_member, sunday_service):
    member = make_member("Attendee", tree.c1)
    body = {"member_id": member.id, "service_id": sunday_service.id}

    authorize(cell_leader_user)
    assert client.post("/api/attendance", json=body).status_code == 403

    authorize(group_pastor_user)
    resp = client.post("/api/attendance", json=body)
    assert resp.status_code == 201
    assert resp.json()["method"] == "manual"


def test_mark_unknown_member_or_service(client, authorize, tree, admin_user, make_member, sunday_service):
    member = make_member("Attendee", tree.c1)
    authorize(admin_user)

    assert client.post("/api/attendance", json={"member_id": 9999, "service_id": sunday_service.id}).status_code == 404
    assert client.post("/api/attendance", json={"member_id": member.id, "service_id": 9999}).status_code == 404
    invalid = client.post(
        "/api/attendance",
        json={"member_id": member.id, "service_id": sunday_service.id, "method": "biometric"},
    )
    assert invalid.status_code == 422


def test_list_records_include_member(client, authorize, db_session, tree, admin_user, make_member, sunday_service):
    member = make_member("Listed Member", tree.c2)
    authorize(admin_user)
    client.post("/api/attendance", json={"member_id": member.id, "service_id": sunday_service.id, "location": "Annex"})

    resp = client.get("/api/attendance", params={"serviceId": sunday_service.id})
    assert resp.status_code == 200
    records = resp.json()
    assert len(records) == 1
    assert records[0]["location"] == "Annex"
    assert records[0]["member"]["full_name"] == "Listed Member"

    assert client.get("/api/attendance").status_code == 422
    assert client.get("/api/attendance", params={"serviceId": 9999}).status_code == 404


def test_stats_cover_all_services_and_unassigned_members(client, authorize, db_session, tree, admin_user, make_member, sunday_service):
    midweek = Service(name="Midweek Service", date=datetime(2026, 10, 21, 18, 0), start_time="18:00", end_time="19:30")
    db_session.add(midweek)
    db_session.commit()
    in_cell = make_member("Cell Member", tree.c3)
    no_cell = make_member("Visitor")
    authorize(admin_user)

    client.post("/api/attendance", json={"member_id": in_cell.id, "service_id": sunday_service.id, "method": "qr_code"})
    client.post("/api/attendance", json={"member_id": no_cell.id, "service_id": sunday_service.id})
    client.post("/api/attendance", json={"member_id": no_cell.id, "service_id": midweek.id})

    resp = client.get("/api/attendance/stats")
    assert resp.status_code == 200
    by_service = {entry["service_id"]: entry for entry in resp.json()}
    assert by_service[sunday_service.id]["total_present"] == 2
    assert by_service[sunday_service.id]["by_method"] == {"qr_code": 1, "manual": 1}
    assert by_service[sunday_service.id]["by_cell"] == {str(tree.c3.id): 1, "0": 1}
    assert by_service[midweek.id]["total_present"] == 1
    assert [entry["service_id"] for entry in resp.json()] == [midweek.id, sunday_service.id]

    assert client.get("/api/attendance/stats", params={"serviceId": 9999}).status_code == 404
