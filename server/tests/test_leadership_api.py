from __future__ import annotations

import logging

from churchcms.models.hierarchy import Cell, Group, Pcf
from churchcms.models.member import Member
from churchcms.models.role import Role
from churchcms.models.user import User


def _cell_leader_patch(client, cell_id, body):
    return client.patch(f"/api/admin/cells/{cell_id}", json=body)


def test_member_promoted_with_new_account(client, authorize, db_session, tree, admin_user, make_member):
    authorize(admin_user)
    m1 = make_member("Ada Obi Nwankwo", tree.c1)

    resp = _cell_leader_patch(
        client,
        tree.c1.id,
        {"member_id": m1.id, "create_user": True, "user_email": "a@b.com", "user_password": "pw123456"},
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["new_leader_credentials"] == {
        "email": "a@b.com",
        "temp_password": "pw123456",
        "must_change_password": True,
    }

    db_session.expire_all()
    user = db_session.query(User).filter_by(email="a@b.com").one()
    assert user.role == Role.CELL_LEADER.value
    assert user.cell_id == tree.c1.id
    assert user.pcf_id == tree.p1.id
    assert user.group_id == tree.g1.id
    assert user.member_id == m1.id
    assert user.force_password_change is True
    assert user.first_name == "Ada"
    assert user.last_name == "Obi Nwankwo"
    assert user.password != "pw123456"
    assert body["leader_id"] == user.id
    assert db_session.get(Cell, tree.c1.id).leader_id == user.id
    assert m1.designation == "CELL_LEADER"

    again = _cell_leader_patch(client, tree.c1.id, {"member_id": m1.id, "create_user": True})
    assert again.status_code == 200
    assert again.json()["new_leader_credentials"] is None
    assert again.json()["leader_id"] == user.id


def test_reassignment_demotes_previous_leader(client, authorize, db_session, tree, admin_user, make_user):
    authorize(admin_user)
    user_a = make_user("a@example.com")
    user_b = make_user("b@example.com")

    assert _cell_leader_patch(client, tree.c1.id, {"leader_id": user_a.id}).status_code == 200
    resp = _cell_leader_patch(client, tree.c1.id, {"leader_id": user_b.id})
    assert resp.status_code == 200, resp.text

    db_session.expire_all()
    assert user_a.role == Role.MEMBER.value
    assert user_a.cell_id is None
    assert user_b.role == Role.CELL_LEADER.value
    assert user_b.cell_id == tree.c1.id
    assert user_b.pcf_id == tree.p1.id
    assert db_session.get(Cell, tree.c1.id).leader_id == user_b.id


def test_reassigning_same_leader_is_a_no_op(client, authorize, db_session, tree, admin_user, make_user, caplog):
    authorize(admin_user)
    user_a = make_user("a@example.com")
    assert _cell_leader_patch(client, tree.c1.id, {"leader_id": user_a.id}).status_code == 200

    with caplog.at_level(logging.INFO, logger="churchcms.services.leadership"):
        resp = _cell_leader_patch(client, tree.c1.id, {"leader_id": user_a.id})
    assert resp.status_code == 200

    messages = [record.getMessage() for record in caplog.records]
    assert "leader_demoted" not in messages
    assert "leader_promoted" not in messages
    db_session.expire_all()
    assert user_a.role == Role.CELL_LEADER.value
    assert user_a.cell_id == tree.c1.id


def test_leader_cleared_with_explicit_null(client, authorize, db_session, tree, admin_user, make_user):
    authorize(admin_user)
    user_a = make_user("a@example.com")
    assert client.patch(f"/api/admin/pcfs/{tree.p1.id}", json={"leader_id": user_a.id}).status_code == 200

    rename = client.patch(f"/api/admin/pcfs/{tree.p1.id}", json={"name": "PCF Renamed"})
    assert rename.status_code == 200
    assert rename.json()["leader_id"] == user_a.id
    assert rename.json()["name"] == "PCF Renamed"

    cleared = client.patch(f"/api/admin/pcfs/{tree.p1.id}", json={"leader_id": None})
    assert cleared.status_code == 200
    assert cleared.json()["leader_id"] is None

    db_session.expire_all()
    assert user_a.role == Role.MEMBER.value
    assert user_a.pcf_id is None
    assert user_a.group_id == tree.g1.id


def test_leader_and_member_together_rejected(client, authorize, tree, admin_user, make_user, make_member):
    authorize(admin_user)
    user_a = make_user("a@example.com")
    member = make_member("Some Member", tree.c1)

    resp = _cell_leader_patch(client, tree.c1.id, {"leader_id": user_a.id, "member_id": member.id})
    assert resp.status_code == 422


def test_provisioning_email_collision(client, authorize, db_session, tree, admin_user, make_user, make_member):
    authorize(admin_user)
    m1 = make_member("First Member", tree.c1)
    m2 = make_member("Second Member", tree.c1)
    make_user("taken@example.com", member_id=m2.id)
    before = db_session.query(User).count()

    resp = _cell_leader_patch(
        client,
        tree.c1.id,
        {"member_id": m1.id, "create_user": True, "user_email": "taken@example.com", "user_password": "pw123456"},
    )
    assert resp.status_code == 409
    assert "taken@example.com" in resp.json()["detail"]

    db_session.expire_all()
    assert db_session.query(User).count() == before
    assert db_session.get(Cell, tree.c1.id).leader_id is None


def test_provisioning_requires_credentials(client, authorize, tree, admin_user, make_member):
    authorize(admin_user)
    member = make_member("No Password", tree.c1)

    missing_password = _cell_leader_patch(
        client, tree.c1.id, {"member_id": member.id, "create_user": True, "user_email": "np@example.com"}
    )
    assert missing_password.status_code == 400

    missing_email = _cell_leader_patch(
        client, tree.c1.id, {"member_id": member.id, "create_user": True, "user_password": "pw123456"}
    )
    assert missing_email.status_code == 400


def test_member_without_account_and_no_create_intent_clears_leader(client, authorize, tree, admin_user, make_member):
    authorize(admin_user)
    member = make_member("Unlinked Member", tree.c1)

    resp = _cell_leader_patch(client, tree.c1.id, {"member_id": member.id})
    assert resp.status_code == 200
    assert resp.json()["leader_id"] is None


def test_admin_cannot_be_made_leader(client, authorize, tree, admin_user, make_user):
    authorize(admin_user)
    other_admin = make_user("admin2@example.com", Role.ADMIN)

    resp = client.patch(f"/api/admin/groups/{tree.g1.id}", json={"leader_id": other_admin.id})
    assert resp.status_code == 400


def test_unknown_leader_returns_404(client, authorize, tree, admin_user):
    authorize(admin_user)
    assert _cell_leader_patch(client, tree.c1.id, {"leader_id": "missing"}).status_code == 404
    assert _cell_leader_patch(client, tree.c1.id, {"member_id": 9999}).status_code == 404
    assert client.patch("/api/admin/cells/9999", json={"name": "Ghost"}).status_code == 404


def test_pcf_leader_cannot_promote_a_group_pastor(client, authorize, tree, pcf_leader_user, make_user):
    authorize(pcf_leader_user)
    pastor = make_user("other.pastor@example.com", Role.GROUP_PASTOR, group_id=tree.g2.id)

    resp = _cell_leader_patch(client, tree.c2.id, {"leader_id": pastor.id})
    assert resp.status_code == 403


def test_promotion_vacates_previous_slot(client, authorize, db_session, tree, admin_user, make_user):
    authorize(admin_user)
    user_a = make_user("a@example.com")
    assert _cell_leader_patch(client, tree.c1.id, {"leader_id": user_a.id}).status_code == 200
    assert _cell_leader_patch(client, tree.c3.id, {"leader_id": user_a.id}).status_code == 200

    db_session.expire_all()
    assert db_session.get(Cell, tree.c1.id).leader_id is None
    assert db_session.get(Cell, tree.c3.id).leader_id == user_a.id
    assert user_a.cell_id == tree.c3.id
    assert user_a.pcf_id == tree.p2.id


def test_group_pastor_creates_pcf_with_new_leader(client, authorize, db_session, tree, group_pastor_user, make_member):
    authorize(group_pastor_user)
    member = make_member("Paul Ade", tree.c1)

    resp = client.post(
        "/api/admin/pcfs",
        json={
            "name": "PCF Four",
            "group_id": tree.g1.id,
            "member_id": member.id,
            "create_user": True,
            "user_email": "paul@example.com",
            "user_password": "pw123456",
        },
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["group_id"] == tree.g1.id
    assert body["new_leader_credentials"]["email"] == "paul@example.com"

    db_session.expire_all()
    user = db_session.query(User).filter_by(email="paul@example.com").one()
    assert user.role == Role.PCF_LEADER.value
    assert user.pcf_id == body["id"]
    assert user.group_id == tree.g1.id
    assert user.cell_id is None

    outside = client.post("/api/admin/pcfs", json={"name": "Elsewhere", "group_id": tree.g2.id})
    assert outside.status_code == 403


def test_create_group_requires_admin_and_creates_church(client, authorize, db_session, admin_user, pcf_leader_user):
    authorize(pcf_leader_user)
    assert client.post("/api/admin/groups", json={"name": "Denied"}).status_code == 403

    authorize(admin_user)
    resp = client.post("/api/admin/groups", json={"name": "New Group"})
    assert resp.status_code == 201, resp.text
    assert resp.json()["leader_id"] is None
    assert resp.json()["new_leader_credentials"] is None

    db_session.expire_all()
    group = db_session.get(Group, resp.json()["id"])
    assert group.church_id == resp.json()["church_id"]


def test_delete_node_demotes_leader(client, authorize, db_session, tree, admin_user, make_user):
    authorize(admin_user)
    user_a = make_user("a@example.com")
    assert _cell_leader_patch(client, tree.c4.id, {"leader_id": user_a.id}).status_code == 200

    resp = client.delete(f"/api/admin/cells/{tree.c4.id}")
    assert resp.status_code == 204

    db_session.expire_all()
    assert db_session.get(Cell, tree.c4.id) is None
    assert user_a.role == Role.MEMBER.value
    assert user_a.cell_id is None


def test_delete_node_with_children_rejected(client, authorize, db_session, tree, admin_user, make_member):
    authorize(admin_user)
    make_member("Cell Member", tree.c1)

    assert client.delete(f"/api/admin/groups/{tree.g1.id}").status_code == 400
    assert client.delete(f"/api/admin/pcfs/{tree.p1.id}").status_code == 400
    assert client.delete(f"/api/admin/cells/{tree.c1.id}").status_code == 400

    db_session.expire_all()
    assert db_session.get(Pcf, tree.p1.id) is not None


def test_cell_leader_cannot_edit_cells(client, authorize, tree, cell_leader_user):
    authorize(cell_leader_user)
    resp = client.patch(f"/api/admin/cells/{tree.c1.id}", json={"name": "Mine"})
    assert resp.status_code == 403


def test_group_pastor_cannot_take_leader_from_another_group(client, authorize, db_session, tree, group_pastor_user, make_user):
    other = make_user("g2.pastor@example.com", Role.GROUP_PASTOR, group_id=tree.g2.id)
    tree.g2.leader_id = other.id
    db_session.commit()
    authorize(group_pastor_user)

    resp = client.patch(f"/api/admin/pcfs/{tree.p1.id}", json={"leader_id": other.id})
    assert resp.status_code == 403

    db_session.expire_all()
    assert db_session.get(Group, tree.g2.id).leader_id == other.id
    assert db_session.get(Pcf, tree.p1.id).leader_id is None
    assert other.role == Role.GROUP_PASTOR.value
    assert other.group_id == tree.g2.id


def test_pcf_leader_cannot_take_leader_from_another_pcf(client, authorize, db_session, tree, pcf_leader_user, make_user):
    other = make_user("p3.lead@example.com", Role.PCF_LEADER, group_id=tree.g2.id, pcf_id=tree.p3.id)
    tree.p3.leader_id = other.id
    db_session.commit()
    authorize(pcf_leader_user)

    resp = _cell_leader_patch(client, tree.c2.id, {"leader_id": other.id})
    assert resp.status_code == 403

    db_session.expire_all()
    assert db_session.get(Pcf, tree.p3.id).leader_id == other.id
    assert other.role == Role.PCF_LEADER.value


def test_member_outside_scope_cannot_be_made_leader(client, authorize, db_session, tree, pcf_leader_user, make_member, make_user):
    far = make_member("Far Away", tree.c4)
    linked = make_member("Linked Far", tree.c3)
    account = make_user("linked.far@example.com", member_id=linked.id)
    authorize(pcf_leader_user)

    provisioned = _cell_leader_patch(
        client,
        tree.c2.id,
        {"member_id": far.id, "create_user": True, "user_email": "far@example.com", "user_password": "pw123456"},
    )
    assert provisioned.status_code == 403
    assert _cell_leader_patch(client, tree.c2.id, {"leader_id": account.id}).status_code == 403

    db_session.expire_all()
    assert db_session.query(User).filter_by(email="far@example.com").first() is None
    assert db_session.get(Cell, tree.c2.id).leader_id is None
    assert account.role == Role.MEMBER.value


def test_group_pastor_promotes_account_from_own_group(client, authorize, db_session, tree, group_pastor_user, make_member, make_user):
    member = make_member("Near By", tree.c3)
    account = make_user("near@example.com", member_id=member.id)
    authorize(group_pastor_user)

    resp = _cell_leader_patch(client, tree.c2.id, {"leader_id": account.id})
    assert resp.status_code == 200, resp.text

    db_session.expire_all()
    assert account.role == Role.CELL_LEADER.value
    assert account.cell_id == tree.c2.id
    assert db_session.get(Member, member.id).designation == "CELL_LEADER"
