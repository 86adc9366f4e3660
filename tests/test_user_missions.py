from datetime import datetime, timedelta, timezone

from sqlmodel import Session as SQLModelSession
from sqlmodel import select

from orbitfund.core.models import (
    AttachmentKindEnum,
    Mission,
    MissionImage,
    MissionMilestone,
    MissionStatusEnum,
)


def _image_url(storage, name):
    """Stores an object and returns its public URL, as a previous upload would have."""
    key = f"images/{name}"
    storage.objects[key] = (b"old", "image/png")
    return storage.url_for(key)


def _milestones(engine, mission_id):
    with SQLModelSession(engine) as session:
        statement = (
            select(MissionMilestone)
            .where(MissionMilestone.mission_id == mission_id)
            .order_by(MissionMilestone.target_amount, MissionMilestone.id)
        )
        return [(row.milestone_name, row.target_amount) for row in session.exec(statement).all()]


# ==========================================
# Owner reads
# ==========================================
def test_list_my_missions_only_returns_callers_missions(client, owner, other_user, make_mission):
    user, headers = owner
    intruder, _ = other_user
    mine = make_mission(user.id, status=MissionStatusEnum.REJECTED)
    make_mission(intruder.id)

    response = client.get("/api/user-missions", headers=headers)
    assert response.status_code == 200
    assert [m["id"] for m in response.json()] == [mine]


def test_list_my_missions_orders_by_end_time_descending(client, owner, make_mission):
    user, headers = owner
    now = datetime.now(timezone.utc)
    early = make_mission(user.id, end_time=now + timedelta(days=10))
    late = make_mission(user.id, end_time=now + timedelta(days=40))
    middle = make_mission(user.id, end_time=now + timedelta(days=20))

    listed = [m["id"] for m in client.get("/api/user-missions", headers=headers).json()]
    assert listed == [late, middle, early]


def test_get_my_mission_of_someone_else_is_not_found(client, owner, other_user, make_mission):
    user, _ = owner
    _, intruder_headers = other_user
    mission_id = make_mission(user.id)
    response = client.get(f"/api/user-missions/{mission_id}", headers=intruder_headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Mission not found or access denied."


# ==========================================
# Update workflow over HTTP
# ==========================================
def test_update_by_non_owner_is_forbidden_and_changes_nothing(
    client, owner, other_user, make_mission, storage, engine
):
    user, _ = owner
    _, intruder_headers = other_user
    url = _image_url(storage, "keep.png")
    mission_id = make_mission(
        user.id,
        title="Original",
        attachments={AttachmentKindEnum.IMAGE: [url]},
        milestones=[("Design", 100.0)],
    )

    response = client.put(
        f"/api/user-missions/{mission_id}",
        data={
            "title": "Hijacked",
            "deleteImages": f'["{url}"]',
            "milestoneName[]": ["Evil"],
            "milestoneTarget[]": ["1"],
        },
        files=[("images", ("new.png", b"new", "image/png"))],
        headers=intruder_headers,
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "Permission denied or mission not found."
    assert storage.delete_calls == []
    assert list(storage.objects) == ["images/keep.png"]
    with SQLModelSession(engine) as session:
        mission = session.get(Mission, mission_id)
        assert mission.title == "Original"
        images = session.exec(select(MissionImage).where(MissionImage.mission_id == mission_id)).all()
        assert [image.url for image in images] == [url]
    assert _milestones(engine, mission_id) == [("Design", 100.0)]


def test_update_unknown_mission_is_forbidden(client, owner):
    _, headers = owner
    response = client.put("/api/user-missions/4242", data={"title": "Nope"}, headers=headers)
    assert response.status_code == 403


def test_update_changes_only_sent_fields(client, owner, make_mission, engine):
    user, headers = owner
    mission_id = make_mission(user.id, title="Old title")

    response = client.put(
        f"/api/user-missions/{mission_id}",
        data={"title": "New title", "fundingGoal": "900000"},
        headers=headers,
    )
    assert response.status_code == 200
    with SQLModelSession(engine) as session:
        mission = session.get(Mission, mission_id)
        assert mission.title == "New title"
        assert mission.funding_goal == "900000"
        assert mission.description == "A small satellite to the Moon."


def test_update_replaces_milestones_dropping_invalid_entries(client, owner, make_mission, engine):
    user, headers = owner
    mission_id = make_mission(user.id, milestones=[("Old", 1.0)])

    response = client.put(
        f"/api/user-missions/{mission_id}",
        data={
            "milestoneName[]": ["Stage A", "   ", "Stage C", "Stage D"],
            "milestoneTarget[]": ["500", "100", "abc", "50"],
        },
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["milestoneCount"] == 2
    assert _milestones(engine, mission_id) == [("Stage D", 50.0), ("Stage A", 500.0)]


def test_update_without_milestones_clears_them(client, owner, make_mission, engine):
    user, headers = owner
    mission_id = make_mission(user.id, milestones=[("Old", 1.0), ("Older", 2.0)])
    response = client.put(f"/api/user-missions/{mission_id}", data={"title": "Same"}, headers=headers)
    assert response.status_code == 200
    assert _milestones(engine, mission_id) == []


def test_update_deletes_requested_image(client, owner, make_mission, storage):
    user, headers = owner
    url1 = _image_url(storage, "one.png")
    url2 = _image_url(storage, "two.png")
    mission_id = make_mission(user.id, attachments={AttachmentKindEnum.IMAGE: [url1, url2]})

    response = client.put(
        f"/api/user-missions/{mission_id}",
        data={"deleteImages": f'["{url1}"]'},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["deleted"] == {"image": [url1]}
    assert storage.delete_calls == [url1]
    assert "images/one.png" not in storage.objects

    detail = client.get(f"/api/user-missions/{mission_id}", headers=headers).json()
    assert detail["images"] == [url2]


def test_update_skips_deletion_of_url_not_attached_to_mission(client, owner, make_mission, storage):
    user, headers = owner
    foreign = _image_url(storage, "foreign.png")
    mission_id = make_mission(user.id)

    response = client.put(
        f"/api/user-missions/{mission_id}",
        data={"deleteImages": f'["{foreign}"]'},
        headers=headers,
    )
    assert response.status_code == 200
    assert storage.delete_calls == []
    assert "images/foreign.png" in storage.objects


def test_update_rejects_malformed_deletion_list(client, owner, make_mission):
    user, headers = owner
    mission_id = make_mission(user.id)
    response = client.put(
        f"/api/user-missions/{mission_id}",
        data={"deleteImages": "not json"},
        headers=headers,
    )
    assert response.status_code == 400


def test_update_appends_uploads_in_order(client, owner, make_mission, storage):
    user, headers = owner
    existing = _image_url(storage, "existing.png")
    mission_id = make_mission(user.id, attachments={AttachmentKindEnum.IMAGE: [existing]})

    response = client.put(
        f"/api/user-missions/{mission_id}",
        files=[
            ("images", ("a.png", b"a", "image/png")),
            ("images", ("b.png", b"b", "image/png")),
            ("images", ("c.png", b"c", "image/png")),
        ],
        data={"title": "With gallery"},
        headers=headers,
    )
    assert response.status_code == 200
    uploaded = response.json()["uploaded"]["image"]
    assert len(uploaded) == 3
    base = storage.url_for("")
    assert [storage.objects[url[len(base):]][0] for url in uploaded] == [b"a", b"b", b"c"]

    detail = client.get(f"/api/user-missions/{mission_id}", headers=headers).json()
    assert detail["images"] == [existing] + uploaded


def test_update_rolls_back_when_an_upload_fails(client, owner, make_mission, flaky_storage, engine):
    user, headers = owner
    mission_id = make_mission(user.id, title="Before", milestones=[("Keep", 10.0)])
    flaky = flaky_storage(fail_after=1)

    response = client.put(
        f"/api/user-missions/{mission_id}",
        data={"title": "After", "milestoneName[]": ["New"], "milestoneTarget[]": ["5"]},
        files=[
            ("images", ("a.png", b"a", "image/png")),
            ("images", ("b.png", b"b", "image/png")),
        ],
        headers=headers,
    )
    assert response.status_code == 500
    # the first object reached storage but no row references it
    assert len(flaky.objects) == 1
    with SQLModelSession(engine) as session:
        assert session.get(Mission, mission_id).title == "Before"
        assert session.exec(select(MissionImage).where(MissionImage.mission_id == mission_id)).all() == []
    assert _milestones(engine, mission_id) == [("Keep", 10.0)]


def test_update_restores_deleted_row_when_a_later_upload_fails(client, owner, make_mission, flaky_storage):
    user, headers = owner
    flaky = flaky_storage(fail_after=0)
    url1 = _image_url(flaky, "one.png")
    mission_id = make_mission(user.id, attachments={AttachmentKindEnum.IMAGE: [url1]})

    response = client.put(
        f"/api/user-missions/{mission_id}",
        data={"deleteImages": f'["{url1}"]'},
        files=[("images", ("new.png", b"n", "image/png"))],
        headers=headers,
    )
    assert response.status_code == 500
    # the stored object is gone for good; the row comes back with the rollback
    assert flaky.delete_calls == [url1]
    detail = client.get(f"/api/user-missions/{mission_id}", headers=headers).json()
    assert detail["images"] == [url1]


def test_update_rejects_too_many_videos(client, owner, make_mission):
    user, headers = owner
    mission_id = make_mission(user.id)
    files = [("video", (f"v{i}.mp4", b"v", "video/mp4")) for i in range(6)]
    response = client.put(f"/api/user-missions/{mission_id}", files=files, headers=headers)
    assert response.status_code == 400


# ==========================================
# Visibility toggle
# ==========================================
def test_toggle_hides_and_republishes_approved_mission(client, owner, make_mission):
    user, headers = owner
    mission_id = make_mission(user.id, status=MissionStatusEnum.APPROVED)

    hidden = client.put(f"/api/user-missions/toggle-approval/{mission_id}", headers=headers)
    assert hidden.status_code == 200
    assert hidden.json()["user_approved"] is False
    assert hidden.json()["is_public"] is False
    assert client.get("/api/missions").json() == []

    shown = client.put(f"/api/user-missions/toggle-approval/{mission_id}", headers=headers)
    assert shown.json()["user_approved"] is True
    assert shown.json()["is_public"] is True
    assert [m["id"] for m in client.get("/api/missions").json()] == [mission_id]


def test_toggle_on_pending_mission_is_not_public(client, owner, make_mission):
    user, headers = owner
    mission_id = make_mission(user.id, user_approved=False)
    response = client.put(f"/api/user-missions/toggle-approval/{mission_id}", headers=headers)
    assert response.status_code == 200
    assert response.json()["user_approved"] is True
    assert response.json()["is_public"] is False


def test_toggle_blocked_when_launch_date_passed(client, owner, make_mission):
    user, headers = owner
    mission_id = make_mission(
        user.id,
        user_approved=False,
        launch_date=datetime.now(timezone.utc) - timedelta(days=1),
    )
    response = client.put(f"/api/user-missions/toggle-approval/{mission_id}", headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Action blocked: Launch date cannot be in the past."


def test_toggle_by_non_owner_is_forbidden(client, owner, other_user, make_mission):
    user, _ = owner
    _, intruder_headers = other_user
    mission_id = make_mission(user.id)
    response = client.put(f"/api/user-missions/toggle-approval/{mission_id}", headers=intruder_headers)
    assert response.status_code == 403
