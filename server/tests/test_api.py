"""
End-to-end API flows through the session-authenticated HTTP surface.
"""
import datetime as dt

from conftest import (
    ADMIN_EMAIL, VOLUNTEER_PASSWORD,
    add_volunteer, another_client, create_event, create_task, sign_in, sign_in_admin,
)


def _setup_team(client):
    sign_in_admin(client)
    alice = add_volunteer(client, "Alice", "alice@example.org", team="Logistics")
    bob = add_volunteer(client, "Bob", "bob@example.org", team="Media")
    event = create_event(client)
    return alice, bob, event


class TestAuthentication:

    def test_admin_is_bootstrapped(self, client):
        user = sign_in_admin(client)
        assert user["role"] == "Admin"
        assert user["name"] == "Ada Admin"

    def test_wrong_password(self, client):
        response = client.post("/api/login", json={"email": ADMIN_EMAIL, "password": "nope"})
        assert response.status_code == 401

    def test_logout_clears_session(self, client):
        sign_in_admin(client)
        assert client.get("/api/user/profile").status_code == 200
        client.post("/api/logout")
        assert client.get("/api/user/profile").status_code == 401

    def test_duplicate_email_is_rejected(self, client):
        sign_in_admin(client)
        add_volunteer(client, "Alice", "alice@example.org")
        response = client.post("/api/volunteers", json={
            "name": "Other Alice", "email": "ALICE@example.org", "password": "pw"
        })
        assert response.status_code == 409

    def test_volunteer_cannot_use_admin_endpoints(self, client):
        _setup_team(client)
        sign_in(client, "alice@example.org", VOLUNTEER_PASSWORD)
        response = client.post("/api/events", json={"name": "X", "description": "Y", "date": "2099-01-01"})
        assert response.status_code == 403
        response = client.post("/api/volunteers", json={"name": "Z", "email": "z@example.org", "password": "pw"})
        assert response.status_code == 403

    def test_password_reset_flow(self, client, notifier):
        _setup_team(client)
        response = client.post("/api/password-reset", json={"email": "alice@example.org"})
        assert response.status_code == 200
        assert len(notifier.sent) == 1
        assert notifier.sent[0].to == ["alice@example.org"]

        token = notifier.sent[0].body.split("token=")[1].split()[0]
        response = client.post("/api/password-reset/confirm", json={"token": token, "new_password": "fresh-pass"})
        assert response.status_code == 200

        sign_in(client, "alice@example.org", "fresh-pass")
        response = client.post("/api/login", json={"email": "alice@example.org", "password": VOLUNTEER_PASSWORD})
        assert response.status_code == 401

        # the token was bound to the old password
        response = client.post("/api/password-reset/confirm", json={"token": token, "new_password": "again"})
        assert response.status_code == 401

    def test_password_reset_for_unknown_email_sends_nothing(self, client, notifier):
        response = client.post("/api/password-reset", json={"email": "ghost@example.org"})
        assert response.status_code == 200
        assert notifier.sent == []

    def test_garbage_reset_token(self, client):
        response = client.post("/api/password-reset/confirm", json={"token": "abc", "new_password": "x"})
        assert response.status_code == 401

    def test_update_display_name(self, client):
        _setup_team(client)
        sign_in(client, "alice@example.org", VOLUNTEER_PASSWORD)

        response = client.put("/api/user/profile", json={"name": "Alice Liddell"})
        assert response.status_code == 200
        assert response.json()["user"]["name"] == "Alice Liddell"

        profile = client.get("/api/user/profile").json()
        assert profile["user"]["name"] == "Alice Liddell"
        assert profile["volunteer"]["name"] == "Alice Liddell"

    def test_removed_volunteer_cannot_sign_in(self, client):
        alice, _, _ = _setup_team(client)
        response = client.delete(f"/api/volunteers/{alice['volunteer_id']}")
        assert response.status_code == 200

        response = client.post("/api/login", json={"email": "alice@example.org", "password": VOLUNTEER_PASSWORD})
        assert response.status_code == 401

    def test_removed_volunteer_loses_open_session(self, client):
        alice, _, event = _setup_team(client)
        task = create_task(client, event["event_id"], [alice["volunteer_id"]])

        alice_client = another_client()
        sign_in(alice_client, "alice@example.org", VOLUNTEER_PASSWORD)
        assert alice_client.get("/api/user/profile").status_code == 200

        assert client.delete(f"/api/volunteers/{alice['volunteer_id']}").status_code == 200

        assert alice_client.post(f"/api/tasks/{task['task_id']}/complete").status_code == 401
        assert alice_client.get("/api/user/profile").status_code == 401

    def test_role_change_applies_to_open_session(self, client):
        sign_in_admin(client)
        bob = add_volunteer(client, "Bob", "bob@example.org", role="Admin")
        event_payload = {"name": "Clothing Swap", "description": "Spring edition", "date": "2099-04-01"}

        bob_client = another_client()
        sign_in(bob_client, "bob@example.org", VOLUNTEER_PASSWORD)
        assert bob_client.post("/api/events", json=event_payload).status_code == 201

        response = client.put(f"/api/volunteers/{bob['volunteer_id']}", json={"role": "Volunteer"})
        assert response.status_code == 200

        assert bob_client.post("/api/events", json=event_payload).status_code == 403
        assert bob_client.get("/api/user/profile").json()["user"]["role"] == "Volunteer"

    def test_removing_team_member_lets_the_rest_complete(self, client):
        alice, bob, event = _setup_team(client)
        task = create_task(client, event["event_id"], [alice["volunteer_id"], bob["volunteer_id"]], task_type="Team")

        alice_client = another_client()
        sign_in(alice_client, "alice@example.org", VOLUNTEER_PASSWORD)
        response = alice_client.post("/api/requests", json={
            "task_id": task["task_id"], "to_volunteer_id": bob["volunteer_id"], "reason": "travel"
        })
        assert response.status_code == 201
        assert alice_client.post(f"/api/tasks/{task['task_id']}/present").json()["completed"] is False

        assert client.delete(f"/api/volunteers/{bob['volunteer_id']}").status_code == 200
        assert client.get("/api/requests").json()["requests"] == []

        response = alice_client.post(f"/api/tasks/{task['task_id']}/present")
        assert response.json()["completed"] is True
        assert response.json()["task"]["status"] == "Completed"
        assert response.json()["task"]["assigned_volunteer_ids"] == [alice["volunteer_id"]]


class TestTasks:

    def test_team_task_scenario(self, client):
        alice, bob, event = _setup_team(client)
        task = create_task(client, event["event_id"], [alice["volunteer_id"], bob["volunteer_id"]], task_type="Team")

        sign_in(client, "alice@example.org", VOLUNTEER_PASSWORD)
        response = client.post(f"/api/tasks/{task['task_id']}/present")
        assert response.status_code == 200
        assert response.json()["completed"] is False
        assert response.json()["task"]["status"] == "Pending"

        sign_in(client, "bob@example.org", VOLUNTEER_PASSWORD)
        response = client.post(f"/api/tasks/{task['task_id']}/present")
        assert response.json()["completed"] is True
        assert response.json()["task"]["status"] == "Completed"

        response = client.post(f"/api/tasks/{task['task_id']}/present")
        assert response.json()["completed"] is False

    def test_individual_completion_praises_once(self, client):
        alice, _, event = _setup_team(client)
        task = create_task(client, event["event_id"], [alice["volunteer_id"]])

        sign_in(client, "alice@example.org", VOLUNTEER_PASSWORD)
        first = client.post(f"/api/tasks/{task['task_id']}/complete").json()
        assert first["task"]["status"] == "Completed"
        assert "Alice" in first["praise"]

        second = client.post(f"/api/tasks/{task['task_id']}/complete").json()
        assert second["task"]["status"] == "Completed"
        assert second["praise"] is None

    def test_my_tasks(self, client):
        alice, bob, event = _setup_team(client)
        create_task(client, event["event_id"], [alice["volunteer_id"]], name="Flyers")
        create_task(client, event["event_id"], [bob["volunteer_id"]], name="Photos")

        sign_in(client, "alice@example.org", VOLUNTEER_PASSWORD)
        data = client.get("/api/tasks/mine").json()
        assert data["count"] == 1
        assert data["tasks"][0]["name"] == "Flyers"

    def test_reassignment(self, client):
        alice, bob, event = _setup_team(client)
        task = create_task(client, event["event_id"], [alice["volunteer_id"]], task_type="Team")

        response = client.put(f"/api/tasks/{task['task_id']}/assignees",
                              json={"volunteer_ids": [bob["volunteer_id"]]})
        assert response.status_code == 200
        assert response.json()["task"]["completion"] == {bob["volunteer_id"]: False}

    def test_delete_task_with_notes(self, client):
        alice, _, event = _setup_team(client)
        task = create_task(client, event["event_id"], [alice["volunteer_id"]])
        for text in ("Designed the poster", "Printed 200 copies"):
            response = client.post(f"/api/tasks/{task['task_id']}/notes",
                                   json={"volunteer_id": alice["volunteer_id"], "note": text})
            assert response.status_code == 201

        notes = client.get(f"/api/tasks/{task['task_id']}").json()["task"]["contribution_notes"]
        assert len(notes) == 2

        response = client.delete(f"/api/tasks/{task['task_id']}")
        assert response.status_code == 200
        assert response.json()["notes_deleted"] == 2
        assert client.get(f"/api/tasks/{task['task_id']}").status_code == 404

    def test_task_for_missing_event(self, client):
        sign_in_admin(client)
        response = client.post("/api/tasks", json={"event_id": "nope", "name": "X", "deadline": "2099-01-01"})
        assert response.status_code == 404


class TestRemapping:

    def test_request_and_approval_scenario(self, client):
        alice, bob, event = _setup_team(client)
        task = create_task(client, event["event_id"], [alice["volunteer_id"]])

        sign_in(client, "alice@example.org", VOLUNTEER_PASSWORD)
        response = client.post("/api/requests", json={
            "task_id": task["task_id"],
            "to_volunteer_id": bob["volunteer_id"],
            "reason": "scheduling conflict",
        })
        assert response.status_code == 201
        request = response.json()["request"]
        assert request["status"] == "Pending"

        sign_in_admin(client)
        assert len(client.get("/api/requests").json()["requests"]) == 1
        response = client.post(f"/api/requests/{request['request_id']}/decision", json={"status": "Accepted"})
        assert response.status_code == 200
        assert response.json()["request"]["status"] == "Accepted"

        stored = client.get(f"/api/tasks/{task['task_id']}").json()["task"]
        assert alice["volunteer_id"] not in stored["assigned_volunteer_ids"]
        assert bob["volunteer_id"] in stored["assigned_volunteer_ids"]

        response = client.post(f"/api/requests/{request['request_id']}/decision", json={"status": "Rejected"})
        assert response.status_code == 409

    def test_request_needs_reason(self, client):
        alice, bob, event = _setup_team(client)
        task = create_task(client, event["event_id"], [alice["volunteer_id"]])

        sign_in(client, "alice@example.org", VOLUNTEER_PASSWORD)
        response = client.post("/api/requests", json={"task_id": task["task_id"], "to_volunteer_id": bob["volunteer_id"]})
        assert response.status_code == 400

    def test_only_receiver_or_admin_decides(self, client):
        alice, bob, event = _setup_team(client)
        task = create_task(client, event["event_id"], [alice["volunteer_id"]])

        sign_in(client, "alice@example.org", VOLUNTEER_PASSWORD)
        request = client.post("/api/requests", json={
            "task_id": task["task_id"], "to_volunteer_id": bob["volunteer_id"], "reason": "travel"
        }).json()["request"]

        response = client.post(f"/api/requests/{request['request_id']}/decision", json={"status": "Accepted"})
        assert response.status_code == 403

        sign_in(client, "bob@example.org", VOLUNTEER_PASSWORD)
        assert len(client.get("/api/requests").json()["requests"]) == 1
        response = client.post(f"/api/requests/{request['request_id']}/decision", json={"status": "Rejected"})
        assert response.status_code == 200


class TestEvents:

    def test_upcoming_and_past_with_progress(self, client):
        alice, _, event = _setup_team(client)
        past_date = (dt.date.today() - dt.timedelta(days=30)).isoformat()
        create_event(client, name="Last Year Gala", date=past_date)

        create_task(client, event["event_id"], [alice["volunteer_id"]], name="Flyers")
        create_task(client, event["event_id"], [alice["volunteer_id"]], name="Tables")

        sign_in(client, "alice@example.org", VOLUNTEER_PASSWORD)
        mine = client.get("/api/tasks/mine").json()["tasks"]
        client.post(f"/api/tasks/{mine[0]['task_id']}/complete")

        upcoming = client.get("/api/events").json()["events"]
        assert [e["name"] for e in upcoming] == ["Beach Cleanup"]
        assert upcoming[0]["progress"] == 50
        assert upcoming[0]["assigned_volunteer_ids"] == [alice["volunteer_id"]]

        past = client.get("/api/events", params={"scope": "past"}).json()["events"]
        assert [e["name"] for e in past] == ["Last Year Gala"]
        assert past[0]["progress"] == 0

    def test_postpone_requires_date(self, client):
        _, _, event = _setup_team(client)
        url = f"/api/events/{event['event_id']}/status"

        assert client.put(url, json={"status": "Postponed"}).status_code == 400

        response = client.put(url, json={"status": "Postponed", "date": "2099-07-15"})
        assert response.status_code == 200
        assert response.json()["event"]["status"] == "Postponed"
        assert response.json()["event"]["date"] == "2099-07-15"

        response = client.put(url, json={"status": "Completed"})
        assert response.json()["event"]["status"] == "Completed"
        assert response.json()["event"]["date"] == "2099-07-15"

    def test_departments_in_event_detail(self, client):
        alice, bob, event = _setup_team(client)
        response = client.post(f"/api/events/{event['event_id']}/departments", json={
            "name": "Catering", "volunteer_ids": [alice["volunteer_id"], bob["volunteer_id"]]
        })
        assert response.status_code == 201

        detail = client.get(f"/api/events/{event['event_id']}").json()
        assert [d["name"] for d in detail["event"]["departments"]] == ["Catering"]
        assert detail["event"]["departments"][0]["volunteer_ids"] == [alice["volunteer_id"], bob["volunteer_id"]]

    def test_department_for_missing_event(self, client):
        sign_in_admin(client)
        response = client.post("/api/events/nope/departments", json={"name": "Catering"})
        assert response.status_code == 404


class TestMeetingsAndAnnouncements:

    def test_meeting_visibility(self, client):
        alice, bob, _ = _setup_team(client)
        for payload in (
            {"title": "All hands", "audience_mode": "all"},
            {"title": "Logistics sync", "audience_mode": "teams", "teams": ["logistics"]},
            {"title": "Bob 1:1", "audience_mode": "specific", "attendees": [bob["volunteer_id"]]},
        ):
            payload.update({"date": "2099-04-01", "time": "18:30", "location": "Hall B", "type": "Offline"})
            assert client.post("/api/meetings", json=payload).status_code == 201

        assert len(client.get("/api/meetings").json()["meetings"]) == 3

        sign_in(client, "alice@example.org", VOLUNTEER_PASSWORD)
        titles = {m["title"] for m in client.get("/api/meetings").json()["meetings"]}
        assert titles == {"All hands", "Logistics sync"}

        sign_in(client, "bob@example.org", VOLUNTEER_PASSWORD)
        titles = {m["title"] for m in client.get("/api/meetings").json()["meetings"]}
        assert titles == {"All hands", "Bob 1:1"}

    def test_meeting_audience_must_not_be_empty(self, client):
        sign_in_admin(client)
        response = client.post("/api/meetings", json={
            "title": "Team sync", "date": "2099-04-01", "time": "09:00",
            "location": "Online", "audience_mode": "teams", "teams": []
        })
        assert response.status_code == 400

    def test_meeting_time_format(self, client):
        sign_in_admin(client)
        response = client.post("/api/meetings", json={
            "title": "Team sync", "date": "2099-04-01", "time": "25:00", "location": "Online"
        })
        assert response.status_code == 422

    def test_teams_listing(self, client):
        _setup_team(client)
        assert client.get("/api/volunteers/teams").json()["teams"] == ["Logistics", "Media"]

    def test_announcements(self, client):
        sign_in_admin(client)
        response = client.post("/api/announcements", json={"title": "Welcome", "content": "Hello all"})
        assert response.status_code == 201
        announcement = response.json()["announcement"]
        assert announcement["author"] == "Ada Admin"

        listed = client.get("/api/announcements").json()["announcements"]
        assert [a["title"] for a in listed] == ["Welcome"]

        response = client.delete(f"/api/announcements/{announcement['announcement_id']}")
        assert response.status_code == 200
        assert client.get("/api/announcements").json()["announcements"] == []

    def test_dashboard(self, client):
        alice, bob, event = _setup_team(client)
        task = create_task(client, event["event_id"], [alice["volunteer_id"]])

        sign_in(client, "alice@example.org", VOLUNTEER_PASSWORD)
        client.post("/api/requests", json={
            "task_id": task["task_id"], "to_volunteer_id": bob["volunteer_id"], "reason": "travel"
        })

        sign_in_admin(client)
        data = client.get("/api/dashboard").json()
        assert data["volunteer_count"] == 3
        assert data["task_count"] == 1
        assert data["pending_request_count"] == 1
        assert len(data["recent_requests"]) == 1
        assert data["events"][0]["event_id"] == event["event_id"]
