import pytest


def _create(client, headers, workspace_id, **fields):
    payload = {"title": "Task", "workspaceId": workspace_id, **fields}
    r = client.post("/api/tasks", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def test_create_task_defaults(client, user, workspace):
    r = client.post("/api/tasks", json={"title": "  My Task  ", "workspaceId": workspace["id"]}, headers=user["headers"])
    assert r.status_code == 201
    task = r.json()
    assert task["title"] == "My Task"
    assert task["description"] == ""
    assert task["status"] == "todo"
    assert task["priority"] == "medium"
    assert task["color"] is None
    assert task["dueDate"] is None
    assert task["position"] == 1024
    assert task["owner"] == user["id"]
    assert task["workspaceId"] == workspace["id"]
    assert "createdAt" in task


def test_positions_step_by_1024_per_column(client, user, workspace):
    headers, ws = user["headers"], workspace["id"]
    todo = [_create(client, headers, ws, title=f"t{i}")["position"] for i in range(4)]
    assert todo == [1024, 2048, 3072, 4096]

    # other columns and other workspaces keep their own sequence
    done = _create(client, headers, ws, title="d", status="completed")
    assert done["position"] == 1024
    other = client.post("/api/workspaces", json={"name": "Other"}, headers=headers).json()
    assert _create(client, headers, other["id"])["position"] == 1024


def test_create_task_validation(client, user, workspace):
    headers = user["headers"]
    r = client.post("/api/tasks", json={"description": "No title", "workspaceId": workspace["id"]}, headers=headers)
    assert r.status_code == 400
    assert "title" in r.json()["errors"]

    r = client.post("/api/tasks", json={"title": "   ", "workspaceId": workspace["id"]}, headers=headers)
    assert r.status_code == 400
    assert r.json()["errors"]["title"] == ["Title is required"]

    r = client.post("/api/tasks", json={"title": "No workspace"}, headers=headers)
    assert r.status_code == 400
    assert "workspaceId" in r.json()["errors"]

    r = client.post("/api/tasks", json={"title": "x", "workspaceId": workspace["id"], "status": "blocked"}, headers=headers)
    assert r.status_code == 400
    assert "status" in r.json()["errors"]

    r = client.post("/api/tasks", json={"title": "x", "workspaceId": workspace["id"], "dueDate": "tomorrow"}, headers=headers)
    assert r.status_code == 400
    assert "dueDate" in r.json()["errors"]

    r = client.post("/api/tasks", json=["not", "an", "object"], headers=headers)
    assert r.status_code == 400


def test_create_task_requires_auth(client, workspace):
    r = client.post("/api/tasks", json={"title": "No Auth", "workspaceId": workspace["id"]})
    assert r.status_code == 401
    assert r.json()["message"] == "No token provided"

    r = client.post(
        "/api/tasks",
        json={"title": "Bad Auth", "workspaceId": workspace["id"]},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid or expired token"

    r = client.get("/api/tasks", headers={"Authorization": "Token abc"})
    assert r.status_code == 401


def test_create_task_in_foreign_workspace_is_not_found(client, user, other_user, workspace):
    r = client.post("/api/tasks", json={"title": "Sneaky", "workspaceId": workspace["id"]}, headers=other_user["headers"])
    assert r.status_code == 404


def test_member_can_add_tasks_to_shared_workspace(client, user, other_user, workspace, add_member):
    add_member(workspace["id"], other_user["id"])
    task = _create(client, other_user["headers"], workspace["id"], title="Shared")
    assert task["owner"] == other_user["id"]
    assert task["position"] == 1024


@pytest.mark.parametrize("due, expected_prefix", [
    ("2025-12-31", "2025-12-31T00:00:00"),
    ("2025-12-31T10:30:00Z", "2025-12-31T10:30:00"),
    ("2025-12-31T12:30:00+02:00", "2025-12-31T10:30:00"),
])
def test_due_date_formats(client, user, workspace, due, expected_prefix):
    task = _create(client, user["headers"], workspace["id"], dueDate=due)
    assert task["dueDate"].startswith(expected_prefix)


def test_due_date_round_trip_and_clear(client, user, workspace):
    headers = user["headers"]
    created = _create(client, headers, workspace["id"], title="X", dueDate="2025-12-31")

    listed = client.get("/api/tasks", headers=headers).json()
    match = [t for t in listed if t["id"] == created["id"]][0]
    assert match["title"] == "X"
    assert match["dueDate"].startswith("2025-12-31")

    r = client.put(f"/api/tasks/{created['id']}", json={"dueDate": None}, headers=headers)
    assert r.status_code == 200
    assert r.json()["dueDate"] is None

    listed = client.get("/api/tasks", headers=headers).json()
    assert [t for t in listed if t["id"] == created["id"]][0]["dueDate"] is None


def test_update_is_partial(client, user, workspace):
    headers = user["headers"]
    created = _create(client, headers, workspace["id"], title="Keep", description="desc", priority="high", color="#ff0000")
    r = client.put(f"/api/tasks/{created['id']}", json={"status": "completed"}, headers=headers)
    assert r.status_code == 200
    updated = r.json()
    assert updated["status"] == "completed"
    assert updated["title"] == "Keep"
    assert updated["description"] == "desc"
    assert updated["priority"] == "high"
    assert updated["color"] == "#ff0000"
    assert updated["position"] == created["position"]


def test_update_validation(client, user, workspace):
    headers = user["headers"]
    created = _create(client, headers, workspace["id"])
    for body in ({"title": ""}, {"title": None}, {"status": None}, {"priority": "urgent"}):
        r = client.put(f"/api/tasks/{created['id']}", json=body, headers=headers)
        assert r.status_code == 400, body


def test_other_user_cannot_touch_task(client, user, other_user, workspace):
    created = _create(client, user["headers"], workspace["id"])
    r = client.put(f"/api/tasks/{created['id']}", json={"title": "Hijack"}, headers=other_user["headers"])
    assert r.status_code == 404
    assert r.json()["message"] == "Task not found"
    r = client.delete(f"/api/tasks/{created['id']}", headers=other_user["headers"])
    assert r.status_code == 404

    # indistinguishable from a task that never existed
    missing = client.put("/api/tasks/999999", json={"title": "Ghost"}, headers=other_user["headers"])
    assert missing.status_code == 404
    assert missing.json() == r.json()

    assert client.get("/api/tasks", headers=other_user["headers"]).json() == []
    mine = client.get("/api/tasks", headers=user["headers"]).json()
    assert mine[0]["title"] == "Task"


def test_delete_task(client, user, workspace):
    headers = user["headers"]
    created = _create(client, headers, workspace["id"])
    r = client.delete(f"/api/tasks/{created['id']}", headers=headers)
    assert r.status_code == 200
    assert r.json() == {"message": "Task deleted"}
    assert client.get("/api/tasks", headers=headers).json() == []
    assert client.delete(f"/api/tasks/{created['id']}", headers=headers).status_code == 404


def test_list_order_and_workspace_filter(client, user, workspace):
    headers = user["headers"]
    a = _create(client, headers, workspace["id"], title="a")
    b = _create(client, headers, workspace["id"], title="b")
    other = client.post("/api/workspaces", json={"name": "Other"}, headers=headers).json()
    c = _create(client, headers, other["id"], title="c")

    # move b to the top of the column
    client.put("/api/tasks/batch", json={"tasks": [{"_id": b["id"], "status": "todo", "position": 512}]}, headers=headers)

    everything = client.get("/api/tasks", headers=headers).json()
    assert [t["title"] for t in everything] == ["b", "c", "a"]

    scoped = client.get("/api/tasks", params={"workspaceId": workspace["id"]}, headers=headers).json()
    assert [t["id"] for t in scoped] == [b["id"], a["id"]]

    # equal positions fall back to newest first
    assert c["position"] == a["position"] == 1024
    assert [t["id"] for t in everything if t["position"] == 1024] == [c["id"], a["id"]]


def test_batch_reorder_moves_between_columns(client, user, workspace):
    headers = user["headers"]
    t1 = _create(client, headers, workspace["id"], title="one")
    t2 = _create(client, headers, workspace["id"], title="two")
    t3 = _create(client, headers, workspace["id"], title="three", status="in-progress")

    r = client.put("/api/tasks/batch", json={"tasks": [
        {"_id": t1["id"], "status": "in-progress", "position": 1024},
        {"_id": t3["id"], "status": "in-progress", "position": 2048},
        {"_id": t2["id"], "status": "todo", "position": 1024},
    ]}, headers=headers)
    assert r.status_code == 200
    assert r.json() == {"message": "Tasks updated"}

    tasks = {t["id"]: t for t in client.get("/api/tasks", headers=headers).json()}
    assert (tasks[t1["id"]]["status"], tasks[t1["id"]]["position"]) == ("in-progress", 1024)
    assert (tasks[t3["id"]]["status"], tasks[t3["id"]]["position"]) == ("in-progress", 2048)
    assert (tasks[t2["id"]]["status"], tasks[t2["id"]]["position"]) == ("todo", 1024)


def test_batch_reorder_ignores_foreign_tasks(client, user, other_user, workspace):
    mine = _create(client, user["headers"], workspace["id"])
    r = client.put("/api/tasks/batch", json={"tasks": [
        {"_id": mine["id"], "status": "completed", "position": 4096},
    ]}, headers=other_user["headers"])
    assert r.status_code == 200

    task = client.get("/api/tasks", headers=user["headers"]).json()[0]
    assert task["status"] == "todo"
    assert task["position"] == 1024


def test_batch_reorder_respaces_colliding_positions(client, user, workspace):
    headers = user["headers"]
    a = _create(client, headers, workspace["id"], title="a")
    b = _create(client, headers, workspace["id"], title="b")
    c = _create(client, headers, workspace["id"], title="c")

    # drop c onto a's position
    r = client.put("/api/tasks/batch", json={"tasks": [{"_id": c["id"], "status": "todo", "position": 1024}]}, headers=headers)
    assert r.status_code == 200

    tasks = client.get("/api/tasks", params={"workspaceId": workspace["id"]}, headers=headers).json()
    positions = [t["position"] for t in tasks]
    assert positions == [1024, 2048, 3072]
    assert [t["id"] for t in tasks] == [c["id"], a["id"], b["id"]]


def test_batch_reorder_validation(client, user, workspace):
    headers = user["headers"]
    t = _create(client, headers, workspace["id"])
    bad_bodies = [
        {"tasks": "nope"},
        {"tasks": [{"_id": t["id"], "status": "archived", "position": 1}]},
        {"tasks": [{"_id": t["id"], "status": "todo", "position": "high"}]},
        {"tasks": [{"_id": t["id"], "status": "todo", "position": 2 ** 70}]},
        {"tasks": [{"_id": t["id"], "status": "todo", "position": -1}]},
        {"tasks": [{"_id": 2 ** 70, "status": "todo", "position": 1024}]},
        {"tasks": [
            {"_id": t["id"], "status": "todo", "position": 1},
            {"_id": t["id"], "status": "todo", "position": 2},
        ]},
        {},
    ]
    for body in bad_bodies:
        r = client.put("/api/tasks/batch", json=body, headers=headers)
        assert r.status_code == 400, body

    r = client.put("/api/tasks/batch", json={"tasks": []}, headers=headers)
    assert r.status_code == 200
