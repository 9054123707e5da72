from datetime import datetime, timedelta, timezone
from fastapi.testclient import TestClient

from taskflow.core.settings import settings


def _create(client: TestClient, headers, category, title="Task", **extra):
    payload = {"title": title, "category_id": category.id}
    payload.update(extra)
    response = client.post("/tasks/", json=payload, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


def test_requires_token(client: TestClient):
    assert client.get("/tasks/").status_code == 401
    response = client.get("/tasks/", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401

def test_create_task(client: TestClient, user_token_headers, category):
    data = _create(client, user_token_headers, category, "Ship release", priority="high")

    assert data["title"] == "Ship release"
    assert data["priority"] == "High"
    assert data["completion_percentage"] == 0
    assert data["is_completed"] is False
    assert data["user_id"] == 1

def test_create_task_validation_errors(client: TestClient, user_token_headers, category, other_category):
    response = client.post("/tasks/", json={"title": "  ", "category_id": category.id}, headers=user_token_headers)
    assert response.status_code == 400
    assert response.json()["code"] == "invalid_argument"

    response = client.post("/tasks/", json={"title": "Task", "category_id": other_category.id}, headers=user_token_headers)
    assert response.status_code == 400
    assert response.json()["code"] == "invalid_category"

def test_quota_maps_to_conflict(client: TestClient, user_token_headers, category, monkeypatch):
    monkeypatch.setattr(settings, "MAX_TASKS_PER_USER", 1)
    _create(client, user_token_headers, category, "Only one")

    response = client.post("/tasks/", json={"title": "Second", "category_id": category.id}, headers=user_token_headers)
    assert response.status_code == 409
    assert response.json()["code"] == "quota_exceeded"

def test_other_users_tasks_are_not_found(client: TestClient, user_token_headers, other_user_token_headers, category):
    task = _create(client, user_token_headers, category)

    assert client.get(f"/tasks/{task['id']}", headers=other_user_token_headers).status_code == 404
    assert client.patch(f"/tasks/{task['id']}", json={"title": "x"}, headers=other_user_token_headers).status_code == 404
    assert client.delete(f"/tasks/{task['id']}", headers=other_user_token_headers).status_code == 404
    assert client.get(f"/tasks/{task['id']}", headers=user_token_headers).status_code == 200

def test_update_task_partial(client: TestClient, user_token_headers, category):
    task = _create(client, user_token_headers, category, "Draft", description="Keep")

    response = client.patch(f"/tasks/{task['id']}", json={"priority": "Critical"}, headers=user_token_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["priority"] == "Critical"
    assert data["title"] == "Draft"
    assert data["description"] == "Keep"

def test_progress_and_completion(client: TestClient, user_token_headers, category):
    task = _create(client, user_token_headers, category)

    response = client.patch(f"/tasks/{task['id']}/progress", json={"completion_percentage": 150}, headers=user_token_headers)
    assert response.status_code == 400
    assert "0-100" in response.json()["detail"]

    response = client.patch(f"/tasks/{task['id']}/progress", json={"completion_percentage": 100}, headers=user_token_headers)
    assert response.json()["is_completed"] is True
    assert response.json()["completed_at"] is not None

    response = client.patch(f"/tasks/{task['id']}/complete", json={"is_completed": False}, headers=user_token_headers)
    data = response.json()
    assert data["is_completed"] is False
    assert data["completed_at"] is None
    assert data["completion_percentage"] == 0

def test_hierarchy_endpoints(client: TestClient, user_token_headers, category):
    t1 = _create(client, user_token_headers, category, "T1")
    t2 = _create(client, user_token_headers, category, "T2", parent_task_id=t1["id"])
    t3 = _create(client, user_token_headers, category, "T3", parent_task_id=t2["id"])

    depth = client.get(f"/tasks/{t3['id']}/depth", headers=user_token_headers).json()
    assert depth["result"] == 2

    response = client.put(f"/tasks/{t1['id']}/parent", json={"parent_task_id": t3["id"]}, headers=user_token_headers)
    assert response.status_code == 400
    assert response.json()["code"] == "circular_reference"

    subtasks = client.get(f"/tasks/{t1['id']}/subtasks", headers=user_token_headers).json()
    assert [t["id"] for t in subtasks] == [t2["id"]]

    detail = client.get(f"/tasks/{t1['id']}", params={"include_sub_tasks": True}, headers=user_token_headers).json()
    assert [t["id"] for t in detail["sub_tasks"]] == [t2["id"]]

    response = client.delete(f"/tasks/{t3['id']}/parent", headers=user_token_headers)
    assert response.status_code == 200
    assert response.json()["parent_task_id"] is None

def test_delete_cascades(client: TestClient, user_token_headers, category):
    parent = _create(client, user_token_headers, category, "Parent")
    child = _create(client, user_token_headers, category, "Child", parent_task_id=parent["id"])

    check = client.get(f"/tasks/{parent['id']}/deletion-check", headers=user_token_headers).json()
    assert check["sub_task_count"] == 1
    assert check["can_delete"] is True

    response = client.delete(f"/tasks/{parent['id']}", headers=user_token_headers)
    assert response.status_code == 200
    assert response.json()["result"] == parent["id"]

    assert client.get(f"/tasks/{child['id']}", headers=user_token_headers).status_code == 404
    assert client.delete(f"/tasks/{parent['id']}", headers=user_token_headers).status_code == 404

def test_list_tasks_with_pagination(client: TestClient, user_token_headers, category):
    for i in range(3):
        _create(client, user_token_headers, category, f"Task {i}", priority="Low" if i else "High")

    response = client.get("/tasks/", params={"page_size": 2, "sort_by": "title", "sort_ascending": True}, headers=user_token_headers)
    assert response.status_code == 200
    body = response.json()
    assert [t["title"] for t in body["results"]] == ["Task 0", "Task 1"]
    assert body["pagination"]["total_count"] == 3
    assert body["pagination"]["total_pages"] == 2
    assert body["pagination"]["has_next_page"] is True

    high = client.get("/tasks/", params={"priority": "High"}, headers=user_token_headers).json()
    assert [t["title"] for t in high["results"]] == ["Task 0"]

def test_search_and_due_lists(client: TestClient, user_token_headers, category):
    now = datetime.now(timezone.utc)
    _create(client, user_token_headers, category, "Fix login bug", due_date=(now - timedelta(days=2)).isoformat())
    _create(client, user_token_headers, category, "Plan sprint", due_date=(now + timedelta(days=3)).isoformat())

    found = client.get("/tasks/search", params={"q": "LOGIN"}, headers=user_token_headers).json()
    assert [t["title"] for t in found] == ["Fix login bug"]
    assert client.get("/tasks/search", params={"q": " "}, headers=user_token_headers).json() == []

    overdue = client.get("/tasks/overdue", headers=user_token_headers).json()
    assert [t["title"] for t in overdue] == ["Fix login bug"]

    week = client.get("/tasks/due-this-week", headers=user_token_headers).json()
    assert [t["title"] for t in week] == ["Plan sprint"]
    assert client.get("/tasks/due-today", headers=user_token_headers).status_code == 200

def test_stats_endpoints(client: TestClient, user_token_headers, category):
    a = _create(client, user_token_headers, category, "A", priority="High")
    _create(client, user_token_headers, category, "B")
    client.patch(f"/tasks/{a['id']}/complete", json={"is_completed": True}, headers=user_token_headers)

    stats = client.get("/tasks/stats", headers=user_token_headers).json()
    assert stats["total_tasks"] == 2
    assert stats["completed_tasks"] == 1
    assert stats["completion_rate"] == 50.0

    rows = client.get("/tasks/stats/priority", headers=user_token_headers).json()
    assert [r["priority"] for r in rows] == ["Low", "Normal", "High", "Critical"]

    by_category = client.get(f"/tasks/stats/category/{category.id}", headers=user_token_headers).json()
    assert by_category["total_tasks"] == 2
    empty = client.get("/tasks/stats/category/9999", headers=user_token_headers).json()
    assert empty["total_tasks"] == 0

def test_bulk_operations(client: TestClient, user_token_headers, category):
    ids = [_create(client, user_token_headers, category, f"Task {i}")["id"] for i in range(3)]

    response = client.post("/tasks/bulk-complete", json={"task_ids": ids[:2] + [9999]}, headers=user_token_headers)
    assert response.json()["result"] == 2

    response = client.post("/tasks/bulk-delete", json={"task_ids": ids}, headers=user_token_headers)
    assert response.json()["result"] == 3

    assert client.post("/tasks/bulk-delete", json={"task_ids": []}, headers=user_token_headers).status_code == 422
