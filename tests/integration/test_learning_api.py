"""Integration tests for courses, sub-courses and derived progress."""

from __future__ import annotations


def create_course(client, headers, title="Rust", **extra):
    response = client.post("/api/courses", json={"title": title, **extra}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def add_sub(client, headers, course_id, title):
    response = client.post(
        f"/api/courses/{course_id}/subcourses", json={"title": title}, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestCourses:
    def test_create_defaults(self, client, auth_headers):
        course = create_course(client, auth_headers)

        assert course["status"] == "Pending"
        assert course["progress"] == 0
        assert course["priority"] == "medium"
        assert course["icon"] == "📚"

    def test_title_required(self, client, auth_headers):
        assert client.post("/api/courses", json={"title": "  "}, headers=auth_headers).status_code == 400

    def test_progress_follows_subcourses(self, client, auth_headers):
        course = create_course(client, auth_headers)
        first = add_sub(client, auth_headers, course["id"], "Ownership")["data"]
        body = add_sub(client, auth_headers, course["id"], "Lifetimes")
        add_sub(client, auth_headers, course["id"], "Traits")

        assert body["course"]["progress"] == 0
        assert body["data"]["position"] == 1

        done = client.post(f"/api/subcourses/{first['id']}/complete", headers=auth_headers).json()
        assert done["data"]["status"] == "Completed"
        assert done["data"]["completedAt"] is not None
        assert done["course"]["progress"] == 33
        assert done["course"]["status"] == "In Progress"

        subs = client.get(f"/api/courses/{course['id']}/subcourses", headers=auth_headers).json()
        assert subs["count"] == 3
        for sub in subs["data"]:
            client.post(f"/api/subcourses/{sub['id']}/complete", headers=auth_headers)

        fetched = client.get(f"/api/courses/{course['id']}", headers=auth_headers).json()["data"]
        assert fetched["progress"] == 100
        assert fetched["status"] == "Completed"
        assert [s["title"] for s in fetched["subcourses"]] == ["Ownership", "Lifetimes", "Traits"]

    def test_reopening_subcourse_lowers_progress(self, client, auth_headers):
        course = create_course(client, auth_headers)
        sub = add_sub(client, auth_headers, course["id"], "Only")["data"]
        client.post(f"/api/subcourses/{sub['id']}/complete", headers=auth_headers)

        response = client.put(
            f"/api/subcourses/{sub['id']}", json={"status": "In Progress"}, headers=auth_headers
        ).json()

        assert response["data"]["completedAt"] is None
        assert response["course"]["progress"] == 0
        assert response["course"]["status"] == "Pending"

    def test_deleting_subcourse_recomputes(self, client, auth_headers):
        course = create_course(client, auth_headers)
        done = add_sub(client, auth_headers, course["id"], "Done")["data"]
        pending = add_sub(client, auth_headers, course["id"], "Pending")["data"]
        client.post(f"/api/subcourses/{done['id']}/complete", headers=auth_headers)

        response = client.delete(f"/api/subcourses/{pending['id']}", headers=auth_headers).json()

        assert response["course"]["progress"] == 100
        assert response["course"]["status"] == "Completed"

    def test_progress_not_writable(self, client, auth_headers):
        course = create_course(client, auth_headers)

        updated = client.put(
            f"/api/courses/{course['id']}",
            json={"progress": 90, "description": "Systems"},
            headers=auth_headers,
        ).json()["data"]

        assert updated["progress"] == 0
        assert updated["description"] == "Systems"

    def test_next_course(self, client, auth_headers):
        assert client.get("/api/courses/next", headers=auth_headers).json().get("data") is None

        create_course(client, auth_headers, title="Low", priority="low")
        high = create_course(client, auth_headers, title="High", priority="high")
        assert client.get("/api/courses/next", headers=auth_headers).json()["data"]["id"] == high["id"]

        started = create_course(client, auth_headers, title="Started", priority="low")
        sub = add_sub(client, auth_headers, started["id"], "a")["data"]
        add_sub(client, auth_headers, started["id"], "b")
        client.post(f"/api/subcourses/{sub['id']}/complete", headers=auth_headers)

        assert client.get("/api/courses/next", headers=auth_headers).json()["data"]["id"] == started["id"]

    def test_list_filters(self, client, auth_headers):
        create_course(client, auth_headers, title="A", category="web")
        create_course(client, auth_headers, title="B", category="ml")

        body = client.get("/api/courses", params={"category": "ml"}, headers=auth_headers).json()
        assert [c["title"] for c in body["data"]] == ["B"]
        assert client.get(
            "/api/courses", params={"status": "Completed"}, headers=auth_headers
        ).json()["count"] == 0

    def test_delete_removes_subcourses(self, client, auth_headers):
        course = create_course(client, auth_headers)
        sub = add_sub(client, auth_headers, course["id"], "x")["data"]

        response = client.delete(f"/api/courses/{course['id']}", headers=auth_headers)

        assert response.json()["message"] == "Course deleted successfully"
        assert client.put(
            f"/api/subcourses/{sub['id']}", json={"title": "y"}, headers=auth_headers
        ).status_code == 404

    def test_isolation(self, client, auth_headers, other_headers):
        course = create_course(client, auth_headers)
        sub = add_sub(client, auth_headers, course["id"], "x")["data"]

        assert client.get(f"/api/courses/{course['id']}", headers=other_headers).status_code == 404
        assert client.post(
            f"/api/courses/{course['id']}/subcourses", json={"title": "z"}, headers=other_headers
        ).status_code == 404
        response = client.post(f"/api/subcourses/{sub['id']}/complete", headers=other_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "Sub-course not found"
