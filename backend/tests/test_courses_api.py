"""
API tests for /api/courses: Teacher/Student scoping, roster, existence-before-role ordering, paging.
"""
from lms_api.models import Module, User


def test_register_login_and_read_own_course_only(register, login, client, make_course):
    c1, c2 = make_course("C1"), make_course("C2")
    assert register("alice", course_id=c1, password="Password123!").status_code == 201
    tokens = login("alice", password="Password123!")
    assert tokens["accessToken"] and tokens["refreshToken"]
    headers = {"Authorization": f"Bearer {tokens['accessToken']}"}
    assert client.get(f"/api/courses/{c1}", headers=headers).status_code == 200
    assert client.get(f"/api/courses/{c2}", headers=headers).status_code == 403


def test_student_reads_only_enrolled_course(auth_headers, client, make_course):
    c1, c2 = make_course("C1"), make_course("C2")
    alice = auth_headers("alice", course_id=c1)

    r = client.get(f"/api/courses/{c1}", headers=alice)
    assert r.status_code == 200
    assert r.json()["name"] == "C1"

    r = client.get(f"/api/courses/{c2}", headers=alice)
    assert r.status_code == 403
    assert r.json()["detail"] == "You do not have access to this course."


def test_teacher_reads_any_course(auth_headers, client, make_course):
    c1, c2 = make_course("C1"), make_course("C2")
    teacher = auth_headers("tina", role="Teacher", course_id=c1)
    assert client.get(f"/api/courses/{c1}", headers=teacher).status_code == 200
    assert client.get(f"/api/courses/{c2}", headers=teacher).status_code == 200


def test_missing_course_is_404_even_for_students(auth_headers, client, make_course):
    c1 = make_course()
    alice = auth_headers("alice", course_id=c1)
    r = client.get("/api/courses/999", headers=alice)
    assert r.status_code == 404
    assert r.json()["detail"] == "Course with ID 999 was not found."


def test_course_requires_authentication(client, make_course):
    c1 = make_course()
    r = client.get(f"/api/courses/{c1}")
    assert r.status_code == 401
    assert client.get("/api/courses/999").status_code == 401


def test_course_includes_modules(auth_headers, client, make_course, make_module):
    c1 = make_course()
    make_module(c1, "Week 1")
    make_module(c1, "Week 2")
    teacher = auth_headers("tina", role="Teacher")
    body = client.get(f"/api/courses/{c1}", headers=teacher).json()
    assert [m["name"] for m in body["modules"]] == ["Week 1", "Week 2"]
    assert body["modules"][0]["courseId"] == c1


def test_roster_excludes_calling_student(auth_headers, client, make_course):
    c1, c2 = make_course("C1"), make_course("C2")
    alice = auth_headers("alice", course_id=c1)
    auth_headers("bob", course_id=c1)
    auth_headers("tina", role="Teacher", course_id=c1)
    auth_headers("dave", course_id=c2)

    r = client.get(f"/api/courses/{c1}/students", headers=alice)
    assert r.status_code == 200
    assert sorted(u["username"] for u in r.json()) == ["bob", "tina"]

    assert client.get(f"/api/courses/{c2}/students", headers=alice).status_code == 403


def test_teacher_sees_full_roster(auth_headers, client, make_course):
    c1, c2 = make_course("C1"), make_course("C2")
    auth_headers("alice", course_id=c1)
    auth_headers("bob", course_id=c1)
    auth_headers("terry", role="Teacher", course_id=c1)
    auth_headers("dave", course_id=c2)
    teacher = auth_headers("tina", role="Teacher")
    r = client.get(f"/api/courses/{c1}/students", headers=teacher)
    assert r.status_code == 200
    assert sorted(u["username"] for u in r.json()) == ["alice", "bob", "terry"]


def test_roster_of_missing_course_is_404(auth_headers, client, make_course):
    alice = auth_headers("alice", course_id=make_course())
    assert client.get("/api/courses/999/students", headers=alice).status_code == 404


def test_course_list_is_teacher_only(auth_headers, client, make_course):
    c1 = make_course()
    alice = auth_headers("alice", course_id=c1)
    assert client.get("/api/courses", headers=alice).status_code == 403


def test_empty_course_list_is_200(auth_headers, client):
    teacher = auth_headers("tina", role="Teacher")
    r = client.get("/api/courses", headers=teacher)
    assert r.status_code == 200
    assert r.json() == {"total": 0, "pageNumber": 1, "pageSize": 10, "items": []}


def test_course_list_paging_sort_and_filter(auth_headers, client, make_course):
    for name in ("Gamma", "Alpha", "Beta"):
        make_course(name, description=f"{name} course")
    teacher = auth_headers("tina", role="Teacher")

    r = client.get("/api/courses", params={"pageSize": 2, "sortBy": "name"}, headers=teacher)
    body = r.json()
    assert body["total"] == 3
    assert [c["name"] for c in body["items"]] == ["Alpha", "Beta"]

    r = client.get("/api/courses", params={"pageNumber": 2, "pageSize": 2, "sortBy": "name"}, headers=teacher)
    assert [c["name"] for c in r.json()["items"]] == ["Gamma"]

    r = client.get("/api/courses", params={"filter": "bet"}, headers=teacher)
    assert [c["name"] for c in r.json()["items"]] == ["Beta"]


def test_invalid_paging_is_400(auth_headers, client):
    teacher = auth_headers("tina", role="Teacher")
    assert client.get("/api/courses", params={"pageSize": 101}, headers=teacher).status_code == 400
    assert client.get("/api/courses", params={"pageNumber": 0}, headers=teacher).status_code == 400


def test_teacher_creates_updates_and_deletes_course(auth_headers, client):
    teacher = auth_headers("tina", role="Teacher")
    r = client.post(
        "/api/courses",
        json={"name": "Databases", "description": "SQL", "startDate": "2025-02-03T09:00:00Z"},
        headers=teacher,
    )
    assert r.status_code == 201, r.text
    course_id = r.json()["id"]

    r = client.put(
        f"/api/courses/{course_id}",
        json={"name": "Databases II", "description": "More SQL", "startDate": "2025-02-03T09:00:00Z"},
        headers=teacher,
    )
    assert r.status_code == 200
    assert r.json()["name"] == "Databases II"

    assert client.delete(f"/api/courses/{course_id}", headers=teacher).status_code == 204
    assert client.get(f"/api/courses/{course_id}", headers=teacher).status_code == 404


def test_deleting_course_unenrolls_users(auth_headers, client, make_course, make_module, db):
    c1 = make_course()
    make_module(c1)
    auth_headers("alice", course_id=c1)
    teacher = auth_headers("tina", role="Teacher")
    assert client.delete(f"/api/courses/{c1}", headers=teacher).status_code == 204

    db.expire_all()
    assert db.query(User).filter(User.username == "alice").one().course_id is None
    assert db.query(Module).count() == 0


def test_student_cannot_mutate_courses(auth_headers, client, make_course):
    c1 = make_course()
    alice = auth_headers("alice", course_id=c1)
    payload = {"name": "Hacked", "description": "", "startDate": "2025-02-03T09:00:00Z"}
    assert client.post("/api/courses", json=payload, headers=alice).status_code == 403
    assert client.put(f"/api/courses/{c1}", json=payload, headers=alice).status_code == 403
    assert client.delete(f"/api/courses/{c1}", headers=alice).status_code == 403
    # Existence is checked first
    assert client.delete("/api/courses/999", headers=alice).status_code == 404
