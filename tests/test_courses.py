import io

from classes.enrollment_manager import EnrollmentManager
from classes.progress_manager import ProgressManager
from models import db
from models.course_reviews import CourseReview
from models.courses import Course
from models.enrollments import Enrollment
from models.lessons import Lesson
from models.sections import Section


def test_create_course_requires_instructor_role(client, student, auth_headers):
    response = client.post("/api/courses", headers=auth_headers(student), json={"title": "Mine"})

    assert response.status_code == 403
    assert response.get_json()["error"] == "User role student is not authorized to access this route"


def test_create_course_from_form_with_cover(client, instructor, auth_headers, monkeypatch):
    uploads = []

    def fake_upload(file, owner_id):
        uploads.append((file.filename, owner_id))
        return "https://files.example.com/cover.png", "/course-platform/covers/cover.png"

    monkeypatch.setattr("routes.courses.upload_cover_image", fake_upload)

    response = client.post(
        "/api/courses",
        headers=auth_headers(instructor),
        data={
            "title": "Painting",
            "description": "<p>Colours</p><script>alert(1)</script>",
            "price": "19.99",
            "tags": "art, colour",
            "coverImage": (io.BytesIO(b"png-bytes"), "cover.png"),
        },
        content_type="multipart/form-data",
    )

    assert response.status_code == 201
    data = response.get_json()["data"]
    assert data["instructor_id"] == instructor.id
    assert data["is_published"] is False
    assert data["price"] == 19.99
    assert data["tags"] == ["art", "colour"]
    assert data["cover_image_url"] == "https://files.example.com/cover.png"
    assert "<script>" not in data["description"]
    assert uploads == [("cover.png", instructor.id)]


def test_update_course_cannot_change_owner(client, instructor, make_user, make_course, auth_headers):
    course = make_course(instructor)
    other = make_user("instructor")

    forbidden = client.put(f"/api/courses/{course.id}", headers=auth_headers(other), json={"title": "Stolen"})
    assert forbidden.status_code == 403

    response = client.put(f"/api/courses/{course.id}", headers=auth_headers(instructor),
                          json={"title": "Renamed", "instructor_id": other.id, "is_published": True})
    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["title"] == "Renamed"
    assert data["instructor_id"] == instructor.id
    assert data["is_published"] is False


def test_delete_course_by_other_instructor_is_forbidden(client, instructor, make_user, make_course, auth_headers):
    course = make_course(instructor)
    other = make_user("instructor")

    response = client.delete(f"/api/courses/{course.id}", headers=auth_headers(other), json={"is_admin": True})

    assert response.status_code == 403
    assert db.session.get(Course, course.id) is not None


def test_update_course_rejects_null_title(client, instructor, make_course, auth_headers):
    course = make_course(instructor)

    response = client.put(f"/api/courses/{course.id}", headers=auth_headers(instructor), json={"title": None})

    assert response.status_code == 400


def test_publish_and_unpublish(client, instructor, make_course, auth_headers):
    course = make_course(instructor)
    headers = auth_headers(instructor)

    published = client.put(f"/api/courses/{course.id}/publish", headers=headers)
    assert published.status_code == 200
    assert published.get_json()["data"]["published_at"] is not None

    again = client.put(f"/api/courses/{course.id}/publish", headers=headers)
    assert again.status_code == 400
    assert again.get_json()["error"] == "Course is already published"

    assert client.put(f"/api/courses/{course.id}/unpublish", headers=headers).status_code == 200
    not_published = client.put(f"/api/courses/{course.id}/unpublish", headers=headers)
    assert not_published.get_json()["error"] == "Course is not published"


def test_draft_course_is_hidden(client, instructor, student, make_course, auth_headers):
    course = make_course(instructor)

    assert client.get(f"/api/courses/{course.id}").status_code == 403
    assert client.get(f"/api/courses/{course.id}", headers=auth_headers(student)).status_code == 403
    assert client.get(f"/api/courses/{course.id}", headers=auth_headers(instructor)).status_code == 200


def test_unknown_course_and_route(client):
    missing = client.get("/api/courses/does-not-exist")
    assert missing.status_code == 404
    assert missing.get_json()["error"] == "Course not found"

    route = client.get("/api/nowhere")
    assert route.status_code == 404
    assert route.get_json() == {"success": False, "error": "Not Found - /api/nowhere"}


def test_list_courses_filters_and_paginates(client, instructor, make_course):
    for i in range(12):
        make_course(instructor, published=True, title=f"Course {i:02d}", price=float(i),
                    category="data" if i % 2 else "design")
    make_course(instructor, title="Draft")

    page = client.get("/api/courses?limit=5&page=3&sortBy=title&sortOrder=asc").get_json()
    assert page["total"] == 12
    assert page["totalPages"] == 3
    assert page["currentPage"] == 3
    assert [course["title"] for course in page["data"]] == ["Course 10", "Course 11"]
    assert page["data"][0]["instructor"]["id"] == instructor.id

    filtered = client.get("/api/courses?category=data&price_min=5&price_max=9").get_json()
    assert sorted(course["price"] for course in filtered["data"]) == [5.0, 7.0, 9.0]

    search = client.get("/api/courses?search=course+0").get_json()
    assert search["total"] == 10


def test_list_courses_rejects_bad_paging(client):
    assert client.get("/api/courses?limit=1000").status_code == 400
    assert client.get("/api/courses?page=0").status_code == 400
    assert client.get("/api/courses?sortBy=password").status_code == 400


def test_instructor_listing_includes_drafts(client, instructor, make_course, auth_headers):
    make_course(instructor, published=True, title="Live")
    make_course(instructor, title="Draft")

    everything = client.get("/api/courses/instructor", headers=auth_headers(instructor)).get_json()
    drafts = client.get("/api/courses/instructor?is_published=false", headers=auth_headers(instructor)).get_json()

    assert everything["total"] == 2
    assert [course["title"] for course in drafts["data"]] == ["Draft"]


def test_my_courses_for_student(client, published_course, student, auth_headers):
    course, _, _ = published_course
    EnrollmentManager.enroll_student(course.id, student)

    body = client.get("/api/courses/me", headers=auth_headers(student)).get_json()

    assert body["count"] == 1
    assert body["data"][0]["id"] == course.id
    assert body["data"][0]["progress_percentage"] == 0


def test_course_detail_reports_enrollment(client, published_course, student, auth_headers):
    course, section, lessons = published_course
    EnrollmentManager.enroll_student(course.id, student)

    data = client.get(f"/api/courses/{course.id}", headers=auth_headers(student)).get_json()["data"]

    assert data["is_enrolled"] is True
    assert data["sections"][0]["id"] == section.id
    assert [lesson["id"] for lesson in data["sections"][0]["lessons"]] == [lesson.id for lesson in lessons]


def test_delete_course_removes_children(client, published_course, instructor, student, auth_headers):
    course, _, lessons = published_course
    course_id = course.id
    enrollment = EnrollmentManager.enroll_student(course_id, student)
    ProgressManager.mark_lesson_complete(enrollment, lessons[0].id)

    response = client.delete(f"/api/courses/{course_id}", headers=auth_headers(instructor))

    assert response.status_code == 200
    db.session.expunge_all()
    assert db.session.get(Course, course_id) is None
    assert Section.query.filter_by(course_id=course_id).count() == 0
    assert Lesson.query.filter_by(course_id=course_id).count() == 0
    assert Enrollment.query.filter_by(course_id=course_id).count() == 0


def test_reviews_require_completed_course(client, published_course, student, auth_headers):
    course, _, lessons = published_course
    headers = auth_headers(student)
    enrollment = EnrollmentManager.enroll_student(course.id, student)

    early = client.post(f"/api/courses/{course.id}/reviews", headers=headers, json={"rating": 5})
    assert early.status_code == 403

    for lesson in lessons:
        ProgressManager.mark_lesson_complete(enrollment, lesson.id)
    ProgressManager.recompute_progress(enrollment)

    created = client.post(f"/api/courses/{course.id}/reviews", headers=headers, json={"rating": 4, "comment": "Good"})
    assert created.status_code == 201
    duplicate = client.post(f"/api/courses/{course.id}/reviews", headers=headers, json={"rating": 3})
    assert duplicate.status_code == 400
    out_of_range = client.post(f"/api/courses/{course.id}/reviews", headers=headers, json={"rating": 6})
    assert out_of_range.status_code == 400

    listing = client.get(f"/api/courses/{course.id}/reviews").get_json()
    assert listing["count"] == 1
    assert listing["average_rating"] == 4
    assert CourseReview.query.filter_by(course_id=course.id).count() == 1


def test_study_materials_are_for_enrolled_students(client, published_course, instructor, student, auth_headers):
    course, section, _ = published_course

    created = client.post(f"/api/courses/{course.id}/materials", headers=auth_headers(instructor), json={
        "title": "Slides",
        "file_url": "https://files.example.com/slides.pdf",
        "section_id": section.id,
    })
    assert created.status_code == 201
    material_id = created.get_json()["data"]["id"]

    assert client.get(f"/api/courses/{course.id}/materials", headers=auth_headers(student)).status_code == 403
    EnrollmentManager.enroll_student(course.id, student)
    listing = client.get(f"/api/courses/{course.id}/materials", headers=auth_headers(student)).get_json()
    assert [item["id"] for item in listing["data"]] == [material_id]

    removed = client.delete(f"/api/courses/{course.id}/materials/{material_id}", headers=auth_headers(instructor))
    assert removed.status_code == 200
