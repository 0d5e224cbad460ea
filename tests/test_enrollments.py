from models.enrollments import Enrollment
from models.lesson_progress import LessonProgress


def enroll(client, headers, course_id):
    return client.post("/api/enrollments", headers=headers, json={"course_id": course_id})


def test_full_course_walkthrough(client, instructor, student, auth_headers):
    owner = auth_headers(instructor)
    learner = auth_headers(student)

    course_id = client.post("/api/courses", headers=owner, json={"title": "One lesson course"}).get_json()["data"]["id"]
    section_id = client.post(f"/api/courses/{course_id}/sections", headers=owner,
                             json={"title": "Only section"}).get_json()["data"]["id"]
    lesson_id = client.post(f"/api/courses/{course_id}/sections/{section_id}/lessons", headers=owner,
                            json={"title": "Only lesson", "content": "Hello"}).get_json()["data"]["id"]

    draft = enroll(client, learner, course_id)
    assert draft.status_code == 400
    assert draft.get_json()["error"] == "This course is not available for enrollment"

    assert client.put(f"/api/courses/{course_id}/publish", headers=owner).status_code == 200
    enrolled = enroll(client, learner, course_id)
    assert enrolled.status_code == 201
    enrollment_id = enrolled.get_json()["data"]["id"]

    completed = client.put(f"/api/enrollments/{enrollment_id}/progress", headers=learner,
                           json={"lesson_id": lesson_id})
    assert completed.status_code == 200
    assert completed.get_json()["data"]["progress_percentage"] == 100

    progress = client.get(f"/api/enrollments/progress/{course_id}", headers=learner).get_json()
    assert progress["success"] is True
    assert progress["completed_lessons"] == 1
    assert progress["total_lessons"] == 1
    assert progress["progress_percentage"] == 100
    assert progress["completed_at"] is not None
    assert progress["detailed_progress"][0]["completed"] is True


def test_duplicate_enrollment_is_rejected(client, published_course, student, auth_headers):
    course, _, _ = published_course
    headers = auth_headers(student)

    assert enroll(client, headers, course.id).status_code == 201
    again = enroll(client, headers, course.id)

    assert again.status_code == 400
    assert again.get_json()["error"] == "You are already enrolled in this course"
    assert Enrollment.query.filter_by(course_id=course.id).count() == 1


def test_enroll_in_missing_course(client, student, auth_headers):
    response = enroll(client, auth_headers(student), "missing")

    assert response.status_code == 404


def test_progress_update_belongs_to_enrollment_owner(client, published_course, student, make_user, auth_headers):
    course, _, lessons = published_course
    enrollment_id = enroll(client, auth_headers(student), course.id).get_json()["data"]["id"]
    intruder = make_user("student")

    response = client.put(f"/api/enrollments/{enrollment_id}/progress", headers=auth_headers(intruder),
                          json={"lesson_id": lessons[0].id})

    assert response.status_code == 403


def test_progress_rejects_lesson_from_another_course(client, published_course, student, instructor, make_course,
                                                     make_section, make_lesson, auth_headers):
    course, _, _ = published_course
    other = make_course(instructor, title="Other")
    foreign = make_lesson(other, make_section(other))
    enrollment_id = enroll(client, auth_headers(student), course.id).get_json()["data"]["id"]

    response = client.put(f"/api/enrollments/{enrollment_id}/progress", headers=auth_headers(student),
                          json={"lesson_id": foreign.id})

    assert response.status_code == 400
    assert response.get_json()["error"] == "Lesson does not belong to this course"


def test_progress_for_unenrolled_course(client, published_course, student, auth_headers):
    course, _, _ = published_course

    response = client.get(f"/api/enrollments/progress/{course.id}", headers=auth_headers(student))

    assert response.status_code == 404


def test_listing_enrollments(client, published_course, instructor, student, auth_headers):
    course, _, _ = published_course
    enroll(client, auth_headers(student), course.id)

    mine = client.get("/api/enrollments", headers=auth_headers(student)).get_json()
    assert mine["count"] == 1
    assert mine["data"][0]["course"]["id"] == course.id

    roster = client.get(f"/api/enrollments/course/{course.id}", headers=auth_headers(instructor)).get_json()
    assert [item["user"]["id"] for item in roster["data"]] == [student.id]

    denied = client.get(f"/api/enrollments/course/{course.id}", headers=auth_headers(student))
    assert denied.status_code == 403


def test_unenroll_drops_progress(client, published_course, student, auth_headers):
    course, _, lessons = published_course
    headers = auth_headers(student)
    enrollment_id = enroll(client, headers, course.id).get_json()["data"]["id"]
    client.put(f"/api/enrollments/{enrollment_id}/progress", headers=headers, json={"lesson_id": lessons[0].id})

    response = client.delete(f"/api/enrollments/course/{course.id}", headers=headers)

    assert response.status_code == 200
    assert Enrollment.query.filter_by(user_id=student.id).count() == 0
    assert LessonProgress.query.filter_by(user_id=student.id).count() == 0
    assert client.delete(f"/api/enrollments/course/{course.id}", headers=headers).status_code == 404
