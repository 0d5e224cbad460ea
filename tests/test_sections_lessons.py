from classes.enrollment_manager import EnrollmentManager
from models import db
from models.lesson_contents import LessonContent
from models.lesson_progress import LessonProgress
from models.lessons import Lesson
from models.sections import Section


def lesson_url(course, section, lesson=None):
    url = f"/api/courses/{course.id}/sections/{section.id}/lessons"
    return f"{url}/{lesson.id}" if lesson else url


def test_sections_are_numbered_in_creation_order(client, instructor, make_course, auth_headers):
    course = make_course(instructor)
    headers = auth_headers(instructor)

    orders = [
        client.post(f"/api/courses/{course.id}/sections", headers=headers, json={"title": title})
        .get_json()["data"]["order_index"]
        for title in ("One", "Two", "Three")
    ]

    assert orders == [1, 2, 3]


def test_only_owner_adds_sections(client, instructor, make_user, make_course, auth_headers):
    course = make_course(instructor)
    other = make_user("instructor")

    response = client.post(f"/api/courses/{course.id}/sections", headers=auth_headers(other), json={"title": "X"})

    assert response.status_code == 403


def test_deleting_a_section_compacts_the_rest(client, instructor, make_course, make_section, make_lesson,
                                             auth_headers):
    course = make_course(instructor)
    first, middle, last = (make_section(course, title) for title in ("A", "B", "C"))
    doomed = make_lesson(course, middle)
    doomed_id = doomed.id

    response = client.delete(f"/api/courses/{course.id}/sections/{middle.id}", headers=auth_headers(instructor))

    assert response.status_code == 200
    remaining = Section.query.filter_by(course_id=course.id).order_by(Section.order_index).all()
    assert [(section.title, section.order_index) for section in remaining] == [("A", 1), ("C", 2)]
    assert db.session.get(Lesson, doomed_id) is None
    assert LessonContent.query.filter_by(lesson_id=doomed_id).count() == 0


def test_create_lesson_appends_and_sanitizes(client, instructor, make_course, make_section, auth_headers):
    course = make_course(instructor)
    section = make_section(course)
    headers = auth_headers(instructor)

    first = client.post(lesson_url(course, section), headers=headers, json={"title": "Intro"})
    second = client.post(lesson_url(course, section), headers=headers, json={
        "title": "Details",
        "content": "<p>Hello</p><iframe src='x'></iframe>",
        "is_preview": True,
    })

    assert first.status_code == second.status_code == 201
    assert first.get_json()["data"]["order"] == 1
    data = second.get_json()["data"]
    assert data["order"] == 2
    assert data["is_preview"] is True
    assert data["content"] == "<p>Hello</p>"


def test_deleting_a_lesson_renumbers_siblings(client, instructor, make_course, make_section, make_lesson,
                                             auth_headers):
    course = make_course(instructor)
    section = make_section(course)
    lessons = [make_lesson(course, section, f"L{i}") for i in range(1, 4)]

    response = client.delete(lesson_url(course, section, lessons[0]), headers=auth_headers(instructor))

    assert response.status_code == 200
    remaining = Lesson.query.filter_by(section_id=section.id).order_by(Lesson.order).all()
    assert [(lesson.title, lesson.order) for lesson in remaining] == [("L2", 1), ("L3", 2)]


def test_moving_a_lesson_between_sections(client, instructor, make_course, make_section, make_lesson,
                                          auth_headers):
    course = make_course(instructor)
    source, target = make_section(course, "Source"), make_section(course, "Target")
    moving, staying = make_lesson(course, source, "Moving"), make_lesson(course, source, "Staying")
    make_lesson(course, target, "Already there")

    response = client.put(lesson_url(course, source, moving), headers=auth_headers(instructor),
                          json={"section_id": target.id, "title": "Moved", "content": "New body"})

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["section_id"] == target.id
    assert data["order"] == 2
    assert data["title"] == "Moved"
    assert data["content"] == "New body"
    assert db.session.get(Lesson, staying.id).order == 1


def test_anonymous_sees_only_preview_lessons(client, published_course):
    course, section, lessons = published_course

    listing = client.get(f"/api/courses/{course.id}/lessons").get_json()
    assert [lesson["id"] for lesson in listing["data"]] == [lessons[0].id]

    assert client.get(lesson_url(course, section, lessons[0])).status_code == 200
    assert client.get(lesson_url(course, section, lessons[1])).status_code == 403


def test_draft_course_lessons_are_private(client, instructor, make_course, make_section, make_lesson):
    course = make_course(instructor)
    section = make_section(course)
    make_lesson(course, section, is_preview=True)

    assert client.get(f"/api/courses/{course.id}/lessons").status_code == 403


def test_enrolled_student_views_lesson_and_is_tracked(client, published_course, student, auth_headers):
    course, section, lessons = published_course
    headers = auth_headers(student)
    EnrollmentManager.enroll_student(course.id, student)

    listing = client.get(f"/api/courses/{course.id}/lessons", headers=headers).get_json()
    assert listing["count"] == 2

    response = client.get(lesson_url(course, section, lessons[1]), headers=headers)
    assert response.status_code == 200
    assert response.get_json()["data"]["content"] == "Body"

    progress = LessonProgress.query.filter_by(user_id=student.id, lesson_id=lessons[1].id).one()
    assert progress.completed is False


def test_instructor_enrolled_elsewhere_is_tracked(client, published_course, make_user, auth_headers):
    course, section, lessons = published_course
    learner = make_user("instructor")
    EnrollmentManager.enroll_student(course.id, learner)

    response = client.get(lesson_url(course, section, lessons[1]), headers=auth_headers(learner))

    assert response.status_code == 200
    assert LessonProgress.query.filter_by(user_id=learner.id, lesson_id=lessons[1].id).count() == 1


def test_owner_views_are_not_tracked(client, published_course, instructor, auth_headers):
    course, section, lessons = published_course

    client.get(lesson_url(course, section, lessons[1]), headers=auth_headers(instructor))

    assert LessonProgress.query.filter_by(user_id=instructor.id).count() == 0


def test_complete_lesson_endpoint(client, published_course, student, auth_headers):
    course, section, lessons = published_course
    headers = auth_headers(student)

    not_enrolled = client.put(f"{lesson_url(course, section, lessons[0])}/complete", headers=headers)
    assert not_enrolled.status_code == 403

    EnrollmentManager.enroll_student(course.id, student)
    response = client.put(f"{lesson_url(course, section, lessons[0])}/complete", headers=headers)

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["lesson_progress"]["completed"] is True
    assert data["progress_percentage"] == 50
    assert data["completed_lessons"] == 1
    assert data["total_lessons"] == 2
    assert data["completed_at"] is None
