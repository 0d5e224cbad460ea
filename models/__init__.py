from flask_sqlalchemy import SQLAlchemy

# Initialize SQLAlchemy
db = SQLAlchemy()

# Import models
from models.accounts import Account
from models.profiles import Profile

from models.courses import Course
from models.sections import Section
from models.lessons import Lesson
from models.lesson_contents import LessonContent

from models.enrollments import Enrollment
from models.lesson_progress import LessonProgress

from models.assignments import Assignment
from models.assignment_submissions import AssignmentSubmission

from models.study_materials import StudyMaterial
from models.course_reviews import CourseReview
