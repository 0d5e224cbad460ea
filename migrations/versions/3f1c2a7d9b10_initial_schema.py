"""initial schema

Revision ID: 3f1c2a7d9b10
Revises:
Create Date: 2026-10-18 09:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f1c2a7d9b10'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade():
    op.create_table(
        'accounts',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        'profiles',
        sa.Column('id', sa.String(length=36), sa.ForeignKey('accounts.id'), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False, unique=True),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('avatar_url', sa.String(length=500), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("role IN ('student', 'instructor', 'admin')", name='check_profile_role'),
    )

    op.create_table(
        'courses',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('cover_image_url', sa.String(length=500), nullable=True),
        sa.Column('cover_image_path', sa.String(length=500), nullable=True),
        sa.Column('instructor_id', sa.String(length=36), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('is_published', sa.Boolean(), nullable=False),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('duration_weeks', sa.Integer(), nullable=True),
        sa.Column('difficulty_level', sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "difficulty_level IN ('beginner', 'intermediate', 'advanced')",
            name='check_course_difficulty_level',
        ),
        sa.CheckConstraint('price >= 0', name='check_course_price'),
    )
    op.create_index('ix_courses_instructor_id', 'courses', ['instructor_id'])
    op.create_index('ix_courses_category', 'courses', ['category'])

    op.create_table(
        'sections',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('course_id', sa.String(length=36), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_sections_course_id', 'sections', ['course_id'])

    op.create_table(
        'lessons',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('course_id', sa.String(length=36), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('section_id', sa.String(length=36), sa.ForeignKey('sections.id'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('video_url', sa.String(length=500), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=True),
        sa.Column('is_preview', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_lessons_course_id', 'lessons', ['course_id'])
    op.create_index('ix_lessons_section_id', 'lessons', ['section_id'])

    op.create_table(
        'lesson_contents',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('lesson_id', sa.String(length=36), sa.ForeignKey('lessons.id'), nullable=False, unique=True),
        sa.Column('content', sa.Text(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'enrollments',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('course_id', sa.String(length=36), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('progress_percentage', sa.Integer(), nullable=False),
        sa.Column('enrolled_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_accessed_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('user_id', 'course_id', name='unique_user_course_enrollment'),
        sa.CheckConstraint(
            'progress_percentage >= 0 AND progress_percentage <= 100',
            name='check_enrollment_progress_range',
        ),
    )
    op.create_index('ix_enrollments_user_id', 'enrollments', ['user_id'])
    op.create_index('ix_enrollments_course_id', 'enrollments', ['course_id'])

    op.create_table(
        'lesson_progress',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('lesson_id', sa.String(length=36), sa.ForeignKey('lessons.id'), nullable=False),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('user_id', 'lesson_id', name='unique_user_lesson_progress'),
    )
    op.create_index('ix_lesson_progress_user_id', 'lesson_progress', ['user_id'])
    op.create_index('ix_lesson_progress_lesson_id', 'lesson_progress', ['lesson_id'])

    op.create_table(
        'assignments',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('course_id', sa.String(length=36), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('section_id', sa.String(length=36), sa.ForeignKey('sections.id'), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('points', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('points IS NULL OR points >= 0', name='check_assignment_points'),
    )
    op.create_index('ix_assignments_course_id', 'assignments', ['course_id'])

    op.create_table(
        'assignment_submissions',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('assignment_id', sa.String(length=36), sa.ForeignKey('assignments.id'), nullable=False),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('attachments', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('grade', sa.Float(), nullable=True),
        sa.Column('feedback', sa.Text(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('graded_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('assignment_id', 'user_id', name='unique_assignment_user_submission'),
        sa.CheckConstraint("status IN ('submitted', 'graded', 'returned')", name='check_submission_status'),
    )
    op.create_index('ix_assignment_submissions_assignment_id', 'assignment_submissions', ['assignment_id'])
    op.create_index('ix_assignment_submissions_user_id', 'assignment_submissions', ['user_id'])

    op.create_table(
        'study_materials',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('course_id', sa.String(length=36), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('section_id', sa.String(length=36), sa.ForeignKey('sections.id'), nullable=True),
        sa.Column('lesson_id', sa.String(length=36), sa.ForeignKey('lessons.id'), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('file_url', sa.String(length=500), nullable=False),
        sa.Column('file_type', sa.String(length=100), nullable=True),
        sa.Column('size_bytes', sa.BigInteger(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_study_materials_course_id', 'study_materials', ['course_id'])

    op.create_table(
        'course_reviews',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('course_id', sa.String(length=36), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('course_id', 'user_id', name='unique_course_user_review'),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='check_review_rating'),
    )
    op.create_index('ix_course_reviews_course_id', 'course_reviews', ['course_id'])


def downgrade():
    op.drop_table('course_reviews')
    op.drop_table('study_materials')
    op.drop_table('assignment_submissions')
    op.drop_table('assignments')
    op.drop_table('lesson_progress')
    op.drop_table('enrollments')
    op.drop_table('lesson_contents')
    op.drop_table('lessons')
    op.drop_table('sections')
    op.drop_table('courses')
    op.drop_table('profiles')
    op.drop_table('accounts')
