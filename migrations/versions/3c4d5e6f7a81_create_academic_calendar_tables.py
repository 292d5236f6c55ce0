"""create users, academic structure, timetable and calendar tables

Revision ID: 3c4d5e6f7a81
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c4d5e6f7a81'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('user_id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=256), nullable=True),
        sa.Column('role', sa.String(length=32), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True, server_default=sa.text('1')),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('email'),
    )

    op.create_table(
        'departments',
        sa.Column('department_id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.UniqueConstraint('name'),
    )

    op.create_table(
        'staff',
        sa.Column('staff_id', sa.Integer(), primary_key=True),
        sa.Column('user_id_fk', sa.Integer(), nullable=False),
        sa.Column('department_id_fk', sa.Integer(), nullable=True),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('position', sa.String(length=100), nullable=True),
        sa.ForeignKeyConstraint(['user_id_fk'], ['users.user_id']),
        sa.ForeignKeyConstraint(['department_id_fk'], ['departments.department_id']),
        sa.UniqueConstraint('user_id_fk'),
    )

    op.create_table(
        'programs',
        sa.Column('program_id', sa.Integer(), primary_key=True),
        sa.Column('department_id_fk', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=True),
        sa.Column('duration_semesters', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['department_id_fk'], ['departments.department_id']),
    )

    op.create_table(
        'semesters',
        sa.Column('semester_id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.UniqueConstraint('name'),
    )

    op.create_table(
        'courses',
        sa.Column('course_id', sa.Integer(), primary_key=True),
        sa.Column('program_id_fk', sa.Integer(), nullable=True),
        sa.Column('semester_id_fk', sa.Integer(), nullable=False),
        sa.Column('lecturer_id_fk', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('credits', sa.Float(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['program_id_fk'], ['programs.program_id']),
        sa.ForeignKeyConstraint(['semester_id_fk'], ['semesters.semester_id']),
        sa.ForeignKeyConstraint(['lecturer_id_fk'], ['staff.staff_id']),
    )

    op.create_table(
        'students',
        sa.Column('student_id', sa.Integer(), primary_key=True),
        sa.Column('user_id_fk', sa.Integer(), nullable=False),
        sa.Column('program_id_fk', sa.Integer(), nullable=True),
        sa.Column('current_semester_id_fk', sa.Integer(), nullable=True),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('registration_number', sa.String(length=100), nullable=True),
        sa.ForeignKeyConstraint(['user_id_fk'], ['users.user_id']),
        sa.ForeignKeyConstraint(['program_id_fk'], ['programs.program_id']),
        sa.ForeignKeyConstraint(['current_semester_id_fk'], ['semesters.semester_id']),
        sa.UniqueConstraint('user_id_fk'),
        sa.UniqueConstraint('registration_number'),
    )

    op.create_table(
        'enrollments',
        sa.Column('enrollment_id', sa.Integer(), primary_key=True),
        sa.Column('student_id_fk', sa.Integer(), nullable=False),
        sa.Column('course_id_fk', sa.Integer(), nullable=False),
        sa.Column('semester_id_fk', sa.Integer(), nullable=False),
        sa.Column('enrollment_date', sa.Date(), nullable=True),
        sa.ForeignKeyConstraint(['student_id_fk'], ['students.student_id']),
        sa.ForeignKeyConstraint(['course_id_fk'], ['courses.course_id']),
        sa.ForeignKeyConstraint(['semester_id_fk'], ['semesters.semester_id']),
        sa.UniqueConstraint(
            'student_id_fk',
            'course_id_fk',
            'semester_id_fk',
            name='uq_enrollment_student_course_semester',
        ),
    )

    op.create_table(
        'timetables',
        sa.Column('timetable_id', sa.Integer(), primary_key=True),
        sa.Column('semester_id_fk', sa.Integer(), nullable=False),
        sa.Column('course_id_fk', sa.Integer(), nullable=False),
        sa.Column('lecturer_id_fk', sa.Integer(), nullable=False),
        sa.Column('day_of_week', sa.String(length=20), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('room', sa.String(length=50), nullable=True),
        sa.ForeignKeyConstraint(['semester_id_fk'], ['semesters.semester_id']),
        sa.ForeignKeyConstraint(['course_id_fk'], ['courses.course_id']),
        sa.ForeignKeyConstraint(['lecturer_id_fk'], ['staff.staff_id']),
        sa.UniqueConstraint(
            'semester_id_fk',
            'course_id_fk',
            'day_of_week',
            'start_time',
            name='uq_timetable_semester_course_day_time',
        ),
    )

    op.create_table(
        'academic_calendar_events',
        sa.Column('event_id', sa.Integer(), primary_key=True),
        sa.Column('semester_id_fk', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('start_date', sa.DateTime(), nullable=False),
        sa.Column('end_date', sa.DateTime(), nullable=False),
        sa.Column('event_type', sa.String(length=50), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('is_recurring', sa.Boolean(), nullable=True, server_default=sa.text('0')),
        sa.Column('recurring_pattern', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('created_by_fk', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['semester_id_fk'], ['semesters.semester_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by_fk'], ['staff.staff_id'], ondelete='SET NULL'),
    )
    op.create_index('ix_calendar_events_semester_start', 'academic_calendar_events', ['semester_id_fk', 'start_date'])


def downgrade():
    op.drop_index('ix_calendar_events_semester_start', table_name='academic_calendar_events')
    op.drop_table('academic_calendar_events')
    op.drop_table('timetables')
    op.drop_table('enrollments')
    op.drop_table('students')
    op.drop_table('courses')
    op.drop_table('semesters')
    op.drop_table('programs')
    op.drop_table('staff')
    op.drop_table('departments')
    op.drop_table('users')
