"""init_school_schema

Revision ID: 4c1d2e7a9b01
Revises:
Create Date: 2026-03-01 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "4c1d2e7a9b01"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE users (
            id SERIAL PRIMARY KEY,
            name VARCHAR(255) NOT NULL,
            email VARCHAR(255) NOT NULL,
            password_hash VARCHAR(255) NOT NULL,
            role VARCHAR(20) NOT NULL DEFAULT 'Student',
            created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP,
            deleted_at TIMESTAMP WITH TIME ZONE,
            CONSTRAINT ck_users_role CHECK (role IN ('Admin', 'Student', 'Teacher'))
        )
    """)
    op.execute("""
        CREATE UNIQUE INDEX uq_users_email_live ON users (email)
        WHERE deleted_at IS NULL
    """)

    op.execute("""
        CREATE TABLE token_blacklist (
            id SERIAL PRIMARY KEY,
            token VARCHAR(500) NOT NULL UNIQUE,
            user_id INTEGER REFERENCES users(id) ON DELETE CASCADE,
            expires_at TIMESTAMP WITH TIME ZONE NOT NULL,
            blacklisted_at TIMESTAMP WITH TIME ZONE NOT NULL
        )
    """)
    op.execute("CREATE INDEX ix_token_blacklist_user_id ON token_blacklist (user_id)")
    op.execute(
        "CREATE INDEX ix_token_blacklist_expires_at ON token_blacklist (expires_at)"
    )

    op.execute("""
        CREATE TABLE subjects (
            id SERIAL PRIMARY KEY,
            name VARCHAR(255) NOT NULL,
            code VARCHAR(50) NOT NULL,
            status VARCHAR(20) NOT NULL DEFAULT 'Available',
            grade_level VARCHAR(20) NOT NULL,
            strand VARCHAR(30) NOT NULL,
            description TEXT,
            created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP,
            deleted_at TIMESTAMP WITH TIME ZONE,
            CONSTRAINT ck_subjects_status CHECK (status IN ('Available', 'Unavailable'))
        )
    """)
    op.execute("""
        CREATE UNIQUE INDEX uq_subjects_code_live ON subjects (code)
        WHERE deleted_at IS NULL
    """)
    op.execute(
        "CREATE INDEX ix_subjects_grade_level_strand ON subjects (grade_level, strand)"
    )

    op.execute("""
        CREATE TABLE students (
            id SERIAL PRIMARY KEY,
            name VARCHAR(255) NOT NULL,
            gender VARCHAR(10) NOT NULL,
            grade_level VARCHAR(20) NOT NULL,
            strand VARCHAR(30) NOT NULL,
            section VARCHAR(255) NOT NULL,
            subject VARCHAR(255) NOT NULL,
            avatar VARCHAR(255),
            email VARCHAR(255),
            phone VARCHAR(20),
            address VARCHAR(255),
            birth_date DATE,
            guardian_name VARCHAR(255),
            guardian_phone VARCHAR(20),
            guardian_relationship VARCHAR(255),
            notes TEXT,
            is_active BOOLEAN NOT NULL DEFAULT TRUE,
            created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP,
            deleted_at TIMESTAMP WITH TIME ZONE,
            CONSTRAINT ck_students_gender CHECK (gender IN ('Male', 'Female'))
        )
    """)
    op.execute("CREATE INDEX ix_students_name ON students (name)")
    op.execute("""
        CREATE UNIQUE INDEX uq_students_email_live ON students (email)
        WHERE deleted_at IS NULL AND email IS NOT NULL
    """)

    op.execute("""
        CREATE TABLE subject_student (
            id SERIAL PRIMARY KEY,
            subject_id INTEGER NOT NULL REFERENCES subjects(id) ON DELETE CASCADE,
            student_id INTEGER NOT NULL REFERENCES students(id) ON DELETE CASCADE,
            created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP,
            CONSTRAINT uq_subject_student_subject_student UNIQUE (subject_id, student_id)
        )
    """)
    op.execute(
        "CREATE INDEX ix_subject_student_subject_id ON subject_student (subject_id)"
    )
    op.execute(
        "CREATE INDEX ix_subject_student_student_id ON subject_student (student_id)"
    )

    op.execute("""
        CREATE TABLE teachers (
            id SERIAL PRIMARY KEY,
            name VARCHAR(255) NOT NULL,
            email VARCHAR(255) NOT NULL UNIQUE,
            phone VARCHAR(20) NOT NULL,
            subject VARCHAR(255) NOT NULL,
            gender VARCHAR(10) NOT NULL,
            image VARCHAR(255),
            created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP,
            CONSTRAINT ck_teachers_gender CHECK (gender IN ('Male', 'Female'))
        )
    """)
    op.execute("CREATE INDEX ix_teachers_name ON teachers (name)")

    # Administrator-managed catalogues
    for table, has_active in (
        ("sections", True),
        ("grade_levels", True),
        ("strands", False),
    ):
        active_column = (
            "is_active BOOLEAN NOT NULL DEFAULT TRUE," if has_active else ""
        )
        op.execute(f"""
            CREATE TABLE {table} (
                id SERIAL PRIMARY KEY,
                name VARCHAR(100) NOT NULL,
                description TEXT,
                {active_column}
                created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP,
                deleted_at TIMESTAMP WITH TIME ZONE
            )
        """)
        op.execute(f"""
            CREATE UNIQUE INDEX uq_{table}_name_live ON {table} (name)
            WHERE deleted_at IS NULL
        """)


def downgrade() -> None:
    for table in (
        "strands",
        "grade_levels",
        "sections",
        "teachers",
        "subject_student",
        "students",
        "subjects",
        "token_blacklist",
        "users",
    ):
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")
