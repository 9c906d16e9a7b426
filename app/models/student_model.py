from datetime import date

from sqlalchemy import Boolean, Date, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from app.config import settings
from app.database import Base
from app.models.enrollment_model import SubjectStudentModel  # noqa: F401
from app.models.enums import Gender, GradeLevel, Strand
from app.models.mixins import SoftDeleteMixin, TimestampMixin, coerce_enum


class StudentModel(TimestampMixin, SoftDeleteMixin, Base):
    """Student record.

    ``subject`` is a free-text label kept for display; actual class membership
    lives in the ``subject_student`` join table.
    """

    __tablename__ = "students"
    __table_args__ = (
        Index(
            "uq_students_email_live",
            "email",
            unique=True,
            postgresql_where=text("deleted_at IS NULL AND email IS NOT NULL"),
            sqlite_where=text("deleted_at IS NULL AND email IS NOT NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    gender: Mapped[str] = mapped_column(String(10), nullable=False)
    grade_level: Mapped[str] = mapped_column(String(20), nullable=False)
    strand: Mapped[str] = mapped_column(String(30), nullable=False)
    section: Mapped[str] = mapped_column(String(255), nullable=False)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    avatar: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    guardian_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    guardian_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    guardian_relationship: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Relationships
    enrollments = relationship(
        "SubjectStudentModel",
        back_populates="student",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def avatar_url(self) -> str | None:
        return settings.storage_url(self.avatar)

    @validates("gender")
    def _validate_gender(self, key, value):
        return coerce_enum(Gender, key, value)

    @validates("grade_level")
    def _validate_grade_level(self, key, value):
        return coerce_enum(GradeLevel, key, value)

    @validates("strand")
    def _validate_strand(self, key, value):
        return coerce_enum(Strand, key, value)
