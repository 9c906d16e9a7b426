from sqlalchemy import Index, String, Text, func, select, text
from sqlalchemy.orm import Mapped, column_property, mapped_column, relationship, validates

from app.database import Base
from app.models.enrollment_model import SubjectStudentModel
from app.models.enums import GradeLevel, Strand, SubjectStatus
from app.models.mixins import SoftDeleteMixin, TimestampMixin, coerce_enum


class SubjectModel(TimestampMixin, SoftDeleteMixin, Base):
    """Model representing a subject offered to a grade level and strand.

    Attributes:
        id: Primary key
        name: Display name of the subject
        code: Subject code, unique among subjects that are not soft deleted
        status: Available or Unavailable
        grade_level: One of the fixed grade levels
        strand: One of the fixed strands ("No Strand" for junior grades)
        description: Optional free text
        students_count: Number of enrollment rows, loaded with every query
    """

    __tablename__ = "subjects"
    __table_args__ = (
        Index(
            "uq_subjects_code_live",
            "code",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
        Index("ix_subjects_grade_level_strand", "grade_level", "strand"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SubjectStatus.AVAILABLE.value
    )
    grade_level: Mapped[str] = mapped_column(String(20), nullable=False)
    strand: Mapped[str] = mapped_column(String(30), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    students_count: Mapped[int] = column_property(
        select(func.count(SubjectStudentModel.id))
        .where(SubjectStudentModel.subject_id == id)
        .correlate_except(SubjectStudentModel)
        .scalar_subquery()
    )

    # Relationships
    enrollments = relationship(
        "SubjectStudentModel",
        back_populates="subject",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @validates("status")
    def _validate_status(self, key, value):
        return coerce_enum(SubjectStatus, key, value)

    @validates("grade_level")
    def _validate_grade_level(self, key, value):
        return coerce_enum(GradeLevel, key, value)

    @validates("strand")
    def _validate_strand(self, key, value):
        return coerce_enum(Strand, key, value)
