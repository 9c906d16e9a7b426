from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.mixins import TimestampMixin


class SubjectStudentModel(TimestampMixin, Base):
    """Join table recording that a student is enrolled in a subject.

    Rows are only written by the enrollment service. Physical deletion of a
    subject or a student cascades at the database level.
    """

    __tablename__ = "subject_student"
    __table_args__ = (
        UniqueConstraint(
            "subject_id", "student_id", name="uq_subject_student_subject_student"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    subject_id: Mapped[int] = mapped_column(
        ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id: Mapped[int] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Relationships
    subject = relationship("SubjectModel", back_populates="enrollments")
    student = relationship("StudentModel", back_populates="enrollments")
