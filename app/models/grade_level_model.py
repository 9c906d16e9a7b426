from sqlalchemy import Boolean, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.mixins import SoftDeleteMixin, TimestampMixin


class GradeLevelModel(TimestampMixin, SoftDeleteMixin, Base):
    """Model representing a grade level managed by administrators.

    Attributes:
        id: Primary key
        name: The name of the grade level (e.g., "Grade 7", "Grade 11")
        description: Detailed description of the grade level
        is_active: Whether the grade level is offered
        created_at: Timestamp when the record was created
        updated_at: Timestamp when the record was last updated
        deleted_at: Timestamp when the record was soft deleted
    """

    __tablename__ = "grade_levels"
    __table_args__ = (
        Index(
            "uq_grade_levels_name_live",
            "name",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
