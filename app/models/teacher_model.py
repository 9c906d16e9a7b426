from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, validates

from app.config import settings
from app.database import Base
from app.models.enums import Gender
from app.models.mixins import TimestampMixin, coerce_enum


class TeacherModel(TimestampMixin, Base):
    """Teacher record. Teachers are deleted physically, together with their image."""

    __tablename__ = "teachers"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    gender: Mapped[str] = mapped_column(String(10), nullable=False)
    image: Mapped[str | None] = mapped_column(String(255), nullable=True)

    @property
    def image_url(self) -> str | None:
        return settings.storage_url(self.image)

    @validates("gender")
    def _validate_gender(self, key, value):
        return coerce_enum(Gender, key, value)
