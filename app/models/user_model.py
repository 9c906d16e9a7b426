from sqlalchemy import Index, String, text
from sqlalchemy.orm import Mapped, mapped_column, validates

from app.database import Base
from app.models.enums import UserRole
from app.models.mixins import SoftDeleteMixin, TimestampMixin, coerce_enum


class UserModel(TimestampMixin, SoftDeleteMixin, Base):
    """User model for storing login accounts and their role"""

    __tablename__ = "users"
    __table_args__ = (
        Index(
            "uq_users_email_live",
            "email",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserRole.STUDENT.value
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @validates("role")
    def _validate_role(self, key, value):
        return coerce_enum(UserRole, key, value)
