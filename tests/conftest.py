import os
import tempfile
from collections.abc import AsyncGenerator
from pathlib import Path

# Settings are read at import time, so the test environment goes first
_TMP = Path(tempfile.mkdtemp(prefix="school-api-tests-"))
os.environ["ENVIRONMENT"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key-used-only-for-signing-tokens"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP / 'app.db'}"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["STORAGE_ROOT"] = str(_TMP / "storage")
os.environ["APP_URL"] = "http://testserver"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool

from app.database import Base, enable_sqlite_foreign_keys, get_db
from app.main import app
from app.models.student_model import StudentModel
from app.models.subject_model import SubjectModel
from app.models.user_model import UserModel
from app.services.auth import create_access_token
from app.services.storage import LocalFileStorage, get_storage
from app.services.user_service import hash_password

PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"
    b"\x08\x06\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\rIDATx\x9cc\xf8\x0f"
    b"\x00\x00\x01\x01\x00\x05\x18\xd8N\x00\x00\x00\x00IEND\xaeB`\x82"
)


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "test.db"


@pytest.fixture
def sync_engine(db_path):
    engine = create_engine(f"sqlite:///{db_path}", poolclass=NullPool)
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(sync_engine, db_path) -> async_sessionmaker:
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    enable_sqlite_foreign_keys(engine.sync_engine)
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def sync_db(sync_engine):
    """Plain session for arranging rows and checking what the API wrote."""
    session = sessionmaker(bind=sync_engine, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage(tmp_path) -> LocalFileStorage:
    return LocalFileStorage(tmp_path / "storage")


@pytest.fixture
def client(session_factory, storage):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(sync_db: Session):
    def _make_user(
        email: str, role: str = "Student", password: str = "secret123", name: str = ""
    ) -> UserModel:
        user = UserModel(
            name=name or email.split("@")[0],
            email=email,
            role=role,
            password_hash=hash_password(password),
        )
        sync_db.add(user)
        sync_db.commit()
        return user

    return _make_user


@pytest.fixture
def admin_user(make_user) -> UserModel:
    return make_user("kim@admin.com", role="Admin", password="12345678")


@pytest.fixture
def student_user(make_user) -> UserModel:
    return make_user("kim@student.com", role="Student", password="123456789")


@pytest.fixture
def admin_headers(admin_user) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(admin_user)}"}


@pytest.fixture
def student_headers(student_user) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(student_user)}"}


@pytest.fixture
def make_subject(sync_db: Session):
    def _make_subject(code: str, **fields) -> SubjectModel:
        subject = SubjectModel(
            name=fields.pop("name", f"Subject {code}"),
            code=code,
            grade_level=fields.pop("grade_level", "Grade 10"),
            strand=fields.pop("strand", "STEM"),
            **fields,
        )
        sync_db.add(subject)
        sync_db.commit()
        return subject

    return _make_subject


@pytest.fixture
def make_student(sync_db: Session):
    def _make_student(name: str, **fields) -> StudentModel:
        student = StudentModel(
            name=name,
            gender=fields.pop("gender", "Female"),
            grade_level=fields.pop("grade_level", "Grade 10"),
            strand=fields.pop("strand", "STEM"),
            section=fields.pop("section", "Rose"),
            subject=fields.pop("subject", "Mathematics"),
            **fields,
        )
        sync_db.add(student)
        sync_db.commit()
        return student

    return _make_student


@pytest.fixture
def png_file():
    """A tiny valid PNG as a multipart ``files`` entry."""

    def _png_file(name: str = "photo.png", size: int | None = None):
        content = PNG_BYTES if size is None else PNG_BYTES + b"\x00" * size
        return (name, content, "image/png")

    return _png_file
