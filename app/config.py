import structlog
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        case_sensitive=True,
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    # App Settings
    ENVIRONMENT: str = "local"
    APP_URL: str = "http://localhost:8000"
    CORS_ORIGINS: list[str] = ["http://localhost:8081", "http://localhost:19006"]

    # API Settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "School Management"
    SECRET_KEY: str

    # JWT Settings
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7

    # Password hashing cost
    BCRYPT_ROUNDS: int = 12

    # PostgreSQL Settings
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "school"
    POSTGRES_PORT: str = "5432"

    # Full URL override (e.g. sqlite+aiosqlite:///./school.db)
    DATABASE_URL: str | None = None
    DB_ECHO_QUERIES: bool = False

    # File storage
    STORAGE_ROOT: str = "storage"
    STORAGE_URL_PREFIX: str = "/storage"
    MAX_UPLOAD_BYTES: int = 2 * 1024 * 1024

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    @property
    def DATABASE_URI(self) -> str:
        """Builds database URI dynamically."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def is_postgres(self) -> bool:
        return self.DATABASE_URI.startswith("postgresql")

    def storage_url(self, path: str | None) -> str | None:
        """Absolute URL for a stored file path, or None when nothing is stored."""
        if not path:
            return None
        return f"{self.APP_URL.rstrip('/')}{self.STORAGE_URL_PREFIX}/{path.lstrip('/')}"

    @classmethod
    def load_from_env_file(cls):
        """Load settings from .env file in local development."""
        from pathlib import Path

        from dotenv import load_dotenv

        env_file = Path(".env")
        if env_file.exists():
            load_dotenv(env_file, override=True)

        return cls()


settings = Settings.load_from_env_file()
