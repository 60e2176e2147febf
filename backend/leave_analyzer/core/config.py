from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    DATABASE_URL: str = "postgresql+asyncpg://leave:leave_secret@db:5432/leave_analyzer"

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Applied to employees created on first sighting during ingestion
    DEFAULT_LEAVES_PER_MONTH: int = 2

    # Queries for years outside [MIN_YEAR, current year + MAX_YEARS_AHEAD] are rejected
    MIN_YEAR: int = 2000
    MAX_YEARS_AHEAD: int = 1

    MAX_UPLOAD_SIZE_MB: int = 10

    RUN_MIGRATIONS_ON_STARTUP: bool = True


settings = Settings()
