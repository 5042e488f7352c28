from pydantic_settings import BaseSettings
from pydantic import model_validator


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./fieldops.db"
    ENVIRONMENT: str = "development"
    AUTO_CREATE_TABLES: bool = True
    DB_TIMEOUT_SECONDS: float = 15.0
    DEBUG: bool = True
    APP_NAME: str = "FieldOps"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"
    ENABLE_REQUEST_ID: bool = True
    ENABLE_REQUEST_LOGGING: bool = True
    ENABLE_SECURITY_HEADERS: bool = True
    STRICT_TRANSPORT_SECURITY_SECONDS: int = 31536000
    READINESS_CHECK_DATABASE: bool = True
    TRACKING_ID_PREFIX: str = "DMG"
    TRACKING_ID_MAX_ATTEMPTS: int = 5

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() in {"prod", "production"}

    @model_validator(mode="after")
    def validate_production_safety(self):
        if self.TRACKING_ID_MAX_ATTEMPTS < 1:
            raise ValueError("TRACKING_ID_MAX_ATTEMPTS must be at least 1.")

        if not self.is_production:
            return self

        if "sqlite" in self.DATABASE_URL.lower():
            raise ValueError("SQLite is not allowed when ENVIRONMENT is production.")

        if self.AUTO_CREATE_TABLES:
            raise ValueError("AUTO_CREATE_TABLES must be false in production; use Alembic migrations.")

        return self


settings = Settings()
