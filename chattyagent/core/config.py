from pydantic_settings import BaseSettings, SettingsConfigDict
import secrets
import logging

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./chattyagent.db"

    # Database pool configuration (ignored for SQLite)
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600

    # Auth
    SECRET_KEY: str = ""
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_DAYS: int = 7
    BCRYPT_ROUNDS: int = 12

    # LLM provider, also used for the files API
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-3.5-turbo"
    OPENAI_TIMEOUT: float = 30.0

    FRONTEND_URL: str = "http://localhost:3000"
    ENVIRONMENT: str = "development"
    PORT: int = 4000
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


settings = Settings()

# Generate a secret for development only; tokens will not survive a restart
if not settings.SECRET_KEY:
    if settings.is_production:
        raise ValueError("SECRET_KEY must be set in production environment")
    settings.SECRET_KEY = secrets.token_urlsafe(32)
    logger.warning("⚠️ SECRET_KEY not set - using an auto-generated key for development")

if settings.BCRYPT_ROUNDS < 10:
    raise ValueError("BCRYPT_ROUNDS must be at least 10")

if not settings.OPENAI_API_KEY:
    logger.warning("⚠️ OPENAI_API_KEY not configured - chat replies and file uploads will be unavailable")
