from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    PROJECT_NAME: str = "Menu Analytics"
    API_PREFIX: str = "/api"

    # Database (SQLite for local dev, Postgres in production)
    DATABASE_URL: str = "sqlite:///./menu_analytics.db"
    AUTO_CREATE_TABLES: bool = True

    # Salt mixed into client IP hashes; must be set in production
    IP_SALT: str = ""

    # Ingestion rate limit per hashed client
    RATE_LIMIT_MAX_EVENTS: int = 100
    RATE_LIMIT_WINDOW_SECONDS: int = 60

    # Public menu site (CORS origin for the tracker)
    FRONTEND_URL: str = "http://localhost:3000"

    # Tracking client defaults
    TRACKER_ENDPOINT: str = "http://localhost:8000/api/analytics/track"
    TRACKER_TIMEOUT_SECONDS: float = 10.0

    # JSON log output (set in production)
    LOG_JSON: bool = False

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", extra="ignore")


settings = Settings()
