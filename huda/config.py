from typing import List
from pydantic_settings import BaseSettings
from dotenv import load_dotenv
load_dotenv()

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./huda.db"
    SECRET_KEY: str = "secret"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    TIMEZONE: str = "Europe/Berlin"

    # Attendance escalation
    WARNING_ABSENCE_THRESHOLD: int = 6
    DISMISSAL_STREAK_THRESHOLD: int = 16
    ESCALATION_CRON_HOUR: int = 2
    ENABLE_SCHEDULER: bool = True

    NOTIFICATION_CAP: int = 50

    CORS_ORIGINS: List[str] = [
        "http://localhost",
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

settings = Settings()
