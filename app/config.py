"""
Configuration management using Pydantic Settings
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str = "sqlite:///./quiz_platform.db"

    # Gemini API
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GENERATION_TEMPERATURE: float = 0.2  # Low temperature for factual extraction

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"

    # Application
    APP_NAME: str = "Classroom Quiz Platform"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:8000"]

    # Rate Limiting
    GENERATION_LIMIT_PER_MINUTE: int = 5
    GENERATION_LIMIT_PER_HOUR: int = 60
    LIVE_UPDATE_LIMIT_PER_MINUTE: int = 240

    # Classes
    JOIN_CODE_LENGTH: int = 6
    JOIN_CODE_MAX_ATTEMPTS: int = 10
    SEED_DEMO_CLASS: bool = False

    # Quiz generation
    GENERATION_CACHE_TTL: int = 3600  # 1 hour
    MAX_UPLOAD_IMAGES: int = 10

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
