"""
Application Configuration Settings
"""

from pydantic_settings import BaseSettings
from typing import List, ClassVar
import os


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "Finance Portal"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str = "sqlite:///./finance_portal.db"
    DATABASE_ECHO: bool = False

    # JWT (tokens are issued by the identity provider, we only verify them)
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # SMTP Configuration
    SMTP_SERVER: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    FROM_EMAIL: str = ""
    FROM_NAME: str = "Finance Portal"
    PORTAL_URL: str = "http://localhost:3000"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:8000"  # Comma-separated string

    @property
    def cors_origins_list(self) -> List[str]:
        """Convert comma-separated string to list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    # Expense amount tolerance when comparing client amount to quantity x unit price
    AMOUNT_TOLERANCE: ClassVar[float] = 0.01

    class Config:
        env_file = ".env"
        case_sensitive = True


# Create settings instance
settings = Settings()


os.makedirs("logs", exist_ok=True)
