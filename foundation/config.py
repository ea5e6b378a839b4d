from pydantic_settings import BaseSettings
from typing import List, Optional
import os
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()


class Settings(BaseSettings):
    """
    Application settings that can be configured via environment variables
    """

    # API settings
    API_TITLE: str = "Foundation Core"
    API_DESCRIPTION: str = "Application context layer for web requests"
    API_VERSION: str = "0.1.0"
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))
    API_RELOAD: bool = os.getenv("API_RELOAD", "true").lower() == "true"

    # Environment settings
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    SERVICE_NAME: str = os.getenv("SERVICE_NAME", "foundation-core")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info")

    # Application settings
    APP_PUBLIC_URL: str = os.getenv("APP_PUBLIC_URL", "")
    APP_CHARSET: str = os.getenv("APP_CHARSET", "utf-8")
    APP_DEBUG: bool = os.getenv("APP_DEBUG", "true").lower() == "true"
    APP_LOCALES: str = os.getenv("APP_LOCALES", "")
    APP_STORAGE_PATH: str = os.getenv("APP_STORAGE_PATH", "storage/app")
    TEMPLATES_PATH: str = os.getenv("TEMPLATES_PATH", "views")
    FRAMEWORK_STORAGE_PATH: Optional[str] = os.getenv("FRAMEWORK_STORAGE_PATH")

    # Session settings
    SESSION_SECRET: str = os.getenv("SESSION_SECRET", "change-me")
    SESSION_COOKIE: str = os.getenv("SESSION_COOKIE", "session")
    SESSION_MAX_AGE: int = int(os.getenv("SESSION_MAX_AGE", str(14 * 24 * 60 * 60)))

    # Database settings
    DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")
    DB_DRIVER: Optional[str] = os.getenv("DB_DRIVER")
    DB_HOST: Optional[str] = os.getenv("DB_HOST")
    DB_PORT: Optional[int] = int(os.getenv("DB_PORT")) if os.getenv("DB_PORT") else None
    DB_NAME: Optional[str] = os.getenv("DB_NAME")
    DB_CHARSET: Optional[str] = os.getenv("DB_CHARSET")
    DB_USERNAME: Optional[str] = os.getenv("DB_USERNAME")
    DB_PASSWORD: Optional[str] = os.getenv("DB_PASSWORD")

    # Mail settings
    MAIL_TRANSPORT: Optional[str] = os.getenv("MAIL_TRANSPORT")
    MAIL_HOST: Optional[str] = os.getenv("MAIL_HOST")
    MAIL_PORT: int = int(os.getenv("MAIL_PORT", "25"))
    MAIL_USERNAME: Optional[str] = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD: Optional[str] = os.getenv("MAIL_PASSWORD")
    MAIL_TLS: bool = os.getenv("MAIL_TLS", "false").lower() == "true"
    MAIL_SENDMAIL_PATH: str = os.getenv("MAIL_SENDMAIL_PATH", "/usr/sbin/sendmail")
    MAIL_TIMEOUT: float = float(os.getenv("MAIL_TIMEOUT", "10"))

    # ID obfuscation settings
    SECURITY_IDS_ALPHABET: Optional[str] = os.getenv("SECURITY_IDS_ALPHABET")
    SECURITY_IDS_PRIME: Optional[int] = (
        int(os.getenv("SECURITY_IDS_PRIME")) if os.getenv("SECURITY_IDS_PRIME") else None
    )
    SECURITY_IDS_INVERSE: Optional[int] = (
        int(os.getenv("SECURITY_IDS_INVERSE")) if os.getenv("SECURITY_IDS_INVERSE") else None
    )
    SECURITY_IDS_RANDOM: Optional[int] = (
        int(os.getenv("SECURITY_IDS_RANDOM")) if os.getenv("SECURITY_IDS_RANDOM") else None
    )

    @property
    def ROOT_URL(self) -> str:
        return self.APP_PUBLIC_URL.rstrip("/")

    @property
    def LOCALES(self) -> List[str]:
        return [locale.strip() for locale in self.APP_LOCALES.split(",") if locale.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


# Create global settings object
settings = Settings()


def get_settings() -> Settings:
    """
    Return the settings object for dependency injection
    """
    return settings
