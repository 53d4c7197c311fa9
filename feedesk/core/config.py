from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field("sqlite+aiosqlite:///./feedesk.db", alias="DATABASE_URL")

    jwt_secret_key: str = Field("change-me", alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(480, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Password given to the seeded admin and class-teacher accounts
    default_user_password: str = Field("admin", alias="DEFAULT_USER_PASSWORD")

    # Receipt header and notification signature
    school_name: str = Field("SARVODAYA", alias="SCHOOL_NAME")
    school_subtitle: str = Field("Higher Secondary School", alias="SCHOOL_SUBTITLE")
    school_location: str = Field("Eachome, Kerala", alias="SCHOOL_LOCATION")
    school_short_name: str = Field("Sarvodaya School", alias="SCHOOL_SHORT_NAME")

    # Calling code prefixed to student mobile numbers by SMS/WhatsApp providers
    phone_country_code: str = Field("91", alias="PHONE_COUNTRY_CODE")

    # Payment days, receipts and "today" in reports are taken in this zone
    timezone: str = Field("Asia/Kolkata", alias="TIMEZONE")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], alias="CORS_ORIGINS")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
