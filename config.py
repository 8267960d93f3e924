from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./fence.db"

    # License code signing (HMAC-SHA256)
    license_secret_key: str = ""

    # Shared secret for trusted issuers (/api/license/store)
    license_webhook_secret: str = ""

    # Stripe webhook
    stripe_webhook_secret: str = ""
    webhook_tolerance_seconds: int = 300

    # Amount in cents up to which a purchase is a "student" license
    student_amount_threshold: int = 500

    # Zone whose 23:59:59.999 ends a trial
    trial_timezone: str = "UTC"

    log_level: str = "INFO"

    cors_origins: List[str] = ["*"]

    class Config:
        extra = "allow"   # allow unknown env variables
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()
