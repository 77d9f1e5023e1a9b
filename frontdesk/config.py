import os
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./hotel.db"
    debug: bool = False
    log_level: str = "INFO"

    # WhatsApp Cloud API
    whatsapp_api_url: str = "https://graph.facebook.com/v17.0/me/messages"
    whatsapp_graph_url: str = "https://graph.facebook.com/v17.0"
    whatsapp_access_token: Optional[str] = None
    whatsapp_phone_number_id: Optional[str] = None
    whatsapp_verify_token: Optional[str] = None
    whatsapp_timeout_seconds: float = 30.0

    admin_phone: Optional[str] = None
    admin_api_token: Optional[str] = None

    # Hotel profile shown to guests
    hotel_name: str = "Our Hotel"
    hotel_phone: str = ""
    hotel_email: str = ""
    hotel_address: str = ""
    hotel_latitude: Optional[float] = None
    hotel_longitude: Optional[float] = None
    hotel_welcome_image_url: Optional[str] = None
    hotel_restaurant_image_url: Optional[str] = None
    hotel_spa_image_url: Optional[str] = None

    web_app_url: str = "http://localhost:3000"
    admin_dashboard_url: str = "http://localhost:3000/admin"

    redis_url: Optional[str] = None
    token_ttl_seconds: int = 600
    inbound_dedup_ttl_seconds: int = 86400

    booking_follow_up_minutes: int = 5
    id_verification_expiry_minutes: int = 5
    id_verification_url: Optional[str] = None
    id_verification_timeout_seconds: float = 20.0

    media_temp_dir: str = "uploads/temp"
    media_read_attempts: int = 3
    media_read_backoff_seconds: float = 0.5

    scheduler_interval_seconds: float = 15.0

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()


def _is_env_enabled(value: str | None, default: bool = True) -> bool:
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "no", "off"}


def is_scheduler_enabled() -> bool:
    if os.environ.get("PYTEST_CURRENT_TEST"):
        return False
    return _is_env_enabled(os.environ.get("SCHEDULER_ENABLED"), default=True)
