"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "startupteam"

    # JWT Auth - access and refresh tokens use independent secrets
    jwt_secret_key: str = "change-this-secret"
    jwt_refresh_secret_key: str = "change-this-refresh-secret"
    jwt_algorithm: str = "HS256"
    jwt_access_expire_minutes: int = 15
    jwt_refresh_expire_days: int = 7

    # Password reset
    reset_token_expire_minutes: int = 10

    # OAuth providers (a provider is enabled only when both id and secret are set)
    google_client_id: str = ""
    google_client_secret: str = ""
    google_callback_url: str = "http://localhost:8000/api/auth/oauth/google/callback"
    linkedin_client_id: str = ""
    linkedin_client_secret: str = ""
    linkedin_callback_url: str = "http://localhost:8000/api/auth/oauth/linkedin/callback"

    # Cloudinary (image uploads)
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""

    # Twilio (WhatsApp notifications)
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_whatsapp_number: str = ""

    # App
    frontend_url: str = "http://localhost:8000"
    debug: bool = True
    # Local development only: return the raw reset token from /forgot-password
    expose_reset_token: bool = False

    @property
    def google_enabled(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret)

    @property
    def linkedin_enabled(self) -> bool:
        return bool(self.linkedin_client_id and self.linkedin_client_secret)

    @property
    def twilio_enabled(self) -> bool:
        return bool(self.twilio_account_sid and self.twilio_auth_token)

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
