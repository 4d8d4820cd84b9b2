from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for admin operations like password reset confirm

    # Supabase Storage
    avatars_bucket: str = "avatars"
    profile_images_prefix: str = "profile-images"

    # Frontend (used for auth redirect links)
    frontend_url: str = "http://localhost:3000"

    # Listing defaults
    default_page_size: int = 100
    recommendation_limit: int = 10

    # App
    app_name: str = "avatar-marketplace"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def frontend_link(self, path: str) -> str:
        return f"{self.frontend_url.rstrip('/')}/{path.lstrip('/')}"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
