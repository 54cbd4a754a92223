from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Used by the archive scheduler to bypass RLS
    supabase_storage_bucket: str = "media"

    # AWS S3 (optional, Supabase Storage is used when not configured)
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "us-east-1"
    s3_bucket_name: Optional[str] = None
    s3_public_base_url: Optional[str] = None  # e.g. CDN in front of the bucket

    # Unsplash image search (event wizard)
    unsplash_api_key: Optional[str] = None
    unsplash_api_url: str = "https://api.unsplash.com/search/photos"
    image_search_cache_ttl_sec: int = 24 * 60 * 60
    image_search_timeout_sec: float = 10.0

    # Events
    invite_base_url: str = "https://eventify.com/invite"
    default_event_image: str = "https://picsum.photos/300/200"
    max_image_size_mb: int = 5
    max_video_size_mb: int = 100
    optimistic_update_attempts: int = 3

    # Archive scheduler
    archive_scheduler_enabled: bool = False
    archive_scheduler_interval_sec: int = 3600
    archive_after_days: int = 7

    # App
    app_name: str = "eventify-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def s3_enabled(self) -> bool:
        return all([self.aws_access_key_id, self.aws_secret_access_key, self.s3_bucket_name])

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
