from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./nishyash.db"

    # Application
    environment: str = "development"
    port: int = 5000
    api_prefix: str = "/api"
    cors_origins: str = "*"  # Comma-separated
    log_level: str = "INFO"
    seed_on_startup: bool = True

    # Identity provider (bearer token verification)
    auth_jwt_key: str | None = None  # PEM public key or shared secret
    auth_jwt_algorithms: str = "RS256"  # Comma-separated
    auth_email_claim: str = "email"
    auth_api_url: str | None = None  # e.g. https://api.clerk.com/v1
    auth_secret_key: str | None = None

    # Admin allow-list (comma-separated emails)
    admin_emails: str = ""

    # Email (SMTP)
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    smtp_user: str | None = None
    smtp_password: str | None = None
    notify_email: str | None = None  # Defaults to smtp_user
    mail_from_name: str = "Nisyash Corporation"

    # Hosted image storage (Cloudinary)
    cloudinary_cloud_name: str | None = None
    cloudinary_api_key: str | None = None
    cloudinary_api_secret: str | None = None
    cloudinary_folder: str = "nishyash_products"

    # Local uploads (legacy storage mode)
    upload_dir: str = "uploads"
    uploads_url_prefix: str = "/uploads"
    max_upload_bytes: int = 5 * 1024 * 1024

    # Redis (optional, rate limit counters)
    redis_url: str | None = None

    # Rate limiting
    rate_limit_window_ms: int = 15 * 60 * 1000
    rate_limit_max: int = 100
    submission_limit_window_ms: int = 60 * 60 * 1000
    submission_limit_max: int = 5

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def admin_email_list(self) -> set[str]:
        return {e.strip().lower() for e in self.admin_emails.split(",") if e.strip()}

    @property
    def jwt_algorithms(self) -> list[str]:
        return [a.strip() for a in self.auth_jwt_algorithms.split(",") if a.strip()]

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def hosted_storage_enabled(self) -> bool:
        return bool(
            self.cloudinary_cloud_name
            and self.cloudinary_api_key
            and self.cloudinary_api_secret
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
