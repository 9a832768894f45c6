from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./rfi_access.db"

    # JWT
    secret_key: str = "your-secret-key-change-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Frontend URL for CORS
    frontend_url: str = "http://localhost:3000"

    log_level: str = "INFO"

    # Email: "log" only writes the rendered message to the log, "brevo" sends via HTTP API
    email_provider: str = "log"
    email_from: str = "rfi-system@example.com"
    brevo_api_key: str = ""
    brevo_api_url: str = "https://api.brevo.com/v3/smtp/email"
    notification_timeout_seconds: float = 10.0

    # Recipients of "new access request" emails
    admin_notification_emails: list[str] = []

    # Auto-approval rules, evaluated in order; first match approves.
    # Known: "domain-match", "sibling-project", "role-threshold"
    auto_approval_rules: list[str] = ["domain-match", "sibling-project"]
    # Used by "role-threshold": roles at or below this rank are approved
    auto_approval_max_role: str = "STAKEHOLDER_L1"

    # In-memory recent logs (newest kept, oldest dropped)
    event_log_capacity: int = 100
    webhook_log_capacity: int = 20

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
