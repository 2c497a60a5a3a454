from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "HOMEBOT API"
    ENV: str = "development"
    LOG_LEVEL: str = Field("INFO", env="LOG_LEVEL")

    # -------------------------------------------------
    # Frontend Domains
    # -------------------------------------------------
    SITE_URL: Optional[str] = Field(None, env="SITE_URL")

    FRONTEND_DOMAINS: List[str] = [
        "https://homebot.house",
        "https://www.homebot.house",
    ]

    # -------------------------------------------------
    # CORS (auto-built below)
    # -------------------------------------------------
    BACKEND_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # Supabase (Identity Provider + Record Store)
    # -------------------------------------------------
    SUPABASE_URL: Optional[str] = Field(None, env="SUPABASE_URL")
    SUPABASE_ANON_KEY: Optional[str] = Field(None, env="SUPABASE_ANON_KEY")
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = Field(None, env="SUPABASE_SERVICE_ROLE_KEY")

    # -------------------------------------------------
    # SMTP Email Notifications
    # -------------------------------------------------
    SMTP_HOST: Optional[str] = Field(None, env="SMTP_HOST")
    SMTP_PORT: Optional[int] = Field(None, env="SMTP_PORT")
    SMTP_USER: Optional[str] = Field(None, env="SMTP_USER")
    SMTP_PASS: Optional[str] = Field(None, env="SMTP_PASS")
    SMTP_FROM: str = Field("HOMEBOT <alerts@homebot.house>", env="SMTP_FROM")

    # -------------------------------------------------
    # Twilio SMS Notifications
    # -------------------------------------------------
    TWILIO_ACCOUNT_SID: Optional[str] = Field(None, env="TWILIO_ACCOUNT_SID")
    TWILIO_AUTH_TOKEN: Optional[str] = Field(None, env="TWILIO_AUTH_TOKEN")
    TWILIO_PHONE_NUMBER: Optional[str] = Field(None, env="TWILIO_PHONE_NUMBER")

    # -------------------------------------------------
    # Cron / Scheduled Alerts
    # -------------------------------------------------
    CRON_SECRET: Optional[str] = Field(None, env="CRON_SECRET")
    ALERT_WINDOW_DAYS: int = Field(7, env="ALERT_WINDOW_DAYS", description="Alert on inventory due within this many days (default: 7)")
    ALERT_TIMEZONE: str = Field("UTC", env="ALERT_TIMEZONE", description="Timezone used to compute 'today' for reminders")
    ALERT_HOUR_UTC: int = Field(15, env="ALERT_HOUR_UTC", description="Hour (UTC) the in-process scheduler sends alerts")
    ENABLE_SCHEDULER: bool = Field(False, env="ENABLE_SCHEDULER")

    # -------------------------------------------------
    # Webhooks / Job notifications
    # -------------------------------------------------
    SYNC_WEBHOOK_URL: Optional[str] = Field(None, env="SYNC_WEBHOOK_URL")

    # -------------------------------------------------
    # Model Config
    # -------------------------------------------------
    class Config:
        case_sensitive = True


# Instantiate settings
settings = Settings()

# -------------------------------------------------
# Build CORS list dynamically after loading settings
# -------------------------------------------------
cors_origins = []

if settings.SITE_URL:
    site = settings.SITE_URL
    if not site.startswith("http"):
        site = f"https://{site}"
    cors_origins.append(site.rstrip("/"))

cors_origins.extend([d.rstrip("/") for d in settings.FRONTEND_DOMAINS])

# remove duplicates
settings.BACKEND_CORS_ORIGINS = sorted(list(set(cors_origins)))


def get_site_url() -> str:
    """Public frontend origin used in emails and invite redirects."""
    if settings.SITE_URL:
        site = settings.SITE_URL
        if not site.startswith("http"):
            site = f"https://{site}"
        return site.rstrip("/")
    return settings.FRONTEND_DOMAINS[0].rstrip("/")
