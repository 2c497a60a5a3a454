# core/config_validator.py

from typing import List
from core.config import settings
from core.logging_config import logger


def validate_required_config() -> List[str]:
    """
    Validate that all required environment variables are set.
    Returns list of missing required variables.
    """
    missing = []

    if not settings.SUPABASE_URL:
        missing.append("SUPABASE_URL")
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        missing.append("SUPABASE_SERVICE_ROLE_KEY")

    return missing


def validate_optional_config() -> List[str]:
    """
    Optional configuration: email, SMS and cron features degrade
    gracefully without it. Returns warnings only.
    """
    warnings = []

    if not all([settings.SMTP_HOST, settings.SMTP_PORT, settings.SMTP_USER, settings.SMTP_PASS]):
        warnings.append("SMTP_* (invite and alert emails disabled)")
    if not all([settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN, settings.TWILIO_PHONE_NUMBER]):
        warnings.append("TWILIO_* (SMS alerts disabled)")
    if not settings.CRON_SECRET:
        warnings.append("CRON_SECRET (alert endpoints will refuse requests)")
    if not settings.SITE_URL:
        warnings.append("SITE_URL (invite links fall back to the default frontend domain)")

    return warnings


def validate_config_on_startup():
    """
    Validate configuration on application startup.

    Missing Supabase credentials are fatal only in production; elsewhere
    they are logged so the app can still boot for tests and local work.
    """
    missing_required = validate_required_config()
    missing_optional = validate_optional_config()

    if missing_required:
        error_msg = f"Missing required environment variables: {', '.join(missing_required)}"
        if settings.ENV == "production":
            logger.error(error_msg)
            raise RuntimeError(error_msg)
        logger.warning(error_msg)

    for warning in missing_optional:
        logger.warning(f"Optional configuration missing: {warning}")

    logger.info("Configuration validation complete")
