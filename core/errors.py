# core/errors.py

from typing import Optional


# ============================================================
# Error taxonomy
# ============================================================
class HomebotError(Exception):
    """
    Base class for every failure the access-control and lifecycle
    cores report. Routes never build status codes themselves; the
    exception handler in main.py renders these as {"error": message}.
    """

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(HomebotError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(HomebotError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(HomebotError):
    status_code = 404
    default_message = "Not found"


class Conflict(HomebotError):
    """State-guard violation (already activated, blocking dependents)."""

    status_code = 400
    default_message = "Conflict"


class AlreadyActivated(Conflict):
    default_message = "Already activated"


class NotManaged(Conflict):
    default_message = "Account is not managed"


class ValidationFailed(HomebotError):
    status_code = 400
    default_message = "Invalid request"


class UpstreamFailure(HomebotError):
    """
    Supabase (auth or database) call failed.

    The message is always written by us. The provider's own text is
    passed through only when it stems from input validation (duplicate
    email, malformed address); those carry user_facing=True and a 400.
    """

    status_code = 500
    default_message = "Upstream service error"

    def __init__(self, message: Optional[str] = None, user_facing: bool = False):
        super().__init__(message)
        self.user_facing = user_facing
        if user_facing:
            self.status_code = 400


# ============================================================
# Supabase error helpers
# ============================================================
USER_FACING_MARKERS = (
    "already registered",
    "already been registered",
    "already exists",
    "duplicate",
    "invalid email",
    "unable to validate email",
)


def extract_supabase_error(error: Exception) -> str:
    """
    Safely extract readable details from Supabase Python client errors.
    Handles:
      • PostgREST errors
      • GoTrue (Auth) errors
      • Generic Python exceptions
    """

    # Case 1: Supabase Auth / GoTrue errors
    if hasattr(error, "message"):
        try:
            return str(error.message)
        except Exception:
            pass

    # Case 2: Supabase errors with args (common)
    if hasattr(error, "args") and error.args:
        try:
            return str(error.args[0])
        except Exception:
            pass

    # Case 3: Plain string fallback
    try:
        return str(error)
    except Exception:
        return "Unknown Supabase error"


def upstream_error(error: Exception, operation: str = "Supabase operation") -> UpstreamFailure:
    """
    Convert a Supabase client exception into an UpstreamFailure.
    Returns (doesn't raise) so the caller can `raise ... from e`.
    """
    from core.logging_config import logger

    detail = extract_supabase_error(error)
    logger.error(f"{operation}: {detail}")

    lowered = detail.lower()
    if any(marker in lowered for marker in USER_FACING_MARKERS):
        return UpstreamFailure(detail, user_facing=True)

    return UpstreamFailure(f"{operation} failed")
