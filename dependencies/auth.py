import secrets
from typing import Optional
from fastapi import Depends, Header
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from supabase import Client

from core.config import settings
from core.errors import Unauthenticated, UpstreamFailure
from core.supabase_client import get_supabase_client
from models.identity import Identity


bearer_scheme = HTTPBearer(auto_error=False)


# ============================================================
# AUTH DECODING (Supabase: validates JWT server-side)
# ============================================================
def identity_from_token(client: Client, token: str) -> Optional[Identity]:
    """
    Validate the access token with Supabase GoTrue and return the
    principal. Metadata comes from the provider's answer, never from
    the token's own claims.
    """
    try:
        auth_resp = client.auth.get_user(token)
    except Exception:
        return None

    if not auth_resp or not auth_resp.user:
        return None
    return Identity.from_auth_user(auth_resp.user)


def get_optional_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[Identity]:
    """
    Returns the caller's Identity if a valid token was provided,
    None otherwise. Never raises for a missing or bad token.
    """
    if not credentials:
        return None

    client = get_supabase_client()
    if not client:
        raise UpstreamFailure("Supabase client not configured")

    return identity_from_token(client, credentials.credentials)


def get_current_identity(
    identity: Optional[Identity] = Depends(get_optional_identity),
) -> Identity:
    if identity is None:
        raise Unauthenticated()
    return identity


# ============================================================
# CRON SECRET (scheduled alert endpoints)
# ============================================================
def require_cron_secret(authorization: Optional[str] = Header(None)):
    """
    Alert endpoints are called by an external scheduler with
    `Authorization: Bearer <CRON_SECRET>`.
    """
    if not settings.CRON_SECRET:
        raise UpstreamFailure("CRON_SECRET not configured")

    if not secrets.compare_digest(authorization or "", f"Bearer {settings.CRON_SECRET}"):
        raise Unauthenticated()
