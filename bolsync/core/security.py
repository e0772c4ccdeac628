"""
Security and Authentication
Guards the sync endpoints

TWO CALLER TYPES:
- Scheduler / manual operator: pre-shared secret
    Authorization: Bearer <CRON_SECRET>    (scheduled calls)
    x-webhook-secret: <BOL_WEBHOOK_SECRET> (manual calls)
- Dashboard user: Supabase session JWT (validated with Supabase Auth)

Secrets are compared with hmac.compare_digest (timing-safe).
"""
import hmac
import logging
from typing import Dict, Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from supabase import Client

from bolsync.core.config import settings
from bolsync.core.dependencies import get_supabase

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _matches(presented: Optional[str], expected: Optional[str]) -> bool:
    if not presented or not expected:
        return False
    return hmac.compare_digest(presented.encode(), expected.encode())


def is_authorised(authorization: Optional[str], webhook_secret: Optional[str]) -> bool:
    """True when either the cron bearer or the manual webhook secret matches."""
    if authorization and settings.cron_secret:
        scheme, _, credential = authorization.partition(" ")
        if scheme == "Bearer" and _matches(credential, settings.cron_secret):
            return True
    return _matches(webhook_secret, settings.bol_webhook_secret)


# ============================================================================
# SHARED-SECRET AUTHENTICATION (scheduler + manual triggers)
# ============================================================================

async def verify_sync_secret(
    authorization: Optional[str] = Header(default=None),
    x_webhook_secret: Optional[str] = Header(default=None),
) -> bool:
    """
    Raises:
        HTTPException 401 when neither secret matches
    """
    if not is_authorised(authorization, x_webhook_secret):
        logger.warning("Sync endpoint called without a valid secret")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorised")
    return True


# ============================================================================
# JWT AUTHENTICATION (Supabase)
# ============================================================================

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    supabase: Client = Depends(get_supabase)
) -> Dict[str, str]:
    """
    Validate a Supabase session token.

    Returns:
        {"user_id", "email"}
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorised, valid Supabase session required"
        )

    try:
        response = supabase.auth.get_user(credentials.credentials)
    except Exception as e:
        logger.warning(f"JWT validation error: {e}")
        response = None

    if not response or not response.user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorised, valid Supabase session required"
        )

    user = response.user
    logger.info(f"✅ User authenticated: {user.email}")
    return {"user_id": user.id, "email": user.email or ""}
