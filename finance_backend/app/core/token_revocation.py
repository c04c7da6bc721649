"""
Token Revocation System using Redis.

Invalidates JWT tokens immediately when a user is deleted or its
credentials change, instead of waiting for expiry.
"""

import logging
import time

from finance_backend.app.core import redis_client as redis_module
from finance_backend.app.core.config import settings

logger = logging.getLogger("finance.auth")

# Redis key prefixes
TOKEN_BLACKLIST_PREFIX = "blacklist:token:"
USER_TOKENS_PREFIX = "user:tokens:"


def _ttl_seconds() -> int:
    # Tokens expire on their own after this window
    return settings.access_token_expire_minutes * 60


async def revoke_token(token: str, user_id: int) -> bool:
    """
    Revoke a specific JWT token by adding it to the blacklist.

    Returns:
        True if successfully revoked, False otherwise
    """
    try:
        key = f"{TOKEN_BLACKLIST_PREFIX}{token}"
        await redis_module.redis_client.set(key, str(user_id), ex=_ttl_seconds())
        return True
    except Exception as e:
        logger.error("Error revoking token", extra={"user_id": user_id, "error": str(e)})
        return False


async def is_token_revoked(token: str) -> bool:
    """Check if a token has been revoked."""
    try:
        key = f"{TOKEN_BLACKLIST_PREFIX}{token}"
        exists = await redis_module.redis_client.exists(key)
        return exists > 0
    except Exception as e:
        # Fail open: Redis outage must not lock every user out
        logger.warning("Error checking token revocation", extra={"error": str(e)})
        return False


async def revoke_all_user_tokens(user_id: int) -> bool:
    """
    Revoke all tokens issued to a user up to now.

    Called when a user is deleted or its password is reset. Stores the
    revocation time so tokens issued afterwards (a fresh login) stay valid.
    """
    try:
        key = f"{USER_TOKENS_PREFIX}{user_id}:revoked_at"
        await redis_module.redis_client.set(key, str(time.time()), ex=_ttl_seconds())
        return True
    except Exception as e:
        logger.error("Error revoking all tokens for user", extra={"user_id": user_id, "error": str(e)})
        return False


async def are_user_tokens_revoked(user_id: int, issued_at: float) -> bool:
    """Check if a token issued at `issued_at` predates a user-wide revocation."""
    try:
        key = f"{USER_TOKENS_PREFIX}{user_id}:revoked_at"
        revoked_at = await redis_module.redis_client.get(key)
        if revoked_at is None:
            return False
        return issued_at <= float(revoked_at)
    except Exception as e:
        logger.warning("Error checking user token revocation", extra={"user_id": user_id, "error": str(e)})
        return False
