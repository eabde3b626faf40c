"""
Bearer token handling

Tokens are issued by the identity service; this API only verifies them.
create_access_token exists for seeding scripts and tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

import jwt

from config import get_settings

logger = logging.getLogger(__name__)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.jwt_expiration_minutes))
    to_encode["exp"] = expire
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[dict]:
    """Return the token payload, or None when it is invalid or expired"""
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        logger.warning("Rejected expired access token")
        return None
    except jwt.InvalidTokenError as e:
        logger.warning(f"Rejected invalid access token: {e}")
        return None
