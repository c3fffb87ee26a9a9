"""
Security utilities for Meridian

This module provides session token handling and the admin allowlist used for
authorization.
"""

import hmac
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, List, Optional, Union

from jose import jwt

from meridian.core.config import Settings, settings

logger = logging.getLogger(__name__)

# Discord snowflake IDs are 17-19 digits
DISCORD_ID_PATTERN = re.compile(r"^\d{17,19}$")


def create_session_token(
    discord_id: Union[str, Any], expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a signed session token for a Discord user

    Args:
        discord_id: The Discord snowflake id of the user
        expires_delta: Optional expiration time, defaults to settings value

    Returns:
        str: Encoded JWT token
    """
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.session_expire_minutes)

    to_encode = {"exp": expire, "sub": str(discord_id)}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_session_token(token: str) -> dict:
    """
    Decode and verify a session token

    Raises:
        jose.JWTError: If the signature is invalid or the token has expired
    """
    return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])


def parse_admin_ids(raw_value: str, source: str) -> List[str]:
    """Split a comma-separated id list, dropping anything that isn't a snowflake"""
    ids = []
    for candidate in raw_value.split(","):
        candidate = candidate.strip()
        if not candidate:
            continue
        if not DISCORD_ID_PATTERN.match(candidate):
            logger.warning(f"Invalid Discord ID in {source}: {candidate} (must be 17-19 digits)")
            continue
        ids.append(candidate)
    return ids


class AdminAllowlist:
    """
    Set of Discord ids with admin rights.

    Built once by create_app() through from_settings() and kept on app.state;
    request handlers get it through the get_admin_allowlist dependency.
    """

    def __init__(self, admin_ids: Iterable[str]):
        self._ids = list(dict.fromkeys(admin_ids))

    @classmethod
    def from_settings(cls, config: Settings) -> "AdminAllowlist":
        """
        Build the allowlist from configuration

        Falls back to the breakglass ids when ADMIN_DISCORD_IDS is empty.
        """
        env_ids = parse_admin_ids(config.admin_discord_ids, "ADMIN_DISCORD_IDS")
        if env_ids:
            return cls(env_ids)

        logger.warning("ADMIN_DISCORD_IDS is empty; using breakglass admin IDs")
        breakglass = parse_admin_ids(",".join(config.breakglass_admin_ids), "breakglass_admin_ids")
        return cls(breakglass)

    @property
    def ids(self) -> List[str]:
        return list(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def is_admin(self, discord_id: Optional[str]) -> bool:
        """Check membership, comparing in constant time against each configured id"""
        if not discord_id or not DISCORD_ID_PATTERN.match(discord_id):
            return False

        candidate = discord_id.encode("utf-8")
        matched = False
        for admin_id in self._ids:
            if hmac.compare_digest(admin_id.encode("utf-8"), candidate):
                matched = True
        return matched
