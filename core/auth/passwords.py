"""
core.auth.passwords

Password digests and credential checks for back-office users.

Stored hashes are hex-encoded SHA-256 digests, the format the seeded
administrator (ADMIN_PASSWORD_HASH) and existing documents already use.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Iterable, Optional

from core.catalog.validators import sanitize_input
from runtime.models.store_models import User


logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Return the hex SHA-256 digest of `password`."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def verify_password(password: str, password_hash: str) -> bool:
    """Compare a candidate password against a stored digest in constant time."""
    return hmac.compare_digest(hash_password(password), password_hash.lower())


def authenticate(users: Iterable[User], username: str, password: str) -> Optional[User]:
    """Return the user matching the credentials, or None."""
    username = sanitize_input(username or "")
    logger.info("[AUTH] Login attempt for %s", username)

    for user in users:
        if user.username == username and verify_password(password or "", user.password_hash):
            logger.info("[AUTH] Authentication successful for %s", username)
            return user

    logger.warning("[AUTH] Authentication failed for %s", username)
    return None
