"""In-memory session registry for the admin back-office.

Tokens map to the identity of the user who logged in plus creation and
expiry instants. Nothing is written to disk: restarting the process
invalidates every session.

Expiry is checked lazily on every `validate`; `sweep_expired` exists only
to reclaim memory for tokens nobody presents again and is driven by a
periodic task owned by the application.
"""

import logging
import secrets
import time
from typing import Callable, Dict, Optional

from ..models.session_models import Session, SessionUser


logger = logging.getLogger(__name__)

# 32 bytes = 64 hex characters = 256 bits of entropy.
TOKEN_BYTES = 32
DEFAULT_TTL_SECONDS = 24 * 60 * 60


def generate_token() -> str:
    """Return a cryptographically secure, hex-encoded session token."""
    return secrets.token_hex(TOKEN_BYTES)


def _short(token: str) -> str:
    return token[:8] + "..."


class SessionRegistry:
    """Token -> Session map with expiry.

    Parameters
    ----------
    ttl_seconds:
        Lifetime of a session from its creation.
    clock:
        Callable returning the current time in epoch seconds. Tests pass a
        fake clock; production uses time.time.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: Dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, user: SessionUser) -> str:
        """Open a session for `user` and return its token."""
        token = generate_token()
        now = self._clock()
        self._sessions[token] = Session(
            token=token,
            user=user,
            created_at=now,
            expires_at=now + self.ttl_seconds,
        )
        logger.info("[SESSION] Created session %s for %s", _short(token), user.username)
        return token

    def get(self, token: Optional[str]) -> Optional[Session]:
        """Return the live Session for `token`, evicting it if expired."""
        if not token:
            return None
        session = self._sessions.get(token)
        if session is None:
            return None
        if session.is_expired(self._clock()):
            del self._sessions[token]
            logger.info("[SESSION] Session expired and removed: %s", _short(token))
            return None
        return session

    def validate(self, token: Optional[str]) -> Optional[SessionUser]:
        """Return the user behind `token`, or None if it must re-authenticate."""
        session = self.get(token)
        return session.user if session is not None else None

    def revoke(self, token: Optional[str]) -> None:
        """Forget `token`. Unknown tokens are ignored."""
        if token and self._sessions.pop(token, None) is not None:
            logger.info("[SESSION] Session revoked: %s", _short(token))

    def sweep_expired(self) -> int:
        """Evict every expired session and return how many were removed."""
        now = self._clock()
        expired = [t for t, s in self._sessions.items() if s.is_expired(now)]
        for token in expired:
            del self._sessions[token]
        if expired:
            logger.info("[SESSION] Cleaned up %d expired session(s)", len(expired))
        return len(expired)
