"""
Session-related models for the storefront runtime.

These describe:
- SessionUser: the identity attached to a token (no password hash)
- Session: token + identity + creation / expiry instants
"""

from pydantic import BaseModel


class SessionUser(BaseModel):
    id: int
    username: str
    role: str


class Session(BaseModel):
    token: str
    user: SessionUser
    created_at: float   # epoch seconds
    expires_at: float   # epoch seconds

    def is_expired(self, now: float) -> bool:
        return self.expires_at <= now
