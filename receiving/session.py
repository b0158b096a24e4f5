"""
Operator session: the JWT issued at login plus its decoded claims.

The console never verifies the token signature (it does not hold the
secret; the API does).  It only reads the claims to know who is logged in,
which role they have, and when the token stops being usable.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

import jwt
from pydantic import BaseModel

from .errors import SessionExpired

logger = logging.getLogger(__name__)


class SessionClaims(BaseModel):
    subject: Optional[str] = None
    username: Optional[str] = None
    role: Optional[str] = None          # "roleName" claim
    expires_at: Optional[datetime] = None


class Session:
    """
    Holds the bearer token for API calls.

    Usage:
        session = Session.from_token(token)
        session.ensure_valid()          # raises SessionExpired
        headers = session.auth_headers()
    """

    def __init__(self, token: str, claims: SessionClaims) -> None:
        self.token = token
        self.claims = claims

    @classmethod
    def from_token(cls, token: str) -> "Session":
        try:
            raw = jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
        except jwt.PyJWTError as exc:
            raise SessionExpired(f"Invalid session token: {exc}") from exc

        exp = raw.get("exp")
        claims = SessionClaims(
            subject=str(raw["sub"]) if raw.get("sub") is not None else None,
            username=raw.get("username") or raw.get("name"),
            role=raw.get("roleName") or raw.get("role"),
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc) if exp else None,
        )
        logger.debug("Session loaded for %s (role=%s)", claims.username or claims.subject, claims.role)
        return cls(token, claims)

    @property
    def role(self) -> Optional[str]:
        return self.claims.role

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.claims.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now >= self.claims.expires_at

    def ensure_valid(self, now: Optional[datetime] = None) -> None:
        if self.is_expired(now):
            raise SessionExpired()

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}
