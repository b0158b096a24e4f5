"""
Unit tests for the operator session (JWT claims, expiry).
"""
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from receiving.errors import SessionExpired
from receiving.session import Session

SECRET = "test-secret-not-used-by-the-client"


def _token(**claims):
    return jwt.encode(claims, SECRET, algorithm="HS256")


@pytest.mark.unit
class TestSession:

    def test_reads_claims_without_secret(self):
        exp = datetime(2030, 1, 1, tzinfo=timezone.utc)
        session = Session.from_token(_token(sub="12", username="mgarcia", roleName="Supervisor", exp=exp))
        assert session.claims.subject == "12"
        assert session.claims.username == "mgarcia"
        assert session.role == "Supervisor"
        assert session.claims.expires_at == exp

    def test_role_claim_fallback(self):
        session = Session.from_token(_token(sub="3", role="Manager"))
        assert session.role == "Manager"
        assert session.claims.expires_at is None
        assert not session.is_expired()

    def test_expired_token(self):
        exp = datetime.now(timezone.utc) - timedelta(minutes=5)
        session = Session.from_token(_token(sub="1", exp=exp))
        assert session.is_expired()
        with pytest.raises(SessionExpired):
            session.ensure_valid()

    def test_expiry_against_given_clock(self):
        exp = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)
        session = Session.from_token(_token(sub="1", exp=exp))
        assert not session.is_expired(datetime(2025, 6, 15, 11, 59, tzinfo=timezone.utc))
        assert session.is_expired(datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc))

    def test_garbage_token_rejected(self):
        with pytest.raises(SessionExpired, match="Invalid session token"):
            Session.from_token("not-a-jwt")

    def test_auth_headers(self):
        token = _token(sub="1")
        assert Session.from_token(token).auth_headers() == {"Authorization": f"Bearer {token}"}
