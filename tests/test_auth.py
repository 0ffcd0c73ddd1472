"""
Tests for tokens, identity extraction and password hashing.
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

import auth
from errors import ErrorKind, OperationError


def _code(excinfo):
    assert excinfo.value.kind == ErrorKind.UNAUTHORIZED
    return excinfo.value.code


# =============================================================================
# Token service
# =============================================================================


class TestTokens:
    def test_token_carries_user_id(self):
        token = auth.create_access_token(42)
        assert auth.decode_access_token(token) == 42

    def test_default_lifetime_is_thirty_days(self):
        token = auth.create_access_token(1)
        claims = jwt.get_unverified_claims(token)
        assert claims["exp"] - claims["iat"] == 30 * 24 * 3600

    def test_expired_token(self):
        token = auth.create_access_token(1, expires_delta=timedelta(seconds=-10))
        with pytest.raises(OperationError) as excinfo:
            auth.decode_access_token(token)
        assert _code(excinfo) == "TOKEN_EXPIRED"

    def test_wrong_secret(self):
        exp = datetime.now(timezone.utc) + timedelta(days=1)
        token = jwt.encode({"sub": "1", "exp": exp}, "not-the-secret", algorithm="HS256")
        with pytest.raises(OperationError) as excinfo:
            auth.decode_access_token(token)
        assert _code(excinfo) == "TOKEN_INVALID"

    def test_tampered_payload(self):
        header, _, signature = auth.create_access_token(1).split(".")
        exp = datetime.now(timezone.utc) + timedelta(days=1)
        forged_payload = jwt.encode({"sub": "2", "exp": exp}, "x", algorithm="HS256").split(".")[1]
        with pytest.raises(OperationError) as excinfo:
            auth.decode_access_token(".".join([header, forged_payload, signature]))
        assert _code(excinfo) == "TOKEN_INVALID"

    def test_garbage(self):
        with pytest.raises(OperationError) as excinfo:
            auth.decode_access_token("not-a-token")
        assert _code(excinfo) == "TOKEN_INVALID"

    def test_non_integer_subject(self):
        exp = datetime.now(timezone.utc) + timedelta(days=1)
        token = jwt.encode({"sub": "alice", "exp": exp}, "test-secret", algorithm="HS256")
        with pytest.raises(OperationError) as excinfo:
            auth.decode_access_token(token)
        assert _code(excinfo) == "TOKEN_INVALID"


# =============================================================================
# Identity extraction
# =============================================================================


class TestExtractUserId:
    def test_bearer(self):
        token = auth.create_access_token(7)
        assert auth.extract_user_id(f"Bearer {token}") == 7

    def test_scheme_is_case_insensitive(self):
        token = auth.create_access_token(7)
        assert auth.extract_user_id(f"bearer {token}") == 7
        assert auth.extract_user_id(f"BEARER {token}") == 7

    @pytest.mark.parametrize("header", [None, "", "   "])
    def test_missing(self, header):
        with pytest.raises(OperationError) as excinfo:
            auth.extract_user_id(header)
        assert _code(excinfo) == "AUTH_MISSING"

    @pytest.mark.parametrize("header", ["Bearer", "Basic abc", "Token abc", "Bearer a b", "abc"])
    def test_malformed(self, header):
        with pytest.raises(OperationError) as excinfo:
            auth.extract_user_id(header)
        assert _code(excinfo) == "AUTH_MALFORMED"


# =============================================================================
# Passwords
# =============================================================================


class TestPasswords:
    def test_hash_is_not_plaintext(self):
        hashed = auth.hash_password("pw1")
        assert hashed != "pw1"
        assert auth.verify_password("pw1", hashed)
        assert not auth.verify_password("pw2", hashed)

    def test_verify_rejects_unknown_hash_format(self):
        assert not auth.verify_password("pw1", "plain-text-in-db")
        assert not auth.verify_password("pw1", "")
