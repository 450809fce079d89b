"""Tests for session JWT validation"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from opauth.domain.errors import AuthenticationError
from opauth.utils.jwt import JWTValidator

SECRET = "unit-test-secret"


def encode(claims, secret=SECRET):
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.fixture
def validator():
    return JWTValidator(secret=SECRET, algorithm="HS256")


class TestJWTValidator:

    def test_actor_context(self, validator):
        token = encode({
            "sub": "u-42",
            "email": "dana@acme-corp.com",
            "name": "Dana Reyes",
            "roles": ["hr_manager"],
        })

        actor = validator.get_actor_context(f"Bearer {token}")

        assert actor.user_id == "u-42"
        assert actor.email == "dana@acme-corp.com"
        assert actor.display_name == "Dana Reyes"
        assert actor.roles == ["hr_manager"]

    def test_single_role_claim(self, validator):
        token = encode({"sub": "u-7", "email": "lee@acme-corp.com", "role": "stock_manager"})
        assert validator.get_actor_context(token).roles == ["stock_manager"]

    def test_display_name_defaults_to_email(self, validator):
        token = encode({"sub": "u-7", "email": "lee@acme-corp.com"})
        actor = validator.get_actor_context(token)
        assert actor.display_name == "lee@acme-corp.com"
        assert actor.roles == []

    def test_wrong_secret(self, validator):
        token = encode({"sub": "u-7", "email": "lee@acme-corp.com"}, secret="someone-else")
        with pytest.raises(AuthenticationError):
            validator.validate_token(token)

    def test_expired(self, validator):
        past = datetime.now(timezone.utc) - timedelta(minutes=5)
        token = encode({"sub": "u-7", "email": "lee@acme-corp.com", "exp": past})
        with pytest.raises(AuthenticationError) as exc_info:
            validator.validate_token(token)
        assert exc_info.value.message == "Token has expired"

    def test_subject_required(self, validator):
        with pytest.raises(AuthenticationError):
            validator.validate_token(encode({"email": "lee@acme-corp.com"}))

    def test_email_required(self, validator):
        with pytest.raises(AuthenticationError):
            validator.get_actor_context(encode({"sub": "u-7"}))

    def test_missing_token(self, validator):
        with pytest.raises(AuthenticationError):
            validator.validate_token("")
