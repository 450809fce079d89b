"""
Pytest Configuration and Fixtures

This file contains shared fixtures and configuration for all tests.
Storage is replaced by in-memory repositories that keep the same
conditional-update semantics as the MongoDB ones.
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import jwt
import pytest

from opauth.config.settings import settings
from opauth.domain.enums import TokenStatus, RevokeReason
from opauth.domain.errors import ActiveTokenExistsError
from opauth.domain.models import AccessToken, ActorContext, AuditEvent
from opauth.engine.policy_registry import PolicyRegistry
from opauth.engine.token_issuer import TokenIssuer
from opauth.engine.token_validator import TokenValidator
from opauth.engine.movement_validator import MovementValidator
from opauth.services.authorization_service import AuthorizationService


START = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)

# Issuance details that satisfy every kind's issuance requirements
VALID_DETAILS = {
    "status_change": {"newStatus": "on_leave"},
    "asset_assignment": {"assetId": "AST-100"},
    "leave_approval": {"leaveRequestId": "LV-7"},
    "stock_in": {},
    "stock_out": {"quantity": 5},
    "stock_transfer": {"destination": "WH-B"},
}


class FakeClock:
    """Manually advanced UTC clock"""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class InMemoryTokenRepository:
    """Access token store with the same compare-and-swap behaviour as MongoDB"""

    def __init__(self, single_active_per_target: bool = True):
        self._lock = threading.Lock()
        self._tokens: Dict[str, AccessToken] = {}
        self.single_active_per_target = single_active_per_target

    def create_token(self, token: AccessToken) -> AccessToken:
        with self._lock:
            if self.single_active_per_target and any(
                t.target_id == token.target_id and t.status == TokenStatus.ISSUED
                for t in self._tokens.values()
            ):
                raise ActiveTokenExistsError(
                    "Another user is currently accessing this resource",
                    details={"target_id": token.target_id}
                )
            self._tokens[token.token_id] = token.model_copy(deep=True)
        return token

    def get_token(self, token_id: str) -> Optional[AccessToken]:
        with self._lock:
            token = self._tokens.get(token_id)
            return token.model_copy(deep=True) if token else None

    def get_active_for_target(self, target_id: str, now: datetime) -> Optional[AccessToken]:
        with self._lock:
            for token in self._tokens.values():
                if token.target_id == target_id and token.status == TokenStatus.ISSUED and token.expires_at >= now:
                    return token.model_copy(deep=True)
        return None

    def consume_token(self, token_id: str, now: datetime) -> Optional[AccessToken]:
        with self._lock:
            token = self._tokens.get(token_id)
            if token is None or token.status != TokenStatus.ISSUED or token.expires_at < now:
                return None
            token.status = TokenStatus.CONSUMED
            token.consumed_at = now
            return token.model_copy(deep=True)

    def revoke_token(self, token_id: str, now: datetime, reason: RevokeReason) -> Optional[AccessToken]:
        with self._lock:
            token = self._tokens.get(token_id)
            if token is None or token.status != TokenStatus.ISSUED:
                return None
            if reason == RevokeReason.EXPIRED and not token.expires_at < now:
                return None
            self._revoke(token, now, reason)
            return token.model_copy(deep=True)

    def revoke_expired(self, now: datetime, target_id: Optional[str] = None) -> int:
        count = 0
        with self._lock:
            for token in self._tokens.values():
                if token.status != TokenStatus.ISSUED or not token.expires_at < now:
                    continue
                if target_id is not None and token.target_id != target_id:
                    continue
                self._revoke(token, now, RevokeReason.EXPIRED)
                count += 1
        return count

    @staticmethod
    def _revoke(token: AccessToken, now: datetime, reason: RevokeReason) -> None:
        token.status = TokenStatus.REVOKED
        token.revoked_at = now
        token.revoke_reason = reason


class InMemoryAuditRepository:
    """Append-only audit store"""

    def __init__(self):
        self.events: List[AuditEvent] = []

    def create_event(self, event: AuditEvent) -> AuditEvent:
        self.events.append(event)
        return event

    def get_events_for_token(self, token_id: str) -> List[AuditEvent]:
        return [e for e in self.events if e.token_id == token_id]

    def event_types(self) -> List[str]:
        return [e.event_type.value for e in self.events]


def make_actor(user_id: str, roles: List[str]) -> ActorContext:
    return ActorContext(
        user_id=user_id,
        email=f"{user_id}@acme-corp.com",
        display_name=user_id.replace("-", " ").title(),
        roles=roles,
    )


def make_session_token(actor: ActorContext) -> str:
    """Session JWT as minted by the identity subsystem"""
    return jwt.encode(
        {
            "sub": actor.user_id,
            "email": actor.email,
            "name": actor.display_name,
            "roles": actor.roles,
        },
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def token_repo() -> InMemoryTokenRepository:
    return InMemoryTokenRepository()


@pytest.fixture
def audit_repo() -> InMemoryAuditRepository:
    return InMemoryAuditRepository()


@pytest.fixture
def registry() -> PolicyRegistry:
    return PolicyRegistry()


@pytest.fixture
def issuer(registry, token_repo, clock) -> TokenIssuer:
    return TokenIssuer(registry=registry, repo=token_repo, default_ttl_seconds=300, clock=clock)


@pytest.fixture
def token_validator(token_repo, clock) -> TokenValidator:
    return TokenValidator(repo=token_repo, clock=clock)


@pytest.fixture
def movement_validator(registry, token_validator, clock) -> MovementValidator:
    return MovementValidator(registry=registry, token_validator=token_validator, clock=clock)


@pytest.fixture
def service(token_repo, audit_repo, clock) -> AuthorizationService:
    return AuthorizationService.build(settings, token_repo=token_repo, audit_repo=audit_repo, clock=clock)


@pytest.fixture
def hr_manager() -> ActorContext:
    return make_actor("hr-manager", ["hr_manager"])


@pytest.fixture
def stock_manager() -> ActorContext:
    return make_actor("stock-manager", ["stock_manager"])


@pytest.fixture
def admin() -> ActorContext:
    return make_actor("site-admin", ["admin"])


@pytest.fixture
def employee() -> ActorContext:
    return make_actor("plain-employee", ["employee"])
