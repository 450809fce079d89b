"""Audit Writer - Append-only authorization audit events"""
from typing import Any, Dict, Optional

from ..domain.models import AuditEvent, AccessToken, ActorContext, AuthorizationDecision
from ..domain.enums import AuditEventType
from ..domain.errors import DomainError
from ..repositories.audit_repo import AuditRepository
from ..utils.idgen import generate_audit_event_id
from ..utils.time import utc_now
from ..utils.logger import get_logger, get_correlation_id

logger = get_logger(__name__)


class AuditWriter:
    """
    Write audit events (append-only)

    Every issuance, consumption, revocation and authorization outcome
    produces one event, linked to the token by id where there is one.
    """

    def __init__(self, repo: AuditRepository):
        self.repo = repo

    def write_event(
        self,
        event_type: AuditEventType,
        target_id: str,
        operation_kind: Optional[str] = None,
        token_id: Optional[str] = None,
        actor: Optional[ActorContext] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> AuditEvent:
        """Write a single audit event"""
        event = AuditEvent(
            audit_event_id=generate_audit_event_id(),
            event_type=event_type,
            target_id=target_id,
            operation_kind=operation_kind,
            token_id=token_id,
            actor=actor.snapshot() if actor else None,
            details=details or {},
            timestamp=utc_now(),
            correlation_id=get_correlation_id()
        )
        return self.repo.create_event(event)

    def write_token_issued(self, token: AccessToken, actor: Optional[ActorContext]) -> AuditEvent:
        return self.write_event(
            event_type=AuditEventType.TOKEN_ISSUED,
            target_id=token.target_id,
            operation_kind=token.operation_kind.value,
            token_id=token.token_id,
            actor=actor,
            details={"details": token.details, "expires_at": token.expires_at}
        )

    def write_token_revoked(self, token: AccessToken, actor: Optional[ActorContext]) -> AuditEvent:
        return self.write_event(
            event_type=AuditEventType.TOKEN_REVOKED,
            target_id=token.target_id,
            operation_kind=token.operation_kind.value,
            token_id=token.token_id,
            actor=actor,
            details={"reason": token.revoke_reason.value if token.revoke_reason else None}
        )

    def write_authorization_granted(
        self,
        decision: AuthorizationDecision,
        actor: Optional[ActorContext]
    ) -> None:
        """Write the grant, plus the consumption of its token if one was used"""
        if decision.consumed_token_id:
            self.write_event(
                event_type=AuditEventType.TOKEN_CONSUMED,
                target_id=decision.target_id,
                operation_kind=decision.kind.value,
                token_id=decision.consumed_token_id,
                actor=actor
            )
        self.write_event(
            event_type=AuditEventType.AUTHORIZATION_GRANTED,
            target_id=decision.target_id,
            operation_kind=decision.kind.value,
            token_id=decision.consumed_token_id,
            actor=actor,
            details={"validated_fields": decision.validated_fields}
        )

    def write_authorization_denied(
        self,
        target_id: str,
        requested_kind: str,
        token_ref: Optional[str],
        error: DomainError,
        actor: Optional[ActorContext]
    ) -> AuditEvent:
        return self.write_event(
            event_type=AuditEventType.AUTHORIZATION_DENIED,
            target_id=target_id,
            operation_kind=requested_kind,
            token_id=token_ref,
            actor=actor,
            details={"reason": error.error_code, "message": error.message}
        )
