"""Authorization Service - Business logic for gated operations

Composition root for the authorization engine: the registry, issuer,
validators and audit writer are built once and passed in explicitly.
"""
from typing import Any, Callable, Dict, List, Optional

from ..config.settings import Settings
from ..domain.models import AccessToken, ActorContext, AuthorizationDecision, OperationRequest
from ..domain.errors import DomainError, StorageUnavailableError
from ..engine.audit_writer import AuditWriter
from ..engine.movement_validator import MovementValidator
from ..engine.policy_registry import PolicyRegistry
from ..engine.token_issuer import TokenIssuer
from ..engine.token_validator import TokenValidator
from ..repositories.access_token_repo import AccessTokenRepository
from ..repositories.audit_repo import AuditRepository
from ..utils.logger import get_logger
from ..utils.time import utc_now

logger = get_logger(__name__)


class AuthorizationService:
    """Service for issuing access tokens and authorizing operations"""

    def __init__(
        self,
        registry: PolicyRegistry,
        issuer: TokenIssuer,
        movement_validator: MovementValidator,
        audit_writer: AuditWriter,
        admin_roles: Optional[List[str]] = None
    ):
        self.registry = registry
        self.issuer = issuer
        self.movement_validator = movement_validator
        self.audit_writer = audit_writer
        self.admin_roles = admin_roles or []

    @classmethod
    def build(
        cls,
        settings: Settings,
        token_repo: AccessTokenRepository,
        audit_repo: AuditRepository,
        registry: Optional[PolicyRegistry] = None,
        clock=utc_now
    ) -> "AuthorizationService":
        """Wire the engine components from settings"""
        registry = registry or PolicyRegistry.from_settings(settings)
        issuer = TokenIssuer(
            registry=registry,
            repo=token_repo,
            default_ttl_seconds=settings.token_default_ttl_seconds,
            single_active_per_target=settings.single_active_token_per_target,
            clock=clock,
        )
        token_validator = TokenValidator(repo=token_repo, clock=clock)
        movement_validator = MovementValidator(
            registry=registry, token_validator=token_validator, clock=clock
        )
        return cls(
            registry=registry,
            issuer=issuer,
            movement_validator=movement_validator,
            audit_writer=AuditWriter(audit_repo),
            admin_roles=settings.admin_roles_list,
        )

    # =========================================================================
    # Tokens
    # =========================================================================

    def issue_token(
        self,
        kind: str,
        target_id: str,
        details: Optional[Dict[str, Any]],
        actor: ActorContext,
        ttl_seconds: Optional[int] = None
    ) -> AccessToken:
        """Issue an access token on behalf of an approver"""
        token = self.issuer.issue(
            kind=kind,
            target_id=target_id,
            details=details,
            ttl_seconds=ttl_seconds,
            issued_by=actor,
        )
        self._audit(self.audit_writer.write_token_issued, token, actor)
        return token

    def revoke_token(self, token_id: str, actor: ActorContext) -> AccessToken:
        """Cancel an issued token"""
        token = self.issuer.revoke(token_id, actor, admin_roles=self.admin_roles)
        self._audit(self.audit_writer.write_token_revoked, token, actor)
        return token

    def get_active_token(self, target_id: str) -> Optional[AccessToken]:
        """Get the live token guarding a target"""
        return self.issuer.get_active(target_id)

    def sweep_expired_tokens(self) -> int:
        """Revoke every expired, unconsumed token"""
        return self.issuer.sweep_expired()

    # =========================================================================
    # Authorization
    # =========================================================================

    def authorize(
        self,
        request: OperationRequest,
        actor: Optional[ActorContext] = None
    ) -> AuthorizationDecision:
        """
        Authorize an operation request

        Denials are audited and re-raised unchanged for the transport layer
        to map; storage outages are logged but not audited. Once a token has
        been consumed the decision is returned even if its audit write fails.
        """
        try:
            decision = self.movement_validator.authorize(request)
        except StorageUnavailableError:
            logger.error(
                "Authorization aborted, token store unavailable",
                extra={"target_id": request.target_id, "operation_kind": request.kind}
            )
            raise
        except DomainError as e:
            logger.warning(
                f"Authorization denied: {e.error_code} - {e.message}",
                extra={
                    "target_id": request.target_id,
                    "operation_kind": request.kind,
                    "error_code": e.error_code,
                    "actor_email": actor.email if actor else None,
                }
            )
            self._audit(
                self.audit_writer.write_authorization_denied,
                target_id=request.target_id,
                requested_kind=request.kind,
                token_ref=request.token_ref,
                error=e,
                actor=actor,
            )
            raise

        self._audit(self.audit_writer.write_authorization_granted, decision, actor)
        return decision

    @staticmethod
    def _audit(write: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        """
        Write an audit event for an outcome that is already committed

        Storage failures are logged, not raised.
        """
        try:
            write(*args, **kwargs)
        except StorageUnavailableError as e:
            logger.error(
                f"Audit write skipped, audit store unavailable: {e.message}",
                extra={"error_code": e.error_code, "details": {"audit": getattr(write, "__name__", None)}}
            )
