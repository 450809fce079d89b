"""Token Issuer - Creates operation-scoped access tokens"""
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Union

from .policy_registry import PolicyRegistry
from .requirements import check_conditional_requirements, validate_partial_fields
from .condition_evaluator import ConditionEvaluator
from ..domain.models import AccessToken, ActorContext
from ..domain.enums import OperationKind, TokenStatus, RevokeReason
from ..domain.errors import (
    InvalidTTLError, NotFoundError, TokenOwnershipError, TokenAlreadyConsumedError, TokenRevokedError
)
from ..repositories.access_token_repo import AccessTokenRepository
from ..utils.idgen import generate_token_id
from ..utils.time import utc_now, add_seconds
from ..utils.logger import get_logger

logger = get_logger(__name__)


class TokenIssuer:
    """
    Issue and revoke access tokens

    Whether the caller may approve operations of a kind is decided by the
    identity collaborator before `issue` is called; this class only enforces
    the token-level rules:

    - ttl must be positive
    - details must satisfy the kind's issuance requirements and field types
    - the token is durably recorded before it is returned
    - with single_active_per_target, a live token blocks new ones on the same target
    """

    def __init__(
        self,
        registry: PolicyRegistry,
        repo: AccessTokenRepository,
        default_ttl_seconds: int,
        single_active_per_target: bool = True,
        clock: Callable[[], datetime] = utc_now,
        evaluator: Optional[ConditionEvaluator] = None
    ):
        if default_ttl_seconds <= 0:
            raise InvalidTTLError(
                "Default token TTL must be positive",
                details={"ttl_seconds": default_ttl_seconds}
            )
        self._registry = registry
        self._repo = repo
        self._default_ttl_seconds = default_ttl_seconds
        self._single_active_per_target = single_active_per_target
        self._clock = clock
        self._evaluator = evaluator or ConditionEvaluator()

    def issue(
        self,
        kind: Union[str, OperationKind],
        target_id: str,
        details: Optional[Dict[str, Any]] = None,
        ttl_seconds: Optional[int] = None,
        issued_by: Optional[ActorContext] = None
    ) -> AccessToken:
        """
        Issue a token bound to one operation kind and one target

        Raises:
            InvalidTTLError: ttl_seconds <= 0
            UnknownOperationKindError: kind not enabled
            MissingRequiredFieldError / ConditionalRequirementNotMetError: details incomplete
            InvalidFieldValueError: a detail the operation could never carry
            ActiveTokenExistsError: target already guarded by a live token
        """
        ttl = self._default_ttl_seconds if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            raise InvalidTTLError("Token TTL must be positive", details={"ttl_seconds": ttl})

        rule = self._registry.rules_for(kind)
        details = dict(details or {})
        check_conditional_requirements(rule.issuance_requirements, details, self._evaluator)
        if rule.fields_model is not None:
            details = validate_partial_fields(rule.fields_model, details)

        now = self._clock()
        if self._single_active_per_target:
            # Expired leftovers must not block the target
            self._repo.revoke_expired(now, target_id=target_id)

        token = AccessToken(
            token_id=generate_token_id(),
            operation_kind=rule.kind,
            target_id=target_id,
            details=details,
            issued_at=now,
            expires_at=add_seconds(now, ttl),
            status=TokenStatus.ISSUED,
            issued_by=issued_by.snapshot() if issued_by else None,
        )
        self._repo.create_token(token)

        logger.info(
            f"Issued {rule.kind.value} token (ttl={ttl}s)",
            extra={
                "token_id": token.token_id,
                "target_id": target_id,
                "operation_kind": rule.kind.value,
                "actor_email": issued_by.email if issued_by else None,
            }
        )
        return token

    def revoke(
        self,
        token_id: str,
        actor: ActorContext,
        admin_roles: Optional[list] = None
    ) -> AccessToken:
        """
        Cancel an issued token

        Only the issuing user or an administrator may revoke, and only
        tokens that are still issued can be revoked.
        """
        token = self._repo.get_token(token_id)
        if token is None:
            raise NotFoundError(f"Access token {token_id} not found", details={"token_id": token_id})

        is_owner = token.issued_by is not None and token.issued_by.user_id == actor.user_id
        if not is_owner and not actor.has_any_role(admin_roles or []):
            raise TokenOwnershipError(
                "Not authorized to revoke this token",
                details={"token_id": token_id}
            )

        self._ensure_issued(token)

        revoked = self._repo.revoke_token(token_id, self._clock(), RevokeReason.CANCELLED)
        if revoked is None:
            # Consumed or revoked between the read and the update
            current = self._repo.get_token(token_id)
            if current is None:
                raise NotFoundError(f"Access token {token_id} not found", details={"token_id": token_id})
            self._ensure_issued(current)
        return revoked

    def get_active(self, target_id: str) -> Optional[AccessToken]:
        """Get the live token guarding a target, if any"""
        return self._repo.get_active_for_target(target_id, self._clock())

    def sweep_expired(self) -> int:
        """Revoke every expired, unconsumed token; returns the count"""
        return self._repo.revoke_expired(self._clock())

    @staticmethod
    def _ensure_issued(token: AccessToken) -> None:
        if token.is_usable:
            return
        if token.status == TokenStatus.CONSUMED:
            raise TokenAlreadyConsumedError(
                "Access token has already been used",
                details={"token_id": token.token_id}
            )
        if token.status == TokenStatus.REVOKED:
            raise TokenRevokedError(
                "Access token has already been revoked",
                details={"token_id": token.token_id}
            )
