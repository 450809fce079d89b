"""Movement Validator - Applies policy rules to operation requests"""
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from .policy_registry import PolicyRegistry
from .token_validator import TokenValidator
from .condition_evaluator import ConditionEvaluator
from .requirements import check_required_fields, check_conditional_requirements, validate_fields
from ..domain.models import OperationRequest, AuthorizationDecision, PolicyRule
from ..domain.errors import MissingAccessTokenError
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class MovementValidator:
    """
    Authorize HR operations and stock movements

    Structural checks always run before any token is touched, so a
    malformed request never burns a token.
    """

    def __init__(
        self,
        registry: PolicyRegistry,
        token_validator: TokenValidator,
        evaluator: Optional[ConditionEvaluator] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self._registry = registry
        self._token_validator = token_validator
        self._evaluator = evaluator or ConditionEvaluator()
        self._clock = clock

    def authorize(self, request: OperationRequest) -> AuthorizationDecision:
        """
        Authorize one operation request

        Returns:
            Approved decision with validated fields and the consumed token id

        Raises:
            UnknownOperationKindError, MissingRequiredFieldError,
            ConditionalRequirementNotMetError, InvalidFieldValueError,
            MissingAccessTokenError, or any token failure from TokenValidator
        """
        fields = request.fields
        kind = self._registry.resolve_kind(request.kind, fields)
        rule = self._registry.rules_for(kind)

        check_required_fields(rule.required_fields, fields)
        check_conditional_requirements(rule.conditional_requirements, fields, self._evaluator)
        validated_fields = self._validate_fields(rule, fields)

        token_required = (
            rule.token_required is not None
            and self._evaluator.evaluate(rule.token_required, fields)
        )
        if token_required and not request.token_ref:
            raise MissingAccessTokenError(
                f"Access token is required for {kind.value} operations",
                details={"field": "tokenRef", "kind": kind.value}
            )

        consumed_token_id = None
        if request.token_ref:
            # Optional tokens are still validated and consumed when supplied
            token = self._token_validator.validate_and_consume(
                request.token_ref, kind, request.target_id, validated_fields
            )
            consumed_token_id = token.token_id

        logger.info(
            f"Authorized {kind.value} on {request.target_id}",
            extra={
                "target_id": request.target_id,
                "operation_kind": kind.value,
                "token_id": consumed_token_id,
            }
        )
        return AuthorizationDecision(
            approved=True,
            kind=kind,
            target_id=request.target_id,
            validated_fields=validated_fields,
            consumed_token_id=consumed_token_id,
            decided_at=self._clock(),
        )

    def _validate_fields(self, rule: PolicyRule, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Validate fields into the kind's typed variant"""
        if rule.fields_model is None:
            return dict(fields)
        return validate_fields(rule.fields_model, fields)
