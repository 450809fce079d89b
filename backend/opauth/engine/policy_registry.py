"""Policy Registry - Immutable operation kind -> rule mapping

The default table below is the governing policy for gated operations. It is
configuration, not computed state: every instance of the service builds the
same registry at startup, and configuration may only narrow the set of
enabled kinds.
"""
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from ..domain.models import (
    PolicyRule, ConditionalRequirement, ConditionGroup, Condition, ALWAYS,
    StatusChangeFields, AssetAssignmentFields, LeaveApprovalFields,
    StockInFields, StockOutFields, StockTransferFields,
)
from ..domain.enums import (
    OperationKind, MovementType, ConditionOperator, MOVEMENT_KINDS, STOCK_MOVEMENT,
    TERMINAL_EMPLOYEE_STATUSES,
)
from ..domain.errors import (
    UnknownOperationKindError, MissingRequiredFieldError, InvalidFieldValueError
)
from ..utils.logger import get_logger

logger = get_logger(__name__)


DEFAULT_RULES: Tuple[PolicyRule, ...] = (
    PolicyRule(
        kind=OperationKind.STATUS_CHANGE,
        required_fields=("newStatus",),
        token_required=ALWAYS,
        issuance_requirements=(
            ConditionalRequirement(
                fields=("newStatus",),
                failure_path="newStatus",
                message="New status is required for status change operation",
            ),
            ConditionalRequirement(
                when=ConditionGroup(conditions=(
                    Condition(field="newStatus", operator=ConditionOperator.IN, value=TERMINAL_EMPLOYEE_STATUSES),
                )),
                fields=("reason",),
                failure_path="reason",
                message="Reason is required for this status change",
            ),
        ),
        fields_model=StatusChangeFields,
    ),
    PolicyRule(
        kind=OperationKind.ASSET_ASSIGNMENT,
        required_fields=("assetId",),
        token_required=ALWAYS,
        issuance_requirements=(
            ConditionalRequirement(
                fields=("assetId",),
                failure_path="assetId",
                message="Asset ID is required for asset assignment operation",
            ),
        ),
        fields_model=AssetAssignmentFields,
    ),
    PolicyRule(
        kind=OperationKind.LEAVE_APPROVAL,
        required_fields=("leaveRequestId",),
        token_required=ALWAYS,
        issuance_requirements=(
            ConditionalRequirement(
                fields=("leaveRequestId",),
                failure_path="leaveRequestId",
                message="Leave request ID is required for leave approval operation",
            ),
        ),
        fields_model=LeaveApprovalFields,
    ),
    PolicyRule(
        kind=OperationKind.STOCK_IN,
        required_fields=("quantity",),
        token_required=None,
        fields_model=StockInFields,
    ),
    PolicyRule(
        kind=OperationKind.STOCK_OUT,
        required_fields=("quantity",),
        token_required=ALWAYS,
        issuance_requirements=(
            ConditionalRequirement(
                fields=("quantity",),
                failure_path="quantity",
                message="Quantity is required for outgoing movement tokens",
            ),
        ),
        fields_model=StockOutFields,
    ),
    PolicyRule(
        kind=OperationKind.STOCK_TRANSFER,
        required_fields=("quantity",),
        conditional_requirements=(
            ConditionalRequirement(
                fields=("source", "destination"),
                failure_path="source",
                message="Source and destination are required for transfer movements",
            ),
        ),
        token_required=None,
        issuance_requirements=(
            ConditionalRequirement(
                fields=("destination",),
                failure_path="destination",
                message="Destination is required for transfer operation",
            ),
        ),
        fields_model=StockTransferFields,
    ),
)


class PolicyRegistry:
    """Read-only lookup of PolicyRule by operation kind"""

    def __init__(
        self,
        rules: Iterable[PolicyRule] = DEFAULT_RULES,
        enabled_kinds: Optional[Iterable[str]] = None
    ):
        table: Dict[OperationKind, PolicyRule] = {}
        for rule in rules:
            if rule.kind in table:
                raise ValueError(f"Duplicate policy rule for {rule.kind.value}")
            table[rule.kind] = rule

        if enabled_kinds is not None:
            enabled = {self._coerce_kind(kind) for kind in enabled_kinds}
            table = {kind: rule for kind, rule in table.items() if kind in enabled}

        self._rules: Mapping[OperationKind, PolicyRule] = MappingProxyType(table)
        logger.info(f"Policy registry initialized with kinds: {sorted(k.value for k in self._rules)}")

    @classmethod
    def from_settings(cls, settings: Any) -> "PolicyRegistry":
        """Build the registry from application settings"""
        return cls(DEFAULT_RULES, enabled_kinds=settings.enabled_operation_kinds_list)

    @property
    def kinds(self) -> Tuple[OperationKind, ...]:
        return tuple(self._rules)

    def rules_for(self, kind: Union[str, OperationKind]) -> PolicyRule:
        """
        Get the rule governing an operation kind

        Raises:
            UnknownOperationKindError: kind is outside the enabled enumeration
        """
        operation_kind = self._coerce_kind(kind)
        rule = self._rules.get(operation_kind)
        if rule is None:
            raise UnknownOperationKindError(
                f"Operation kind '{operation_kind.value}' is not enabled",
                details={"kind": operation_kind.value}
            )
        return rule

    def resolve_kind(self, kind: str, fields: Dict[str, Any]) -> OperationKind:
        """
        Resolve a request kind into a concrete operation kind

        The `stock_movement` envelope is dispatched on its `type` field
        (in / out / transfer); any other kind must name an OperationKind.
        """
        if kind != STOCK_MOVEMENT:
            return self.rules_for(kind).kind

        movement_type = fields.get("type")
        if movement_type is None or movement_type == "":
            raise MissingRequiredFieldError("Movement type is required", field="type")
        try:
            resolved = MOVEMENT_KINDS[MovementType(movement_type)]
        except ValueError:
            raise InvalidFieldValueError(
                f"Unknown movement type '{movement_type}'",
                field="type",
                details={"allowed": [t.value for t in MovementType]}
            )
        return self.rules_for(resolved).kind

    @staticmethod
    def _coerce_kind(kind: Union[str, OperationKind]) -> OperationKind:
        if isinstance(kind, OperationKind):
            return kind
        try:
            return OperationKind(kind)
        except ValueError:
            raise UnknownOperationKindError(
                f"Unknown operation kind '{kind}'",
                details={"kind": kind, "allowed": [k.value for k in OperationKind]}
            )
