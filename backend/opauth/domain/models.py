"""Domain Models - Pydantic schemas for all entities"""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Tuple, Type
from pydantic import (
    BaseModel, Field, EmailStr, ConfigDict, StrictInt, field_validator, ValidationInfo
)

from .enums import (
    OperationKind, TokenStatus, RevokeReason, EmployeeStatus,
    ConditionOperator, AuditEventType
)


# ============================================================================
# User & Identity Snapshots
# ============================================================================

class UserSnapshot(BaseModel):
    """Snapshot of user identity at a point in time"""
    model_config = ConfigDict(extra="forbid")

    user_id: str = Field(..., description="Identity subsystem user id")
    email: EmailStr = Field(..., description="User email")
    display_name: str = Field(..., description="User display name")


class ActorContext(BaseModel):
    """Current actor context from the session JWT"""
    model_config = ConfigDict(extra="forbid")

    user_id: str = Field(..., description="Identity subsystem user id")
    email: EmailStr = Field(..., description="User email")
    display_name: str = Field(..., description="User display name")
    roles: List[str] = Field(default_factory=list, description="Assigned roles")

    def snapshot(self) -> UserSnapshot:
        return UserSnapshot(user_id=self.user_id, email=self.email, display_name=self.display_name)

    def has_any_role(self, roles: List[str]) -> bool:
        return any(role in self.roles for role in roles)


# ============================================================================
# Policy Predicates
# ============================================================================

class Condition(BaseModel):
    """Single predicate over request fields"""
    model_config = ConfigDict(extra="forbid", frozen=True)

    field: str = Field(..., description="Field to evaluate (dot notation allowed)")
    operator: ConditionOperator = Field(..., description="Comparison operator")
    value: Any = Field(None, description="Value to compare against")


class ConditionGroup(BaseModel):
    """Group of conditions with AND/OR logic; an empty group always holds"""
    model_config = ConfigDict(extra="forbid", frozen=True)

    logic: str = Field("AND", description="AND or OR")
    conditions: Tuple[Condition, ...] = Field(default_factory=tuple)


ALWAYS = ConditionGroup()


class ConditionalRequirement(BaseModel):
    """When `when` holds, every name in `fields` must be present"""
    model_config = ConfigDict(extra="forbid", frozen=True)

    when: ConditionGroup = Field(default=ALWAYS)
    fields: Tuple[str, ...] = Field(..., min_length=1)
    failure_path: str = Field(..., description="Field the failure is reported against")
    message: str


# ============================================================================
# Operation Field Variants
# ============================================================================

class OperationFields(BaseModel):
    """Base for the typed field set of one operation kind"""
    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    notes: Optional[str] = None


class StatusChangeFields(OperationFields):
    new_status: EmployeeStatus = Field(..., alias="newStatus")
    reason: Optional[str] = None


class AssetAssignmentFields(OperationFields):
    asset_id: str = Field(..., alias="assetId", min_length=1)


class LeaveApprovalFields(OperationFields):
    leave_request_id: str = Field(..., alias="leaveRequestId", min_length=1)


class StockMovementFields(OperationFields):
    quantity: StrictInt = Field(..., gt=0, description="Units moved; always a positive integer")
    timestamp: Optional[datetime] = None


class StockInFields(StockMovementFields):
    type: Literal["in"] = "in"
    destination: Optional[str] = None


class StockOutFields(StockMovementFields):
    type: Literal["out"] = "out"
    source: Optional[str] = None


class StockTransferFields(StockMovementFields):
    type: Literal["transfer"] = "transfer"
    source: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)

    @field_validator("destination")
    @classmethod
    def _distinct_locations(cls, value: str, info: ValidationInfo) -> str:
        if value == info.data.get("source"):
            raise ValueError("Source and destination cannot be the same")
        return value


# ============================================================================
# Policy Rule
# ============================================================================

class PolicyRule(BaseModel):
    """Static authorization rule for one operation kind"""
    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    kind: OperationKind
    required_fields: Tuple[str, ...] = Field(default_factory=tuple)
    conditional_requirements: Tuple[ConditionalRequirement, ...] = Field(default_factory=tuple)
    token_required: Optional[ConditionGroup] = Field(
        None, description="Predicate deciding whether a token is mandatory; None means never"
    )
    issuance_requirements: Tuple[ConditionalRequirement, ...] = Field(
        default_factory=tuple, description="Requirements on token details at issuance"
    )
    fields_model: Optional[Type[OperationFields]] = Field(
        None, description="Typed variant the validated fields must satisfy"
    )


# ============================================================================
# Access Token
# ============================================================================

class AccessToken(BaseModel):
    """Short-lived token scoped to one operation kind and one target"""
    model_config = ConfigDict(extra="ignore")

    token_id: str = Field(..., description="Opaque unique id; also the bearer reference")
    operation_kind: OperationKind
    target_id: str = Field(..., description="Employee id or inventory item id")
    details: Dict[str, Any] = Field(default_factory=dict)
    issued_at: datetime
    expires_at: datetime
    status: TokenStatus = TokenStatus.ISSUED
    issued_by: Optional[UserSnapshot] = None
    consumed_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None
    revoke_reason: Optional[RevokeReason] = None

    @property
    def is_usable(self) -> bool:
        return self.status == TokenStatus.ISSUED


# ============================================================================
# Authorization Request / Decision
# ============================================================================

class OperationRequest(BaseModel):
    """Transient request to perform a gated operation"""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    kind: str = Field(..., description="Operation kind, or 'stock_movement' resolved by fields.type")
    target_id: str = Field(..., alias="targetId", min_length=1)
    fields: Dict[str, Any] = Field(default_factory=dict)
    token_ref: Optional[str] = Field(None, alias="tokenRef")


class AuthorizationDecision(BaseModel):
    """Approved outcome handed back to the mutation layer"""
    approved: bool = True
    kind: OperationKind
    target_id: str
    validated_fields: Dict[str, Any] = Field(default_factory=dict)
    consumed_token_id: Optional[str] = None
    decided_at: datetime


# ============================================================================
# Audit
# ============================================================================

class AuditEvent(BaseModel):
    """Append-only audit record"""
    audit_event_id: str
    event_type: AuditEventType
    target_id: str
    operation_kind: Optional[str] = None
    token_id: Optional[str] = None
    actor: Optional[UserSnapshot] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime
    correlation_id: Optional[str] = None
