"""Domain Enumerations - All status and type definitions"""
from enum import Enum


class OperationKind(str, Enum):
    """Sensitive operations gated by the authorization engine"""
    STATUS_CHANGE = "status_change"
    ASSET_ASSIGNMENT = "asset_assignment"
    LEAVE_APPROVAL = "leave_approval"
    STOCK_IN = "stock_in"
    STOCK_OUT = "stock_out"
    STOCK_TRANSFER = "stock_transfer"


# Envelope kind resolved through the request's `type` field
STOCK_MOVEMENT = "stock_movement"


class MovementType(str, Enum):
    """Stock movement direction"""
    IN = "in"
    OUT = "out"
    TRANSFER = "transfer"


MOVEMENT_KINDS = {
    MovementType.IN: OperationKind.STOCK_IN,
    MovementType.OUT: OperationKind.STOCK_OUT,
    MovementType.TRANSFER: OperationKind.STOCK_TRANSFER,
}


class OperationModule(str, Enum):
    """Business module an operation belongs to (drives issuer roles)"""
    HR = "hr"
    STOCK = "stock"


OPERATION_MODULES = {
    OperationKind.STATUS_CHANGE: OperationModule.HR,
    OperationKind.ASSET_ASSIGNMENT: OperationModule.HR,
    OperationKind.LEAVE_APPROVAL: OperationModule.HR,
    OperationKind.STOCK_IN: OperationModule.STOCK,
    OperationKind.STOCK_OUT: OperationModule.STOCK,
    OperationKind.STOCK_TRANSFER: OperationModule.STOCK,
}


class TokenStatus(str, Enum):
    """Access token lifecycle; consumed and revoked are terminal"""
    ISSUED = "issued"
    CONSUMED = "consumed"
    REVOKED = "revoked"


class RevokeReason(str, Enum):
    """Why a token was revoked"""
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class EmployeeStatus(str, Enum):
    """Employee statuses accepted by status_change"""
    ACTIVE = "active"
    ON_LEAVE = "on_leave"
    SUSPENDED = "suspended"
    TERMINATED = "terminated"
    RETIRED = "retired"
    DECEASED = "deceased"


# Status changes that require a documented reason at issuance
TERMINAL_EMPLOYEE_STATUSES = [
    EmployeeStatus.TERMINATED.value,
    EmployeeStatus.RETIRED.value,
    EmployeeStatus.DECEASED.value,
]


class ConditionOperator(str, Enum):
    """Operators for policy predicates"""
    EQUALS = "EQUALS"
    NOT_EQUALS = "NOT_EQUALS"
    GREATER_THAN = "GREATER_THAN"
    LESS_THAN = "LESS_THAN"
    GREATER_THAN_OR_EQUALS = "GREATER_THAN_OR_EQUALS"
    LESS_THAN_OR_EQUALS = "LESS_THAN_OR_EQUALS"
    IN = "IN"
    NOT_IN = "NOT_IN"
    IS_EMPTY = "IS_EMPTY"
    IS_NOT_EMPTY = "IS_NOT_EMPTY"


class AuditEventType(str, Enum):
    """Audit event types"""
    TOKEN_ISSUED = "TOKEN_ISSUED"
    TOKEN_CONSUMED = "TOKEN_CONSUMED"
    TOKEN_REVOKED = "TOKEN_REVOKED"
    AUTHORIZATION_GRANTED = "AUTHORIZATION_GRANTED"
    AUTHORIZATION_DENIED = "AUTHORIZATION_DENIED"
