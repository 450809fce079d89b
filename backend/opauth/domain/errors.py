"""Domain Errors - Centralized Exception Hierarchy"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error - all errors extend this"""

    error_code: str = "DOMAIN_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to API response dict"""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details
            }
        }


# Authentication & Authorization Errors
class AuthenticationError(DomainError):
    """Session token missing, invalid, or expired"""
    error_code = "AUTHENTICATION_ERROR"
    http_status = 401


class AuthorizationError(DomainError):
    """Caller is not allowed to perform the operation"""
    error_code = "AUTHORIZATION_ERROR"
    http_status = 403


class PermissionDeniedError(AuthorizationError):
    """Caller's role may not issue tokens for this operation kind"""
    error_code = "PERMISSION_DENIED"


# Policy / request validation errors
class ValidationError(DomainError):
    """Input validation failed"""
    error_code = "VALIDATION_ERROR"
    http_status = 400


class UnknownOperationKindError(ValidationError):
    """Operation kind outside the configured enumeration"""
    error_code = "UNKNOWN_OPERATION_KIND"


class FieldValidationError(ValidationError):
    """Validation error tied to a single request field"""

    def __init__(self, message: str, field: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details={"field": field, **(details or {})})
        self.field = field


class MissingRequiredFieldError(FieldValidationError):
    """Always-required field absent"""
    error_code = "MISSING_REQUIRED_FIELD"


class ConditionalRequirementNotMetError(FieldValidationError):
    """Conditional cross-field requirement failed"""
    error_code = "CONDITIONAL_REQUIREMENT_NOT_MET"


class InvalidFieldValueError(FieldValidationError):
    """Field present but its value is not acceptable"""
    error_code = "INVALID_FIELD_VALUE"


class InvalidTTLError(ValidationError):
    """Token time-to-live must be positive"""
    error_code = "INVALID_TTL"


# Access token errors
class AccessTokenError(AuthorizationError):
    """Base for every access-token denial"""
    error_code = "ACCESS_TOKEN_ERROR"


class MissingAccessTokenError(AccessTokenError):
    """Policy requires a token and none was supplied"""
    error_code = "MISSING_ACCESS_TOKEN"
    http_status = 401


class TokenNotFoundError(AccessTokenError):
    """Token reference does not exist"""
    error_code = "TOKEN_NOT_FOUND"
    http_status = 404


class TokenAlreadyConsumedError(AccessTokenError):
    """Token was already used (possibly by a concurrent request)"""
    error_code = "TOKEN_ALREADY_CONSUMED"
    http_status = 409


class TokenRevokedError(AccessTokenError):
    """Token was revoked and can never be used"""
    error_code = "TOKEN_REVOKED"
    http_status = 410


class TokenExpiredError(AccessTokenError):
    """Token expiry has passed"""
    error_code = "TOKEN_EXPIRED"
    http_status = 410


class TokenScopeMismatchError(AccessTokenError):
    """Token was issued for another operation kind"""
    error_code = "TOKEN_SCOPE_MISMATCH"


class TokenTargetMismatchError(AccessTokenError):
    """Token was issued for another resource"""
    error_code = "TOKEN_TARGET_MISMATCH"


class TokenDetailsMismatchError(AccessTokenError):
    """Request does not carry the details the token was issued for"""
    error_code = "TOKEN_DETAILS_MISMATCH"


class TokenOwnershipError(AccessTokenError):
    """Only the issuer or an administrator may revoke a token"""
    error_code = "TOKEN_OWNERSHIP"


# Conflict Errors
class ConflictError(DomainError):
    """Resource conflict"""
    error_code = "CONFLICT"
    http_status = 409


class ActiveTokenExistsError(ConflictError):
    """Another live token already guards this target"""
    error_code = "ACTIVE_TOKEN_EXISTS"


# Not Found Errors
class NotFoundError(DomainError):
    """Resource not found"""
    error_code = "NOT_FOUND"
    http_status = 404


# Infrastructure Errors
class StorageUnavailableError(DomainError):
    """Backing store unreachable; safe for the caller to retry"""
    error_code = "STORAGE_UNAVAILABLE"
    http_status = 503
