"""API Dependencies - Common dependencies for routes"""
from typing import Optional
from fastapi import Header, HTTPException, Request, status

from ..config.settings import settings
from ..domain.models import ActorContext
from ..domain.enums import OperationKind, OperationModule, OPERATION_MODULES
from ..domain.errors import AuthenticationError, PermissionDeniedError
from ..services.authorization_service import AuthorizationService
from ..utils.jwt import get_current_user as _jwt_get_current_user  # Internal use only
from ..utils.logger import set_correlation_id
from ..utils.idgen import generate_correlation_id


async def get_correlation_id_dep(
    request: Request,
    x_correlation_id: Optional[str] = Header(None, alias="X-Correlation-Id")
) -> str:
    """
    Get or generate correlation ID for request tracing

    If client provides X-Correlation-Id, use it.
    Otherwise reuse the one the middleware minted, or generate a new one.
    """
    correlation_id = (
        x_correlation_id
        or getattr(request.state, "correlation_id", None)
        or generate_correlation_id()
    )
    set_correlation_id(correlation_id)
    return correlation_id


async def get_current_user_dep(
    authorization: Optional[str] = Header(None)
) -> ActorContext:
    """
    Dependency to get current user from Authorization header

    Raises:
        HTTPException: 401 if token is invalid or missing
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": {"code": "AUTHENTICATION_ERROR", "message": "Authorization header is missing"}},
            headers={"WWW-Authenticate": "Bearer"}
        )

    try:
        return _jwt_get_current_user(authorization)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.to_dict(),
            headers={"WWW-Authenticate": "Bearer"}
        )


def get_authorization_service(request: Request) -> AuthorizationService:
    """The service instance built at startup (see main.lifespan)"""
    service = getattr(request.app.state, "authorization_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": {"code": "SERVICE_NOT_READY", "message": "Authorization service not initialized"}}
        )
    return service


def ensure_can_issue(actor: ActorContext, kind: str) -> None:
    """
    Check the caller's role may approve operations of this kind

    Unknown kinds pass through; the registry rejects them with a precise error.
    """
    try:
        module = OPERATION_MODULES[OperationKind(kind)]
    except ValueError:
        return

    allowed = list(settings.admin_roles_list)
    if module == OperationModule.HR:
        allowed += settings.hr_issuer_roles_list
    elif module == OperationModule.STOCK:
        allowed += settings.stock_issuer_roles_list

    if not actor.has_any_role(allowed):
        raise PermissionDeniedError(
            f"Role not allowed to issue {kind} tokens",
            details={"kind": kind, "roles": actor.roles}
        )
