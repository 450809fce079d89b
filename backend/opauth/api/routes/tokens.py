"""Access Token API Routes"""
from fastapi import APIRouter, Depends, status

from ..deps import (
    get_current_user_dep, get_correlation_id_dep, get_authorization_service, ensure_can_issue
)
from ...domain.models import ActorContext
from ...domain.errors import NotFoundError
from ...services.authorization_service import AuthorizationService
from ...utils.logger import get_logger
from .schemas import IssueTokenRequest, TokenResponse

logger = get_logger(__name__)
router = APIRouter()


@router.post("", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def issue_token(
    request: IssueTokenRequest,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: AuthorizationService = Depends(get_authorization_service)
):
    """
    Issue an access token

    The caller's role must cover the operation's module (HR or stock).
    Only one live token may guard a target at a time.
    """
    ensure_can_issue(actor, request.kind)
    token = service.issue_token(
        kind=request.kind,
        target_id=request.target_id,
        details=request.details,
        actor=actor,
        ttl_seconds=request.ttl_seconds,
    )
    return TokenResponse.from_token(token)


@router.get("/active/{target_id}", response_model=TokenResponse)
def get_active_token(
    target_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    service: AuthorizationService = Depends(get_authorization_service)
):
    """Get the live access token guarding a target"""
    token = service.get_active_token(target_id)
    if token is None:
        raise NotFoundError(
            "No active access token found for this resource",
            details={"target_id": target_id}
        )
    return TokenResponse.from_token(token)


@router.post("/{token_id}/revoke", response_model=TokenResponse)
def revoke_token(
    token_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: AuthorizationService = Depends(get_authorization_service)
):
    """Cancel an access token (issuer or administrator only)"""
    token = service.revoke_token(token_id, actor)
    return TokenResponse.from_token(token)
