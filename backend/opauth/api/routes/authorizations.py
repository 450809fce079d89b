"""Authorization API Routes"""
from fastapi import APIRouter, Depends

from ..deps import get_current_user_dep, get_correlation_id_dep, get_authorization_service
from ...domain.models import ActorContext, OperationRequest, AuthorizationDecision
from ...services.authorization_service import AuthorizationService

router = APIRouter()


@router.post("", response_model=AuthorizationDecision)
def authorize_operation(
    request: OperationRequest,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: AuthorizationService = Depends(get_authorization_service)
):
    """
    Authorize a gated operation

    Returns the decision the mutation layer applies. Denials come back as
    `{"error": {...}}` with the failure's status code; 409 TOKEN_ALREADY_CONSUMED
    and 410 TOKEN_EXPIRED tell a lost race apart from a dead token.
    """
    return service.authorize(request, actor)
