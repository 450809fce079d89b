"""Token Validator - Decides token acceptance and consumes it exactly once"""
from datetime import datetime
from typing import Any, Callable, Dict, NoReturn, Union

from ..domain.models import AccessToken
from ..domain.enums import OperationKind, TokenStatus, RevokeReason
from ..domain.errors import (
    TokenNotFoundError, TokenAlreadyConsumedError, TokenRevokedError, TokenExpiredError,
    TokenScopeMismatchError, TokenTargetMismatchError, TokenDetailsMismatchError,
)
from ..repositories.access_token_repo import AccessTokenRepository
from ..utils.time import utc_now, is_expired, format_iso
from ..utils.logger import get_logger

logger = get_logger(__name__)


class TokenValidator:
    """
    Validate an access token against an operation and consume it

    Checks run in a fixed order and the first failure wins:

    1. token exists
    2. token is still issued (not consumed / revoked)
    3. token has not expired (an expired token is revoked on the spot)
    4. operation kind matches
    5. target matches
    6. every issued detail matches the request
    7. atomic issued -> consumed transition

    Nothing is written before step 7 except the expiry revocation, so a
    caller abandoning a request leaves no partial state behind.
    """

    def __init__(
        self,
        repo: AccessTokenRepository,
        clock: Callable[[], datetime] = utc_now
    ):
        self._repo = repo
        self._clock = clock

    def validate_and_consume(
        self,
        token_ref: str,
        kind: Union[str, OperationKind],
        target_id: str,
        details: Dict[str, Any]
    ) -> AccessToken:
        """
        Validate and consume a token for one operation

        Returns:
            The consumed token

        Raises:
            AccessTokenError subclass describing the first failed check
            StorageUnavailableError: backing store unreachable (retryable)
        """
        token = self._repo.get_token(token_ref)
        if token is None:
            raise TokenNotFoundError("Access token not found", details={"token_ref": token_ref})

        self._check_status(token)

        now = self._clock()
        if is_expired(token.expires_at, now):
            self._expire(token, now)

        requested_kind = kind.value if isinstance(kind, OperationKind) else str(kind)
        if token.operation_kind.value != requested_kind:
            raise TokenScopeMismatchError(
                "Access token was issued for a different operation",
                details={"token_kind": token.operation_kind.value, "requested_kind": requested_kind}
            )

        if token.target_id != target_id:
            raise TokenTargetMismatchError(
                "Access token was issued for a different resource",
                details={"token_target_id": token.target_id, "requested_target_id": target_id}
            )

        mismatched = {
            key: {"expected": expected, "actual": details.get(key)}
            for key, expected in token.details.items()
            if details.get(key) != expected
        }
        if mismatched:
            raise TokenDetailsMismatchError(
                "Request does not match the operation the token was issued for",
                details={"fields": mismatched}
            )

        consumed = self._repo.consume_token(token.token_id, now)
        if consumed is None:
            self._explain_lost_race(token.token_id, now)

        logger.info(
            f"Consumed {consumed.operation_kind.value} token",
            extra={"token_id": consumed.token_id, "target_id": consumed.target_id}
        )
        return consumed

    def _check_status(self, token: AccessToken) -> None:
        if token.is_usable:
            return
        if token.status == TokenStatus.CONSUMED:
            raise TokenAlreadyConsumedError(
                "Access token has already been used",
                details={"token_id": token.token_id}
            )
        if token.status == TokenStatus.REVOKED and token.revoke_reason == RevokeReason.EXPIRED:
            # Expiry revocations keep reporting as expired
            raise TokenExpiredError(
                "Access token has expired",
                details={"token_id": token.token_id, "expired_at": format_iso(token.expires_at)}
            )
        if token.status == TokenStatus.REVOKED:
            raise TokenRevokedError(
                "Access token has been revoked",
                details={"token_id": token.token_id, "reason": token.revoke_reason}
            )

    def _expire(self, token: AccessToken, now: datetime) -> NoReturn:
        """Revoke an expired token so it can never become consumable, then fail"""
        self._repo.revoke_token(token.token_id, now, RevokeReason.EXPIRED)
        raise TokenExpiredError(
            "Access token has expired",
            details={"token_id": token.token_id, "expired_at": format_iso(token.expires_at)}
        )

    def _explain_lost_race(self, token_id: str, now: datetime) -> NoReturn:
        """The conditional update matched nothing; report why"""
        current = self._repo.get_token(token_id)
        if current is not None:
            if current.status == TokenStatus.REVOKED:
                self._check_status(current)
            if current.status == TokenStatus.ISSUED and is_expired(current.expires_at, now):
                self._expire(current, now)
        raise TokenAlreadyConsumedError(
            "Access token has already been used",
            details={"token_id": token_id}
        )
