"""Access Token Repository - Data access for access tokens

Status transitions are conditional updates (`find_one_and_update` filtered on
the current status), never read-then-write, so concurrent consumers of one
token cannot both win.
"""
from datetime import datetime
from typing import Any, Dict, Optional
from pymongo.collection import Collection
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from .mongo_client import get_collection, translate_storage_errors, ACCESS_TOKENS
from ..domain.models import AccessToken
from ..domain.enums import TokenStatus, RevokeReason
from ..domain.errors import ActiveTokenExistsError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class AccessTokenRepository:
    """Repository for access token operations"""

    def __init__(self, collection: Optional[Collection] = None):
        self._tokens: Collection = collection if collection is not None else get_collection(ACCESS_TOKENS)

    @translate_storage_errors
    def create_token(self, token: AccessToken) -> AccessToken:
        """Insert a freshly issued token"""
        doc = self._to_document(token)
        doc["_id"] = token.token_id

        try:
            self._tokens.insert_one(doc)
        except DuplicateKeyError:
            raise ActiveTokenExistsError(
                "Another user is currently accessing this resource",
                details={"target_id": token.target_id}
            )

        logger.info(
            f"Created access token for {token.operation_kind.value}",
            extra={"token_id": token.token_id, "target_id": token.target_id}
        )
        return token

    @translate_storage_errors
    def get_token(self, token_id: str) -> Optional[AccessToken]:
        """Get token by ID"""
        doc = self._tokens.find_one({"token_id": token_id})
        return self._from_document(doc)

    @translate_storage_errors
    def get_active_for_target(self, target_id: str, now: datetime) -> Optional[AccessToken]:
        """Get the issued, unexpired token guarding a target"""
        doc = self._tokens.find_one({
            "target_id": target_id,
            "status": TokenStatus.ISSUED.value,
            "expires_at": {"$gte": now},
        })
        return self._from_document(doc)

    @translate_storage_errors
    def consume_token(self, token_id: str, now: datetime) -> Optional[AccessToken]:
        """
        Atomically transition issued -> consumed

        Returns the consumed token, or None when the token was no longer
        issued (or had expired) at the moment of the update.
        """
        doc = self._tokens.find_one_and_update(
            {
                "token_id": token_id,
                "status": TokenStatus.ISSUED.value,
                "expires_at": {"$gte": now},
            },
            {"$set": {"status": TokenStatus.CONSUMED.value, "consumed_at": now}},
            return_document=ReturnDocument.AFTER
        )
        return self._from_document(doc)

    @translate_storage_errors
    def revoke_token(
        self,
        token_id: str,
        now: datetime,
        reason: RevokeReason
    ) -> Optional[AccessToken]:
        """
        Atomically transition issued -> revoked

        Expiry revocations only apply to tokens that are actually past expiry.
        """
        filter_query: Dict[str, Any] = {"token_id": token_id, "status": TokenStatus.ISSUED.value}
        if reason == RevokeReason.EXPIRED:
            filter_query["expires_at"] = {"$lt": now}

        doc = self._tokens.find_one_and_update(
            filter_query,
            {"$set": {
                "status": TokenStatus.REVOKED.value,
                "revoked_at": now,
                "revoke_reason": reason.value,
            }},
            return_document=ReturnDocument.AFTER
        )
        if doc is not None:
            logger.info(
                f"Revoked access token ({reason.value})",
                extra={"token_id": token_id, "target_id": doc.get("target_id")}
            )
        return self._from_document(doc)

    @translate_storage_errors
    def revoke_expired(self, now: datetime, target_id: Optional[str] = None) -> int:
        """Revoke every issued token past its expiry; returns the count"""
        filter_query: Dict[str, Any] = {
            "status": TokenStatus.ISSUED.value,
            "expires_at": {"$lt": now},
        }
        if target_id is not None:
            filter_query["target_id"] = target_id

        result = self._tokens.update_many(
            filter_query,
            {"$set": {
                "status": TokenStatus.REVOKED.value,
                "revoked_at": now,
                "revoke_reason": RevokeReason.EXPIRED.value,
            }}
        )
        return result.modified_count

    @staticmethod
    def _to_document(token: AccessToken) -> Dict[str, Any]:
        doc = token.model_dump()
        doc["operation_kind"] = token.operation_kind.value
        doc["status"] = token.status.value
        if token.revoke_reason is not None:
            doc["revoke_reason"] = token.revoke_reason.value
        return doc

    @staticmethod
    def _from_document(doc: Optional[Dict[str, Any]]) -> Optional[AccessToken]:
        if doc is None:
            return None
        doc.pop("_id", None)
        return AccessToken.model_validate(doc)
