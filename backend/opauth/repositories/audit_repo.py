"""Audit Repository - Data access for authorization audit events"""
from typing import Any, Dict, List, Optional
from pymongo.collection import Collection
from pymongo import DESCENDING

from .mongo_client import get_collection, translate_storage_errors, AUDIT_EVENTS
from ..domain.models import AuditEvent
from ..domain.enums import AuditEventType
from ..utils.logger import get_logger

logger = get_logger(__name__)


class AuditRepository:
    """Repository for audit event operations (append-only)"""

    def __init__(self, collection: Optional[Collection] = None):
        self._audit_events: Collection = (
            collection if collection is not None else get_collection(AUDIT_EVENTS)
        )

    @translate_storage_errors
    def create_event(self, event: AuditEvent) -> AuditEvent:
        """Create an audit event (append-only)"""
        doc = event.model_dump()
        doc["_id"] = event.audit_event_id
        doc["event_type"] = event.event_type.value

        self._audit_events.insert_one(doc)
        logger.debug(
            f"Created audit event: {event.event_type.value}",
            extra={"token_id": event.token_id, "target_id": event.target_id}
        )
        return event

    @translate_storage_errors
    def get_events_for_target(
        self,
        target_id: str,
        event_types: Optional[List[AuditEventType]] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[AuditEvent]:
        """Get audit events for a target resource"""
        query: Dict[str, Any] = {"target_id": target_id}

        if event_types:
            query["event_type"] = {"$in": [et.value for et in event_types]}

        cursor = self._audit_events.find(query).sort("timestamp", DESCENDING).skip(skip).limit(limit)
        return [self._from_document(doc) for doc in cursor]

    @translate_storage_errors
    def get_events_for_token(self, token_id: str) -> List[AuditEvent]:
        """Get the audit trail of one access token"""
        cursor = self._audit_events.find({"token_id": token_id}).sort("timestamp", DESCENDING)
        return [self._from_document(doc) for doc in cursor]

    @staticmethod
    def _from_document(doc: Dict[str, Any]) -> AuditEvent:
        doc.pop("_id", None)
        return AuditEvent.model_validate(doc)
