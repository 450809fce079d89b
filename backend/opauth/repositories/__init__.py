"""Repository modules - Data access layer"""
from .mongo_client import get_database, get_collection
from .access_token_repo import AccessTokenRepository
from .audit_repo import AuditRepository

__all__ = [
    "get_database",
    "get_collection",
    "AccessTokenRepository",
    "AuditRepository",
]
