"""Service modules - Business logic layer"""
from .authorization_service import AuthorizationService

__all__ = [
    "AuthorizationService",
]
