"""Authorization Engine - Policy rules, access tokens and request validation"""
from .policy_registry import PolicyRegistry, DEFAULT_RULES
from .condition_evaluator import ConditionEvaluator
from .token_issuer import TokenIssuer
from .token_validator import TokenValidator
from .movement_validator import MovementValidator
from .audit_writer import AuditWriter

__all__ = [
    "PolicyRegistry",
    "DEFAULT_RULES",
    "ConditionEvaluator",
    "TokenIssuer",
    "TokenValidator",
    "MovementValidator",
    "AuditWriter",
]
