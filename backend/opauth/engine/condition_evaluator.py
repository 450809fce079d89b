"""Condition Evaluator - Safe evaluation of policy predicates"""
from typing import Any, Dict

from ..domain.models import ConditionGroup, Condition
from ..domain.enums import ConditionOperator
from ..utils.logger import get_logger

logger = get_logger(__name__)


def is_present(value: Any) -> bool:
    """A field counts as present when it carries a non-empty value"""
    return value is not None and value != "" and value != []


class ConditionEvaluator:
    """
    Evaluate policy predicates over request fields

    Uses a simple DSL - no eval() or exec().
    """

    def evaluate(
        self,
        condition_group: ConditionGroup,
        context: Dict[str, Any]
    ) -> bool:
        """
        Evaluate a condition group

        Args:
            condition_group: Group of conditions with AND/OR logic
            context: Request fields

        Returns:
            True if conditions are met
        """
        if not condition_group.conditions:
            return True  # No conditions = always true

        results = [self._evaluate_single(condition, context) for condition in condition_group.conditions]

        if condition_group.logic.upper() == "OR":
            return any(results)
        return all(results)

    def _evaluate_single(
        self,
        condition: Condition,
        context: Dict[str, Any]
    ) -> bool:
        """Evaluate a single condition"""
        field_value = self.get_field_value(condition.field, context)
        return self._compare(field_value, condition.operator, condition.value)

    @staticmethod
    def get_field_value(field_path: str, context: Dict[str, Any]) -> Any:
        """
        Get field value from context using dot notation

        Example: "details.newStatus" -> context["details"]["newStatus"]
        """
        value: Any = context
        for part in field_path.split("."):
            if isinstance(value, dict):
                value = value.get(part)
            else:
                return None
        return value

    def _compare(
        self,
        field_value: Any,
        operator: ConditionOperator,
        compare_value: Any
    ) -> bool:
        """Compare values using operator"""

        if operator == ConditionOperator.EQUALS:
            return field_value == compare_value

        elif operator == ConditionOperator.NOT_EQUALS:
            return field_value != compare_value

        elif operator == ConditionOperator.GREATER_THAN:
            return self._compare_numeric(field_value, compare_value, lambda a, b: a > b)

        elif operator == ConditionOperator.LESS_THAN:
            return self._compare_numeric(field_value, compare_value, lambda a, b: a < b)

        elif operator == ConditionOperator.GREATER_THAN_OR_EQUALS:
            return self._compare_numeric(field_value, compare_value, lambda a, b: a >= b)

        elif operator == ConditionOperator.LESS_THAN_OR_EQUALS:
            return self._compare_numeric(field_value, compare_value, lambda a, b: a <= b)

        elif operator == ConditionOperator.IN:
            if not isinstance(compare_value, (list, tuple)):
                compare_value = [compare_value]
            return field_value in compare_value

        elif operator == ConditionOperator.NOT_IN:
            if not isinstance(compare_value, (list, tuple)):
                compare_value = [compare_value]
            return field_value not in compare_value

        elif operator == ConditionOperator.IS_EMPTY:
            return not is_present(field_value)

        elif operator == ConditionOperator.IS_NOT_EMPTY:
            return is_present(field_value)

        logger.warning(f"Unsupported condition operator: {operator}")
        return False  # Fail closed

    def _compare_numeric(
        self,
        field_value: Any,
        compare_value: Any,
        comparator
    ) -> bool:
        """Compare numeric values; non-numeric input never matches"""
        try:
            return comparator(float(field_value), float(compare_value))
        except (ValueError, TypeError):
            return False
