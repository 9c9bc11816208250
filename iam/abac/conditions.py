import operator
from typing import Any, Callable, Dict, Mapping, Optional

from .models import ConditionOperator, is_number

_MISSING = object()

_NUMBER_COMPARATORS: Dict[ConditionOperator, Callable[[Any, Any], bool]] = {
    ConditionOperator.NUMBER_EQUALS: operator.eq,
    ConditionOperator.NUMBER_NOT_EQUALS: operator.ne,
    ConditionOperator.NUMBER_GREATER_THAN: operator.gt,
    ConditionOperator.NUMBER_GREATER_THAN_EQUALS: operator.ge,
    ConditionOperator.NUMBER_LESS_THAN: operator.lt,
    ConditionOperator.NUMBER_LESS_THAN_EQUALS: operator.le,
}


class ConditionEvaluator:
    """Evaluates a policy's attribute condition against a resource's fields"""

    def satisfies(
        self,
        condition: Optional[Mapping[str, Mapping[str, Any]]],
        resource: Optional[Mapping[str, Any]],
    ) -> bool:
        """
        True when every (operator, field, expected) predicate holds.

        A missing condition always holds. A field absent from the resource
        fails every predicate that names it.
        """
        if condition is None:
            return True
        fields = resource or {}

        for op_name, expectations in condition.items():
            try:
                op = ConditionOperator(op_name)
            except ValueError:
                return False
            for field, expected in expectations.items():
                actual = self._get_nested_attribute(fields, field)
                if actual is _MISSING:
                    return False
                if not self._evaluate_predicate(op, actual, expected):
                    return False
        return True

    def _evaluate_predicate(self, op: ConditionOperator, actual: Any, expected: Any) -> bool:
        if op is ConditionOperator.STRING_EQUALS:
            return isinstance(actual, str) and actual == expected
        if op is ConditionOperator.STRING_NOT_EQUALS:
            return isinstance(actual, str) and actual != expected
        if op is ConditionOperator.BOOL:
            return isinstance(actual, bool) and isinstance(expected, bool) and actual is expected

        comparator = _NUMBER_COMPARATORS.get(op)
        if comparator is None or not (is_number(actual) and is_number(expected)):
            return False
        return comparator(actual, expected)

    def _get_nested_attribute(self, attributes: Mapping[str, Any], attr_path: str) -> Any:
        """Get a field value using dot notation (e.g. 'owner.team')."""
        if attr_path in attributes:
            return attributes[attr_path]
        if "." not in attr_path:
            return _MISSING

        value: Any = attributes
        for part in attr_path.split("."):
            if not isinstance(value, Mapping) or part not in value:
                return _MISSING
            value = value[part]
        return value


_default_evaluator = ConditionEvaluator()


def satisfies(
    condition: Optional[Mapping[str, Mapping[str, Any]]],
    resource: Optional[Mapping[str, Any]],
) -> bool:
    return _default_evaluator.satisfies(condition, resource)
