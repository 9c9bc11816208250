from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

from bson import ObjectId
from pydantic import BaseModel, Field, field_validator


WILDCARD = "*"
ALL_SUBJECTS = "all"
MANAGE = "manage"


class Effect(str, Enum):
    ALLOW = "Allow"
    DENY = "Deny"


class ConditionOperator(str, Enum):
    STRING_EQUALS = "StringEquals"
    STRING_NOT_EQUALS = "StringNotEquals"
    NUMBER_EQUALS = "NumberEquals"
    NUMBER_NOT_EQUALS = "NumberNotEquals"
    NUMBER_GREATER_THAN = "NumberGreaterThan"
    NUMBER_GREATER_THAN_EQUALS = "NumberGreaterThanEquals"
    NUMBER_LESS_THAN = "NumberLessThan"
    NUMBER_LESS_THAN_EQUALS = "NumberLessThanEquals"
    BOOL = "Bool"


STRING_OPERATORS = frozenset(
    {ConditionOperator.STRING_EQUALS, ConditionOperator.STRING_NOT_EQUALS}
)
NUMBER_OPERATORS = frozenset(
    {
        ConditionOperator.NUMBER_EQUALS,
        ConditionOperator.NUMBER_NOT_EQUALS,
        ConditionOperator.NUMBER_GREATER_THAN,
        ConditionOperator.NUMBER_GREATER_THAN_EQUALS,
        ConditionOperator.NUMBER_LESS_THAN,
        ConditionOperator.NUMBER_LESS_THAN_EQUALS,
    }
)

# operator -> {field: expected value}
AttributeCondition = Dict[ConditionOperator, Dict[str, Any]]


def is_number(value: Any) -> bool:
    """True for ints and floats, False for bools."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def check_condition_values(condition: Optional[AttributeCondition]) -> Optional[AttributeCondition]:
    """Reject expected values whose kind does not fit their operator."""
    if condition is None:
        return condition
    for operator, expectations in condition.items():
        for field, expected in expectations.items():
            if operator in STRING_OPERATORS and not isinstance(expected, str):
                raise ValueError(f"{operator.value}.{field} must be a string")
            if operator in NUMBER_OPERATORS and not is_number(expected):
                raise ValueError(f"{operator.value}.{field} must be a number")
            if operator is ConditionOperator.BOOL and not isinstance(expected, bool):
                raise ValueError(f"{operator.value}.{field} must be a boolean")
    return condition


class Policy(BaseModel):
    """A named Allow/Deny statement over actions and resources"""

    name: str = Field(..., min_length=1)
    effect: Effect
    actions: List[str] = Field(..., min_length=1)
    resources: List[str] = Field(..., min_length=1)
    condition: Optional[AttributeCondition] = None

    @field_validator("condition")
    @classmethod
    def validate_condition_values(cls, v):
        return check_condition_values(v)


@dataclass(frozen=True)
class Rule:
    """
    One compiled (policy, action) pair.

    `resource_ids` is None when the policy listed the resource wildcard,
    otherwise the set of identities a resource must belong to.
    """

    effect: Effect
    subject_type: str
    verb: str
    resource_ids: Optional[FrozenSet[ObjectId]] = None
    condition: Optional[AttributeCondition] = None
    policy_name: str = ""

    @property
    def unconstrained(self) -> bool:
        return self.resource_ids is None
