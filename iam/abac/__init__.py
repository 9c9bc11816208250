"""
Attribute-based access control engine.

Policies are compiled into ordered rules; an Ability answers
"may verb V be performed on resource R of subject type T".
"""

from .models import (
    ALL_SUBJECTS,
    MANAGE,
    WILDCARD,
    AttributeCondition,
    ConditionOperator,
    check_condition_values,
    Effect,
    Policy,
    Rule,
)
from .errors import IdentityParseError, ParseError, ParseErrorReason
from .actions import ActionTarget, parse_action
from .conditions import ConditionEvaluator, satisfies
from .compiler import PolicyCompiler, build_resource_constraint, compile_policies
from .ability import Ability, build_ability, resource_identity
from .checkpoint import authorize

__all__ = [
    # Models
    "ALL_SUBJECTS", "MANAGE", "WILDCARD",
    "AttributeCondition", "ConditionOperator", "check_condition_values",
    "Effect", "Policy", "Rule",

    # Errors
    "IdentityParseError", "ParseError", "ParseErrorReason",

    # Engine
    "ActionTarget", "parse_action",
    "ConditionEvaluator", "satisfies",
    "PolicyCompiler", "build_resource_constraint", "compile_policies",
    "Ability", "build_ability", "resource_identity",

    # Checkpoint
    "authorize",
]
