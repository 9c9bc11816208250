"""
Ability: the queryable rule set of one evaluation context.

Rules are scanned from the last compiled to the first and the first match
decides, so a later policy overrides an earlier one in either direction.
No match means deny.
"""

from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from bson import ObjectId

from iam.utils import parse_object_id
from .compiler import compile_policies
from .conditions import ConditionEvaluator
from .models import ALL_SUBJECTS, MANAGE, Effect, Policy, Rule

IDENTITY_FIELDS = ("_id", "id")


def resource_identity(resource: Optional[Mapping[str, Any]]) -> Optional[ObjectId]:
    """The resource's parsed identity, or None when it has no usable one."""
    if not resource:
        return None
    for field in IDENTITY_FIELDS:
        if field in resource:
            try:
                return parse_object_id(resource[field])
            except ValueError:
                continue
    return None


class Ability:
    """Immutable, ordered rule set answering allow/deny queries."""

    def __init__(self, rules: Iterable[Rule] = (), evaluator: Optional[ConditionEvaluator] = None):
        self._rules: Tuple[Rule, ...] = tuple(rules)
        self._evaluator = evaluator or ConditionEvaluator()

    @classmethod
    def from_policies(cls, policies: Optional[Iterable[Policy]]) -> "Ability":
        return cls(compile_policies(policies))

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return self._rules

    def relevant_rule(
        self,
        verb: str,
        subject_type: str,
        resource: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Rule]:
        """The rule that decides the query, or None when nothing matches."""
        identity = resource_identity(resource)
        for rule in reversed(self._rules):
            if self._matches(rule, verb, subject_type, identity, resource):
                return rule
        return None

    def can(
        self,
        verb: str,
        subject_type: str,
        resource: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        rule = self.relevant_rule(verb, subject_type, resource)
        return rule is not None and rule.effect is Effect.ALLOW

    evaluate = can

    def cannot(
        self,
        verb: str,
        subject_type: str,
        resource: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        return not self.can(verb, subject_type, resource)

    def filter(
        self,
        verb: str,
        subject_type: str,
        resources: Iterable[Mapping[str, Any]],
    ) -> List[Mapping[str, Any]]:
        """Keep the already-fetched records the query allows, in their order."""
        return [r for r in resources if self.can(verb, subject_type, r)]

    def _matches(
        self,
        rule: Rule,
        verb: str,
        subject_type: str,
        identity: Optional[ObjectId],
        resource: Optional[Mapping[str, Any]],
    ) -> bool:
        if rule.subject_type != ALL_SUBJECTS and rule.subject_type != subject_type:
            return False
        if rule.verb != MANAGE and rule.verb != verb:
            return False
        if rule.resource_ids is not None and identity not in rule.resource_ids:
            return False
        return self._evaluator.satisfies(rule.condition, resource)

    def __repr__(self) -> str:
        return f"Ability(rules={len(self._rules)})"


def build_ability(rules: Sequence[Rule]) -> Ability:
    return Ability(rules)
