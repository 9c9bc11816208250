"""
Policy compiler.

Expands every policy into one Rule per action token, preserving policy
order and, inside a policy, action order. A bad action token or a bad
resource identifier drops only the rule being built for that action.
"""

import copy
from typing import FrozenSet, Iterable, List, Optional

from bson import ObjectId

from iam.utils import Logger, parse_object_id
from .actions import parse_action
from .errors import IdentityParseError, ParseError
from .models import WILDCARD, Policy, Rule

logger = Logger(__name__)


def build_resource_constraint(resources: Iterable[str]) -> Optional[FrozenSet[ObjectId]]:
    """
    None when the wildcard is listed, otherwise the parsed identity set.

    Raises IdentityParseError on the first entry that is not an identity.
    """
    resources = list(resources)
    if WILDCARD in resources:
        return None

    identities = set()
    for identifier in resources:
        try:
            identities.add(parse_object_id(identifier))
        except ValueError as e:
            raise IdentityParseError(identifier) from e
    return frozenset(identities)


class PolicyCompiler:
    def compile(self, policies: Optional[Iterable[Policy]]) -> List[Rule]:
        rules: List[Rule] = []
        for policy in policies or ():
            for action in policy.actions:
                rule = self._compile_action(policy, action)
                if rule is not None:
                    rules.append(rule)
        return rules

    def _compile_action(self, policy: Policy, action: str) -> Optional[Rule]:
        try:
            target = parse_action(action)
        except ParseError as e:
            logger.error(f"Error creating policy '{policy.name}': {e}")
            return None

        try:
            resource_ids = build_resource_constraint(policy.resources)
        except IdentityParseError as e:
            logger.error(
                f"Error creating policy '{policy.name}' for action '{action}': {e}"
            )
            return None

        return Rule(
            effect=policy.effect,
            subject_type=target.subject_type,
            verb=target.verb,
            resource_ids=resource_ids,
            condition=copy.deepcopy(policy.condition),
            policy_name=policy.name,
        )


_default_compiler = PolicyCompiler()


def compile_policies(policies: Optional[Iterable[Policy]]) -> List[Rule]:
    """Compile policies into the ordered rule list an Ability evaluates."""
    return _default_compiler.compile(policies)
