"""
Authorization checkpoint.

Call at the top of a use-case handler:

    ability = authorize("GetPolicy", "Policy", {"_id": policy_id}, policies)
"""

from typing import Any, Iterable, Mapping, Optional, Union

from iam.utils import Forbidden, Logger, Unauthenticated
from .ability import Ability
from .models import Policy

logger = Logger(__name__)


def authorize(
    verb: str,
    subject_type: str,
    resource: Optional[Mapping[str, Any]],
    principal_policies: Union[Ability, Iterable[Policy], None],
) -> Ability:
    """
    Raise unless the principal may perform `verb` on the resource.

    `principal_policies` is either an already-built Ability or the
    principal's ordered policies. None means there is no principal at all.
    """
    if principal_policies is None:
        raise Unauthenticated()

    if isinstance(principal_policies, Ability):
        ability = principal_policies
    else:
        ability = Ability.from_policies(principal_policies)

    if not ability.can(verb, subject_type, resource):
        logger.warning(f"Denied {verb} on {subject_type}")
        raise Forbidden(verb, subject_type)
    return ability
