"""
Action grammar.

    "*"                 -> (all, manage)      every verb on every subject
    "Invoice:Create"    -> (Invoice, Create)
    "Invoice:*"         -> (Invoice, manage)  every verb on Invoice
    "*:Read"            -> (all, Read)        Read on every subject

"all" and "manage" are what the wildcards expand to, so a policy may not
spell them out itself.
"""

from typing import NamedTuple

from .errors import ParseError, ParseErrorReason
from .models import ALL_SUBJECTS, MANAGE, WILDCARD

SEPARATOR = ":"


class ActionTarget(NamedTuple):
    subject_type: str
    verb: str


def parse_action(token: str) -> ActionTarget:
    """Parse a raw action token. Raises ParseError on malformed or reserved input."""
    if token == WILDCARD:
        return ActionTarget(ALL_SUBJECTS, MANAGE)

    if not isinstance(token, str) or token.count(SEPARATOR) != 1:
        raise ParseError(str(token), ParseErrorReason.MALFORMED, "Malformed action")

    raw_subject, raw_verb = token.split(SEPARATOR)
    if not raw_subject or not raw_verb:
        raise ParseError(token, ParseErrorReason.MALFORMED, "Malformed action")

    if raw_subject == ALL_SUBJECTS:
        raise ParseError(
            token,
            ParseErrorReason.RESERVED_KEYWORD,
            f"'{ALL_SUBJECTS}' is a reserved keyword",
        )
    if raw_verb == MANAGE:
        raise ParseError(
            token,
            ParseErrorReason.RESERVED_KEYWORD,
            f"'{MANAGE}' is a reserved keyword",
        )

    subject_type = ALL_SUBJECTS if raw_subject == WILDCARD else raw_subject
    verb = MANAGE if raw_verb == WILDCARD else raw_verb
    return ActionTarget(subject_type, verb)
