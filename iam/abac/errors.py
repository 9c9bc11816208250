from enum import Enum
from typing import Any


class ParseErrorReason(str, Enum):
    MALFORMED = "malformed"
    RESERVED_KEYWORD = "reserved_keyword"


class ParseError(ValueError):
    """An action token that cannot become a (subject type, verb) pair."""

    def __init__(self, token: str, reason: ParseErrorReason, message: str = ""):
        self.token = token
        self.reason = reason
        super().__init__(message or f"{reason.value} action '{token}'")


class IdentityParseError(ValueError):
    """A policy resource entry that is not a valid resource identity."""

    def __init__(self, identifier: Any):
        self.identifier = identifier
        super().__init__(f"invalid resource identifier {identifier!r}")
