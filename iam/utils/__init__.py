from .helpers import (
    serialize_mongo_doc,
    success_response,
    error_response,
    parse_object_id,
)
from .exceptions import Unauthenticated, Forbidden, NotFoundError, DuplicateError
from .logger import Logger

__all__ = [
    "serialize_mongo_doc",
    "success_response",
    "error_response",
    "parse_object_id",
    "Unauthenticated",
    "Forbidden",
    "NotFoundError",
    "DuplicateError",
    "Logger",
]
