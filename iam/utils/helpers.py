from datetime import datetime
from typing import Any, Optional
from bson import ObjectId
from fastapi.responses import JSONResponse


def serialize_mongo_doc(doc):
    """Recursively convert ObjectIds and datetimes in a MongoDB document."""
    if not doc:
        return doc

    if isinstance(doc, list):
        return [serialize_mongo_doc(d) for d in doc]

    if isinstance(doc, dict):
        clean = {}
        for k, v in doc.items():
            if isinstance(v, ObjectId):
                clean[k] = str(v)
            elif isinstance(v, datetime):
                clean[k] = v.isoformat()
            elif isinstance(v, (dict, list)):
                clean[k] = serialize_mongo_doc(v)
            else:
                clean[k] = v
        return clean

    return doc


def parse_object_id(value: Any) -> ObjectId:
    """
    Convert a resource identifier to an ObjectId.

    Accepted forms:
      - an ObjectId instance
      - a 24-character hex string   ("5f1d7f0e9b1e8a3c2d4b6a10")
      - a 12-character raw string   ("000000000001"), read as the 12 id bytes

    Raises ValueError for anything else.
    """
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str):
        if len(value) == 24 and ObjectId.is_valid(value):
            return ObjectId(value)
        raw = value.encode("utf-8")
        if len(raw) == 12:
            return ObjectId(raw)
    raise ValueError(f"Invalid ObjectId: {value!r}")


def success_response(
    data: Optional[Any] = None,
    message: str = "Success",
    code: int = 200,
) -> JSONResponse:
    """Standard success JSON response."""
    content = {"success": True, "message": message}
    if data is not None:
        content["data"] = data
    return JSONResponse(status_code=code, content=content)


def error_response(
    message: str,
    code: int = 400,
    data: Optional[Any] = None,
) -> JSONResponse:
    """Standard error JSON response."""
    content = {"success": False, "error": {"code": code, "message": message}}
    if data is not None:
        content["data"] = data
    return JSONResponse(status_code=code, content=content)
