"""
Unit collection resolver.

Convention:
  - Unit-scoped collections:  {unit}_{collection_name}
    e.g.  acme_policies, acme_users
  - Global collections:       {collection_name}
    e.g.  units  (shared across all units)
"""

import re
from motor.motor_asyncio import AsyncIOMotorDatabase, AsyncIOMotorCollection


_UNIT_PATTERN = re.compile(r"^[a-z0-9][a-z0-9\-]*$")


def _validate_unit(unit: str) -> str:
    """Ensure the unit slug is safe for use as a collection name prefix."""
    slug = unit.strip().lower()
    if not _UNIT_PATTERN.match(slug):
        raise ValueError(
            f"Invalid unit '{unit}'. "
            "Must be lowercase alphanumeric with optional hyphens."
        )
    return slug.replace("-", "_")


def get_unit_collection(
    db: AsyncIOMotorDatabase,
    unit: str,
    collection_name: str,
) -> AsyncIOMotorCollection:
    """
    Return a unit-scoped collection.

    Example:
        get_unit_collection(db, "acme", "policies")  →  db["acme_policies"]
    """
    return db[f"{_validate_unit(unit)}_{collection_name}"]


def get_global_collection(
    db: AsyncIOMotorDatabase,
    collection_name: str,
) -> AsyncIOMotorCollection:
    """Return a collection shared by every unit."""
    return db[collection_name]
