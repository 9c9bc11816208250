"""
Policy service — policy CRUD and principal policy lists, scoped to a unit.

Collections:
  {unit}_policies   policy documents (name unique per unit)
  {unit}_users      principals; `policies` holds an ordered list of policy ids,
                    `groups` an ordered list of group ids
  {unit}_groups     groups; `policies` holds an ordered list of policy ids

Policy order on a principal is significant: later policies override earlier
ones when an Ability is evaluated, so reads always preserve it.
"""

from datetime import datetime, timezone

from bson import ObjectId
from fastapi import HTTPException, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError
from pymongo import ReturnDocument

from iam.abac import Policy
from iam.tenant import get_unit_collection
from iam.utils import DuplicateError, Logger, NotFoundError, serialize_mongo_doc

logger = Logger(__name__)

REQUIRED_POLICY_FIELDS = ("name", "effect", "actions", "resources")


def _object_id(value: str, label: str) -> ObjectId:
    if not ObjectId.is_valid(value):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {label} ID",
        )
    return ObjectId(value)


class PolicyService:
    def __init__(self, db: AsyncIOMotorDatabase, unit: str):
        self.db = db
        self.unit = unit
        self.policies = get_unit_collection(db, unit, "policies")
        self.principals = get_unit_collection(db, unit, "users")
        self.groups = get_unit_collection(db, unit, "groups")

    # ── Engine input ─────────────────────────────────────────────
    async def load_policies(self, principal_id: str) -> list[Policy]:
        """
        Return the principal's effective policies: its own, in the order they
        were attached, followed by each group's policies in group order.
        """
        if not ObjectId.is_valid(principal_id):
            logger.warning(f"Invalid principal id '{principal_id}' in unit '{self.unit}'")
            return []

        principal = await self.principals.find_one(
            {"_id": ObjectId(principal_id)}, {"policies": 1, "groups": 1}
        )
        if not principal:
            return []

        policy_ids = list(principal.get("policies") or [])
        policy_ids.extend(await self._group_policy_ids(principal.get("groups") or []))
        if not policy_ids:
            return []

        docs = await self.policies.find(
            {"_id": {"$in": list(dict.fromkeys(policy_ids))}}
        ).to_list(length=None)
        by_id = {doc["_id"]: doc for doc in docs}

        policies = []
        for policy_id in policy_ids:
            doc = by_id.get(policy_id)
            if doc is None:
                continue
            try:
                policies.append(Policy.model_validate(doc))
            except ValidationError as e:
                logger.error(f"Skipping stored policy {policy_id}: {e}")
        return policies

    async def _group_policy_ids(self, group_ids: list) -> list:
        """Policy ids of the given groups, concatenated in group order."""
        if not group_ids:
            return []
        groups = await self.groups.find(
            {"_id": {"$in": group_ids}}, {"policies": 1}
        ).to_list(length=None)
        by_id = {group["_id"]: group for group in groups}

        policy_ids = []
        for group_id in group_ids:
            group = by_id.get(group_id)
            if group is None:
                logger.warning(
                    f"Principal references unknown group {group_id} in unit '{self.unit}'"
                )
                continue
            policy_ids.extend(group.get("policies") or [])
        return policy_ids

    # ── CRUD ─────────────────────────────────────────────────────
    async def create_policy(self, data: dict, created_by: str | None = None) -> dict:
        """Create a policy. Names are unique within the unit."""
        policy = Policy.model_validate(data)
        if await self.policies.find_one({"name": policy.name}):
            raise DuplicateError("Policy with this name already exists")

        now = datetime.now(timezone.utc)
        doc = {
            **policy.model_dump(mode="json"),
            "created_by": created_by,
            "created_at": now,
            "updated_at": now,
        }
        result = await self.policies.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info(f"Policy '{policy.name}' created in unit '{self.unit}'")
        return serialize_mongo_doc(doc)

    async def get_policy(self, policy_id: str) -> dict:
        doc = await self.policies.find_one({"_id": _object_id(policy_id, "policy")})
        if not doc:
            raise NotFoundError("Policy not found")
        return serialize_mongo_doc(doc)

    async def list_policies(self) -> list[dict]:
        """All policies of the unit, oldest first."""
        cursor = self.policies.find({}).sort("created_at", 1)
        docs = await cursor.to_list(length=None)
        return [serialize_mongo_doc(doc) for doc in docs]

    async def update_policy(self, policy_id: str, update_data: dict) -> dict:
        """Apply a partial update; the merged document must still be a valid policy."""
        oid = _object_id(policy_id, "policy")
        current = await self.policies.find_one({"_id": oid})
        if not current:
            raise NotFoundError("Policy not found")

        # null clears an optional field; required fields keep their stored value
        changes = {
            k: v
            for k, v in update_data.items()
            if v is not None or k not in REQUIRED_POLICY_FIELDS
        }
        merged = Policy.model_validate({**current, **changes})

        if merged.name != current.get("name"):
            if await self.policies.find_one({"name": merged.name, "_id": {"$ne": oid}}):
                raise DuplicateError("Policy with this name already exists")

        clean = merged.model_dump(mode="json")
        clean["updated_at"] = datetime.now(timezone.utc)
        result = await self.policies.find_one_and_update(
            {"_id": oid},
            {"$set": clean},
            return_document=ReturnDocument.AFTER,
        )
        if not result:
            raise NotFoundError("Policy not found")
        return serialize_mongo_doc(result)

    async def delete_policy(self, policy_id: str) -> dict:
        """Delete a policy and detach it from every principal and group."""
        oid = _object_id(policy_id, "policy")
        result = await self.policies.delete_one({"_id": oid})
        if result.deleted_count == 0:
            raise NotFoundError("Policy not found")
        await self.principals.update_many(
            {"policies": oid}, {"$pull": {"policies": oid}}
        )
        await self.groups.update_many(
            {"policies": oid}, {"$pull": {"policies": oid}}
        )
        logger.info(f"Policy {policy_id} deleted from unit '{self.unit}'")
        return {"message": "Policy deleted successfully"}

    # ── Principal attachment ─────────────────────────────────────
    async def attach_policy(self, principal_id: str, policy_id: str) -> dict:
        """Append a policy to the end of the principal's list (no-op if present)."""
        principal_oid = _object_id(principal_id, "principal")
        policy_oid = _object_id(policy_id, "policy")
        if not await self.policies.find_one({"_id": policy_oid}):
            raise NotFoundError("Policy not found")

        result = await self.principals.update_one(
            {"_id": principal_oid},
            {"$addToSet": {"policies": policy_oid}},
        )
        if result.matched_count == 0:
            raise NotFoundError("Principal not found")
        return {"message": "Policy attached"}

    async def detach_policy(self, principal_id: str, policy_id: str) -> dict:
        principal_oid = _object_id(principal_id, "principal")
        policy_oid = _object_id(policy_id, "policy")
        result = await self.principals.update_one(
            {"_id": principal_oid},
            {"$pull": {"policies": policy_oid}},
        )
        if result.matched_count == 0:
            raise NotFoundError("Principal not found")
        return {"message": "Policy detached"}
