from fastapi import APIRouter, Depends, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from iam.abac import Ability, authorize
from iam.config import get_database
from iam.utils import Unauthenticated, success_response
from .actions import (
    ATTACH_POLICY,
    CREATE_POLICY,
    DETACH_POLICY,
    GET_POLICY,
    LIST_POLICIES,
    POLICY_SCOPE,
    PRINCIPAL_SCOPE,
    REMOVE_POLICY,
    UPDATE_POLICY,
)
from .schemas import CreatePolicyRequest, UpdatePolicyRequest
from .service import PolicyService

policies_router = APIRouter()
principals_router = APIRouter()


def _get_unit(request: Request) -> str:
    """Extract the unit set by the AuthPrincipalMiddleware."""
    unit = getattr(request.state, "unit", None)
    if not unit:
        raise Unauthenticated("No unit on request")
    return unit


async def get_ability(
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_database),
) -> Ability:
    """Build this request's Ability from the principal's current policies."""
    principal_id = getattr(request.state, "principal_id", None)
    if not principal_id:
        raise Unauthenticated()
    svc = PolicyService(db, _get_unit(request))
    policies = await svc.load_policies(principal_id)
    return Ability.from_policies(policies)


# ── Policies ─────────────────────────────────────────────────────
@policies_router.post("/")
async def create_policy(
    request: Request,
    body: CreatePolicyRequest,
    ability: Ability = Depends(get_ability),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    data = body.model_dump(mode="json")
    authorize(CREATE_POLICY, POLICY_SCOPE, data, ability)
    svc = PolicyService(db, _get_unit(request))
    policy = await svc.create_policy(data, created_by=request.state.principal_id)
    return success_response(data=policy, message="Policy created", code=201)


@policies_router.get("/")
async def list_policies(
    request: Request,
    ability: Ability = Depends(get_ability),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    authorize(LIST_POLICIES, POLICY_SCOPE, None, ability)
    svc = PolicyService(db, _get_unit(request))
    policies = await svc.list_policies()
    visible = ability.filter(LIST_POLICIES, POLICY_SCOPE, policies)
    return success_response(data={"policies": visible, "total": len(visible)})


@policies_router.get("/{policy_id}")
async def get_policy(
    request: Request,
    policy_id: str,
    ability: Ability = Depends(get_ability),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    svc = PolicyService(db, _get_unit(request))
    # decided on the stored record so conditions see its fields
    policy = await svc.get_policy(policy_id)
    authorize(GET_POLICY, POLICY_SCOPE, policy, ability)
    return success_response(data=policy)


@policies_router.put("/{policy_id}")
async def update_policy(
    request: Request,
    policy_id: str,
    body: UpdatePolicyRequest,
    ability: Ability = Depends(get_ability),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    svc = PolicyService(db, _get_unit(request))
    authorize(UPDATE_POLICY, POLICY_SCOPE, await svc.get_policy(policy_id), ability)
    policy = await svc.update_policy(
        policy_id, body.model_dump(mode="json", exclude_unset=True)
    )
    return success_response(data=policy, message="Policy updated")


@policies_router.delete("/{policy_id}")
async def delete_policy(
    request: Request,
    policy_id: str,
    ability: Ability = Depends(get_ability),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    svc = PolicyService(db, _get_unit(request))
    authorize(REMOVE_POLICY, POLICY_SCOPE, await svc.get_policy(policy_id), ability)
    result = await svc.delete_policy(policy_id)
    return success_response(data=result, message="Policy deleted")


# ── Principal policy lists ───────────────────────────────────────
@principals_router.put("/{principal_id}/policies/{policy_id}")
async def attach_policy(
    request: Request,
    principal_id: str,
    policy_id: str,
    ability: Ability = Depends(get_ability),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    authorize(ATTACH_POLICY, PRINCIPAL_SCOPE, {"_id": principal_id}, ability)
    svc = PolicyService(db, _get_unit(request))
    result = await svc.attach_policy(principal_id, policy_id)
    return success_response(data=result, message="Policy attached")


@principals_router.delete("/{principal_id}/policies/{policy_id}")
async def detach_policy(
    request: Request,
    principal_id: str,
    policy_id: str,
    ability: Ability = Depends(get_ability),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    authorize(DETACH_POLICY, PRINCIPAL_SCOPE, {"_id": principal_id}, ability)
    svc = PolicyService(db, _get_unit(request))
    result = await svc.detach_policy(principal_id, policy_id)
    return success_response(data=result, message="Policy detached")
