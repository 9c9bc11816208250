from pydantic import BaseModel, Field, field_validator
from typing import Optional, List

from iam.abac import AttributeCondition, Effect, Policy, check_condition_values


class CreatePolicyRequest(Policy):
    """POST /iam/policies"""


class UpdatePolicyRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    effect: Optional[Effect] = None
    actions: Optional[List[str]] = Field(None, min_length=1)
    resources: Optional[List[str]] = Field(None, min_length=1)
    condition: Optional[AttributeCondition] = None

    @field_validator("condition")
    @classmethod
    def validate_condition_values(cls, v):
        return check_condition_values(v)
