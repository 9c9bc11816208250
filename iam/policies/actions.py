"""Subject types and verbs the IAM API itself is guarded with."""

POLICY_SCOPE = "Policy"

LIST_POLICIES = "ListPolicies"
GET_POLICY = "GetPolicy"
CREATE_POLICY = "CreatePolicy"
UPDATE_POLICY = "UpdatePolicy"
REMOVE_POLICY = "RemovePolicy"

PRINCIPAL_SCOPE = "Principal"

ATTACH_POLICY = "AttachPolicy"
DETACH_POLICY = "DetachPolicy"
