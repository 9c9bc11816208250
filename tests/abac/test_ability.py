import pytest
from bson import ObjectId

from iam.abac import (
    Ability,
    ConditionOperator,
    Effect,
    build_ability,
    compile_policies,
    resource_identity,
)
from tests.helpers import make_policy

ALLOW = Effect.ALLOW
DENY = Effect.DENY

ID_1 = "000000000001"
ID_2 = "000000000002"


def ability_for(*policies) -> Ability:
    return Ability.from_policies(list(policies))


# ── No policies ──────────────────────────────────────────────────
def test_default_deny_without_rules():
    ability = ability_for()
    assert not ability.can("Action", "Foo", {})
    assert not ability.can("Action", "Foo")
    assert ability.cannot("Action", "Foo", {"_id": ID_1})


def test_build_ability_from_compiled_rules():
    rules = compile_policies([make_policy(["Foo:Action"])])
    ability = build_ability(rules)
    assert ability.rules == tuple(rules)
    assert ability.evaluate("Action", "Foo", {})


# ── Allow policies ───────────────────────────────────────────────
def test_other_subject_is_denied():
    assert not ability_for(make_policy(["Bar:Action"])).can("Action", "Foo", {})


def test_other_verb_is_denied():
    assert not ability_for(make_policy(["Foo:Action2"])).can("Action", "Foo", {})


def test_resource_wildcard_allows():
    ability = ability_for(make_policy(["Foo:Action"]))
    assert ability.can("Action", "Foo", {})
    assert ability.can("Action", "Foo", {"_id": ID_1})


def test_universal_action_allows_everything():
    ability = ability_for(make_policy(["*"]))
    assert ability.can("Action", "Foo", {})
    assert ability.can("Action", "Foo", {"foo": 1})
    assert ability.can("Action2", "Bar", {})
    assert ability.can("Action2", "Bar", {"foo": 1})


def test_resource_set_requires_identity():
    assert not ability_for(make_policy(["Foo:Action"], resources=[ID_1])).can("Action", "Foo", {})


def test_resource_set_allows_member():
    ability = ability_for(make_policy(["Foo:Action"], resources=[ID_1]))
    assert ability.can("Action", "Foo", {"_id": ID_1})
    assert ability.can("Action", "Foo", {"_id": ObjectId(ID_1.encode())})
    assert not ability.can("Action", "Foo", {"_id": ID_2})


def test_identity_falls_back_to_id_field():
    hex_id = "5f1d7f0e9b1e8a3c2d4b6a10"
    ability = ability_for(make_policy(["Doc:Read"], resources=[hex_id]))
    assert ability.can("Read", "Doc", {"id": hex_id})


def test_unparseable_resource_identity_never_matches_a_resource_set():
    ability = ability_for(make_policy(["Doc:Read"], resources=[ID_1]))
    assert not ability.can("Read", "Doc", {"_id": "42"})


# ── Deny policies ────────────────────────────────────────────────
@pytest.mark.parametrize(
    "resources, resource",
    [
        (["*"], {}),
        (["*"], {"_id": ID_1}),
        ([ID_1], {"_id": ID_1}),
        ([ID_1], {"_id": ID_2}),
    ],
)
def test_deny_alone_never_allows(resources, resource):
    ability = ability_for(make_policy(["Foo:Action"], resources=resources, effect=DENY))
    assert not ability.can("Action", "Foo", resource)


# ── Allow and Deny ───────────────────────────────────────────────
def test_later_deny_overrides_allow_on_wildcards():
    ability = ability_for(
        make_policy(["Foo:Action"], name="Allow"),
        make_policy(["Foo:Action"], name="Deny", effect=DENY),
    )
    assert not ability.can("Action", "Foo", {})


def test_same_resource_allow_then_deny_is_denied():
    ability = ability_for(
        make_policy(["Foo:Action"], resources=[ID_1], name="Allow"),
        make_policy(["Foo:Action"], resources=[ID_1], name="Deny", effect=DENY),
    )
    assert not ability.can("Action", "Foo", {"_id": ID_1})
    assert not ability.can("Action", "Foo", {})


def test_disjoint_allow_and_deny_sets():
    ability = ability_for(
        make_policy(["Foo:Action"], resources=[ID_1], name="Allow"),
        make_policy(["Foo:Action"], resources=[ID_2], name="Deny", effect=DENY),
    )
    assert ability.can("Action", "Foo", {"_id": ID_1})
    assert not ability.can("Action", "Foo", {"_id": ID_2})


def test_deny_carves_a_resource_out_of_a_wildcard_allow():
    ability = ability_for(
        make_policy(["*"], name="Allow"),
        make_policy(["*"], resources=[ID_2], name="Deny", effect=DENY),
    )
    assert not ability.can("Action", "Foo", {"_id": ID_2})
    assert ability.can("Action", "Foo", {"_id": ID_1})
    assert ability.can("Other", "Bar", {"_id": ID_1})


def test_declaration_order_not_effect_breaks_ties():
    deny_first = ability_for(
        make_policy(["*"], resources=[ID_2], name="Deny", effect=DENY),
        make_policy(["*"], name="Allow"),
    )
    assert deny_first.can("Action", "Foo", {"_id": ID_2})
    assert deny_first.can("Action", "Foo", {"_id": ID_1})


def test_earlier_deny_loses_to_later_universal_allow_only_when_allow_matches():
    ability = ability_for(
        make_policy(["Foo:Action"], name="Deny", effect=DENY),
        make_policy(["Bar:*"], name="Allow"),
    )
    assert not ability.can("Action", "Foo", {"_id": ID_2})
    assert ability.can("Action", "Bar", {"_id": ID_2})


# ── Wildcard actions ─────────────────────────────────────────────
def test_verb_wildcard_is_scoped_to_subject():
    ability = ability_for(make_policy(["Foo:*"]))
    assert ability.can("Action", "Foo", {})
    assert ability.can("Anything", "Foo", {})
    assert not ability.can("Action", "Bar", {})


def test_subject_wildcard_is_scoped_to_verb():
    ability = ability_for(make_policy(["*:Action"]))
    assert ability.can("Action", "Foo", {})
    assert ability.can("Action", "Bar", {})
    assert not ability.can("Action2", "Foo", {})


@pytest.mark.parametrize(
    "allow_action, deny_action",
    [("*", "*"), ("*", "Foo:Action"), ("Foo:*", "Foo:*"), ("*:Action", "*:Action")],
)
def test_wildcard_allow_then_matching_deny(allow_action, deny_action):
    ability = ability_for(
        make_policy([allow_action], name="Allow"),
        make_policy([deny_action], name="Deny", effect=DENY),
    )
    assert not ability.can("Action", "Foo", {})


def test_subject_wildcard_deny_covers_all_subjects_for_its_verb():
    ability = ability_for(
        make_policy(["*:Action"], name="Allow"),
        make_policy(["*:Action"], name="Deny", effect=DENY),
    )
    assert not ability.can("Action", "Foo", {})
    assert not ability.can("Action", "Bar", {})
    assert not ability.can("Action2", "Foo", {})


# ── Conditions ───────────────────────────────────────────────────
def test_condition_and_composition_decides():
    ability = ability_for(
        make_policy(["*"], condition={"StringEquals": {"foo": "bar"}, "NumberGreaterThan": {"n": 1}})
    )
    assert ability.can("Action", "Foo", {"foo": "bar", "n": 2})
    assert not ability.can("Action", "Foo", {"foo": "baz", "n": 2})
    assert not ability.can("Action", "Foo", {"foo": "bar", "n": 1})


def test_condition_and_resource_set_are_both_required():
    ability = ability_for(
        make_policy(["Doc:Read"], resources=[ID_1], condition={"Bool": {"published": True}})
    )
    assert ability.can("Read", "Doc", {"_id": ID_1, "published": True})
    assert not ability.can("Read", "Doc", {"_id": ID_1, "published": False})
    assert not ability.can("Read", "Doc", {"_id": ID_2, "published": True})


def test_conditional_deny_only_applies_when_condition_holds():
    ability = ability_for(
        make_policy(["Doc:*"], name="Allow"),
        make_policy(["Doc:Delete"], name="Deny", effect=DENY, condition={"Bool": {"locked": True}}),
    )
    assert ability.can("Delete", "Doc", {"locked": False})
    assert not ability.can("Delete", "Doc", {"locked": True})


# ── Diagnostics and filtering ────────────────────────────────────
def test_relevant_rule_names_the_deciding_policy():
    ability = ability_for(
        make_policy(["*"], name="Allow"),
        make_policy(["Foo:Action"], name="Deny", effect=DENY),
    )
    assert ability.relevant_rule("Action", "Foo", {}).policy_name == "Deny"
    assert ability.relevant_rule("Action", "Bar", {}).policy_name == "Allow"
    assert ability_for().relevant_rule("Action", "Foo", {}) is None


def test_filter_keeps_allowed_records_in_order():
    ability = ability_for(
        make_policy(["Doc:List"], name="Allow"),
        make_policy(["Doc:List"], resources=[ID_2], name="Deny", effect=DENY),
    )
    docs = [{"_id": ID_1, "n": 1}, {"_id": ID_2, "n": 2}, {"_id": "000000000003", "n": 3}]
    assert [d["n"] for d in ability.filter("List", "Doc", docs)] == [1, 3]


def test_resource_identity_helper():
    assert resource_identity({"_id": ID_1}) == ObjectId(ID_1.encode())
    assert resource_identity({"id": "nope"}) is None
    assert resource_identity({}) is None
    assert resource_identity(None) is None


# ── End to end ───────────────────────────────────────────────────
def test_read_allowed_write_denied():
    policy = make_policy(["Doc:Read"], name="Readers")
    ability = ability_for(policy)
    assert ability.can("Read", "Doc", {"id": "42"})
    assert not ability.can("Write", "Doc", {"id": "42"})


def test_unparseable_id_falls_back_to_id_field():
    hex_id = "5f1d7f0e9b1e8a3c2d4b6a10"
    ability = ability_for(make_policy(["Doc:Read"], resources=[hex_id]))
    assert resource_identity({"_id": "legacy-key", "id": hex_id}) == ObjectId(hex_id)
    assert ability.can("Read", "Doc", {"_id": "legacy-key", "id": hex_id})


def test_ability_ignores_later_changes_to_its_policies():
    policy = make_policy(["Doc:Read"], condition={"Bool": {"published": True}})
    ability = ability_for(policy)

    policy.condition[ConditionOperator.BOOL]["published"] = False
    policy.condition[ConditionOperator.STRING_EQUALS] = {"status": "draft"}

    assert ability.can("Read", "Doc", {"published": True})
    assert not ability.can("Read", "Doc", {"published": False})
