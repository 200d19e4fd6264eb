"""Tests for conditional field visibility."""

from agent_flow.workflow.conditions import evaluate_condition, filter_schema_fields, get_hidden_fields
from agent_flow.workflow.models import AgentSchema, Condition


def cond(field, operator, value=None, action="showFields", fields=("includeEmojis",)):
    return Condition.model_validate({
        "field": field,
        "operator": operator,
        "value": value,
        "action": {"type": action, "fields": list(fields)},
    })


SCHEMA = AgentSchema.model_validate({
    "id": "blog-writer",
    "name": "Blog Writer",
    "schema": {
        "type": "object",
        "required": ["topic", "includeEmojis"],
        "properties": {
            "topic": {"type": "string"},
            "tone": {"type": "string"},
            "includeEmojis": {"type": "boolean"},
        },
    },
})


def test_equals_is_strict():
    assert evaluate_condition(cond("tone", "equals", "casual"), {"tone": "casual"})
    assert not evaluate_condition(cond("n", "equals", 1), {"n": "1"})
    assert not evaluate_condition(cond("flag", "equals", True), {"flag": 1})
    assert evaluate_condition(cond("n", "equals", 1), {"n": 1.0})


def test_not_equals():
    assert evaluate_condition(cond("tone", "notEquals", "casual"), {"tone": "formal"})
    assert evaluate_condition(cond("tone", "notEquals", "casual"), {})
    assert not evaluate_condition(cond("tone", "notEquals", "casual"), {"tone": "casual"})


def test_exists_treats_none_and_empty_string_as_absent():
    exists = cond("tone", "exists")
    assert evaluate_condition(exists, {"tone": "casual"})
    assert evaluate_condition(exists, {"tone": False})
    assert evaluate_condition(exists, {"tone": 0})
    assert not evaluate_condition(exists, {"tone": ""})
    assert not evaluate_condition(exists, {"tone": None})
    assert not evaluate_condition(exists, {})
    assert evaluate_condition(cond("tone", "notExists"), {"tone": ""})


def test_unknown_operator_is_false():
    assert not evaluate_condition(cond("tone", "contains", "cas"), {"tone": "casual"})


def test_unknown_operator_fails_closed_for_both_actions():
    """An unknown operator never holds: hideFields hides nothing, showFields hides its targets."""
    data = {"tone": "casual"}
    assert get_hidden_fields([cond("tone", "contains", "c", action="hideFields")], data) == set()
    assert get_hidden_fields([cond("tone", "contains", "c", action="showFields")], data) == {"includeEmojis"}


def test_show_fields_hides_targets_until_condition_holds():
    conditions = [cond("tone", "equals", "casual")]
    assert get_hidden_fields(conditions, {"tone": "formal"}) == {"includeEmojis"}
    assert get_hidden_fields(conditions, {"tone": "casual"}) == set()


def test_hide_fields_hides_targets_when_condition_holds():
    conditions = [cond("tone", "equals", "technical", action="hideFields")]
    assert get_hidden_fields(conditions, {"tone": "technical"}) == {"includeEmojis"}
    assert get_hidden_fields(conditions, {"tone": "casual"}) == set()


def test_hidden_wins_when_conditions_conflict():
    conditions = [
        cond("tone", "equals", "casual", action="hideFields"),
        cond("tone", "equals", "casual", action="showFields"),
    ]
    assert get_hidden_fields(conditions, {"tone": "casual"}) == {"includeEmojis"}


def test_unknown_action_hides_nothing():
    assert get_hidden_fields([cond("tone", "exists", action="toggle")], {"tone": "x"}) == set()


def test_no_conditions():
    assert get_hidden_fields(None, {"tone": "x"}) == set()
    assert get_hidden_fields([], None) == set()


def test_filter_schema_removes_properties_and_required():
    filtered = filter_schema_fields(SCHEMA, {"includeEmojis"})
    assert "includeEmojis" not in filtered.properties()
    assert filtered.required() == ["topic"]
    # source untouched
    assert "includeEmojis" in SCHEMA.properties()
    assert SCHEMA.required() == ["topic", "includeEmojis"]


def test_filter_schema_drops_empty_required():
    filtered = filter_schema_fields(SCHEMA, {"topic", "includeEmojis"})
    assert "required" not in filtered.json_schema
    assert list(filtered.properties()) == ["tone"]


def test_filter_schema_with_nothing_hidden_returns_schema():
    assert filter_schema_fields(SCHEMA, set()) is SCHEMA


def test_equals_compares_containers_by_value():
    assert evaluate_condition(cond("tags", "equals", ["a", "b"]), {"tags": ["a", "b"]})
    assert evaluate_condition(cond("meta", "equals", {"k": 1}), {"meta": {"k": 1}})
    assert not evaluate_condition(cond("tags", "equals", ["a", "b"]), {"tags": ["b", "a"]})
