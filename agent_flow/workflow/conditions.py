""" Conditional field visibility for node forms. """

from typing import Any, Iterable, Mapping, Optional, Set

from .models import AgentSchema, Condition

_MISSING = object()


def evaluate_condition(condition: Condition, form_data: Optional[Mapping[str, Any]]) -> bool:
    """
    Evaluate a single-field predicate against form data.
    Unknown operators evaluate to False.
    """
    data = form_data or {}
    actual = data.get(condition.field, _MISSING)

    operator = condition.operator
    if operator == "equals":
        return _strict_equals(actual, condition.value)
    if operator == "notEquals":
        return not _strict_equals(actual, condition.value)
    if operator == "exists":
        return _exists(actual)
    if operator == "notExists":
        return not _exists(actual)
    return False


def get_hidden_fields(conditions: Optional[Iterable[Condition]],
                      form_data: Optional[Mapping[str, Any]]) -> Set[str]:
    """
    Fields to hide for the given form data.

    ``hideFields`` hides its targets when the condition holds; ``showFields``
    hides them unless it holds.  Conditions are unioned: once a field is
    hidden, no later condition reveals it again.
    """
    hidden: Set[str] = set()
    if not conditions:
        return hidden

    for condition in conditions:
        holds = evaluate_condition(condition, form_data)
        action = condition.action.type
        if action == "hideFields" and holds:
            hidden.update(condition.action.fields)
        elif action == "showFields" and not holds:
            hidden.update(condition.action.fields)
    return hidden


def filter_schema_fields(schema: AgentSchema, hidden_fields: Set[str]) -> AgentSchema:
    """
    Return a schema view without the hidden properties.  The source schema
    is not modified; with nothing hidden it is returned as-is.
    """
    if not hidden_fields:
        return schema

    json_schema = dict(schema.json_schema)
    properties = {
        name: definition
        for name, definition in schema.properties().items()
        if name not in hidden_fields
    }
    json_schema["properties"] = properties

    json_schema.pop("required", None)
    required = [name for name in schema.required() if name not in hidden_fields]
    if required:
        json_schema["required"] = required

    return schema.model_copy(update={"json_schema": json_schema})


def _exists(value: Any) -> bool:
    return value is not _MISSING and value is not None and value != ""


def _strict_equals(actual: Any, expected: Any) -> bool:
    """
    Type-strict equality.  Lists and dicts compare by value, so a condition
    value decoded from JSON matches equal form data.
    """
    if actual is _MISSING:
        actual = None
    # bool is an int subclass; True must not equal 1
    if isinstance(actual, bool) or isinstance(expected, bool):
        return type(actual) is type(expected) and actual == expected
    if _is_number(actual) and _is_number(expected):
        return actual == expected
    return type(actual) is type(expected) and actual == expected


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
