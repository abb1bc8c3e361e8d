"""Rule interpreter — evaluates declarative triggers against project attributes.

A rule fires when every trigger passes. Unknown attribute values never
pass: ordered comparisons against None are False, EQUALS against None is
False, so a rule needing data the extractor couldn't find stays quiet.
"""

from enum import Enum
from typing import Any

from citywise.core.types import Operator, ProjectAttributes, RequirementRule, RuleTrigger

_ORDERED = {
    Operator.GREATER_THAN: lambda a, b: a > b,
    Operator.GREATER_THAN_OR_EQUAL: lambda a, b: a >= b,
    Operator.LESS_THAN: lambda a, b: a < b,
    Operator.LESS_THAN_OR_EQUAL: lambda a, b: a <= b,
}


def _normalize(val: Any) -> Any:
    """Canonical form for equality checks.

    Seed data stores literals as strings ('true', '500', 'ADU'), so
    'true' == True, '500' == 500.0 and 'adu' == ProjectType.ADU.
    """
    if isinstance(val, Enum):
        val = val.value
    if isinstance(val, bool):
        return val
    if isinstance(val, (int, float)):
        return float(val)
    s = str(val).strip().lower()
    if s in ("true", "false"):
        return s == "true"
    try:
        return float(s)
    except ValueError:
        return s


def field_value(attrs: ProjectAttributes, name: str) -> Any:
    """Read an attribute by trigger field name; unknown names read as None."""
    return getattr(attrs, name, None)


def evaluate_trigger(trigger: RuleTrigger, attrs: ProjectAttributes) -> bool:
    """Evaluate one trigger. Never raises."""
    actual = field_value(attrs, trigger.field)
    if actual is None:
        return False

    op = Operator(trigger.operator)
    if op is Operator.EQUALS:
        return _normalize(actual) == _normalize(trigger.value)
    if op is Operator.NOT_EQUALS:
        return _normalize(actual) != _normalize(trigger.value)
    if op is Operator.IN:
        values = trigger.value if isinstance(trigger.value, (list, tuple, set, frozenset)) else [trigger.value]
        return _normalize(actual) in {_normalize(v) for v in values}

    try:
        return _ORDERED[op](float(actual), float(trigger.value))
    except (TypeError, ValueError):
        return False


def matches_project_type(rule: RequirementRule, attrs: ProjectAttributes) -> bool:
    """Empty project_types is a wildcard; otherwise the type must be listed."""
    if not rule.project_types:
        return True
    return attrs.project_type is not None and attrs.project_type in rule.project_types


def in_jurisdiction(rule: RequirementRule, jurisdiction: str) -> bool:
    return rule.jurisdiction.strip().casefold() == jurisdiction.strip().casefold()


def triggers_pass(triggers: tuple[RuleTrigger, ...], attrs: ProjectAttributes) -> bool:
    """AND across triggers; an empty tuple passes."""
    return all(evaluate_trigger(t, attrs) for t in triggers)


def rule_fires(rule: RequirementRule, attrs: ProjectAttributes) -> bool:
    """True when the rule covers the project type and all its triggers pass."""
    return matches_project_type(rule, attrs) and triggers_pass(rule.triggers, attrs)
