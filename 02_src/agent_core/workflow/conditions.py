"""Step condition evaluation."""

from typing import Any

from ..logging_config import get_logger
from ..models import StepCondition

logger = get_logger(__name__)

_MISSING = object()


def lookup(data: Any, path: str) -> Any:
    """Follow a dotted path through nested mappings."""
    value = data
    for part in path.split("."):
        if isinstance(value, dict) or hasattr(value, "keys"):
            value = value.get(part, _MISSING)
        else:
            return _MISSING
        if value is _MISSING:
            return _MISSING
    return value


def evaluate(condition: StepCondition, data: Any) -> bool:
    value = lookup(data, condition.field)
    expected = condition.value
    op = condition.operator

    if op == "eq":
        return value is not _MISSING and value == expected
    if op == "ne":
        return value is _MISSING or value != expected
    if value is _MISSING:
        return False

    try:
        if op == "gt":
            return value > expected
        if op == "lt":
            return value < expected
    except TypeError:
        return False
    if op == "in":
        return isinstance(expected, (list, tuple, set)) and value in expected
    if op == "contains":
        if isinstance(value, str):
            return isinstance(expected, str) and expected in value
        if isinstance(value, (list, tuple, set)):
            return expected in value
        return False

    logger.warning("Unknown condition operator: %s", op)
    return False


def conditions_met(conditions: tuple[StepCondition, ...], data: Any) -> bool:
    return all(evaluate(c, data) for c in conditions)
