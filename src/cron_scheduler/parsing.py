from collections.abc import Iterable
from typing import Any, List, Optional

from cron_scheduler.exceptions import ScheduleParseError


def parse_constraint(value: Any, minimum: int, maximum: int) -> Optional[List[int]]:
    """
    Normalize a single schedule constraint into a sorted list of integers.

    Args:
        value (Any): An int, an iterable of ints, a cron-style field string, or None.
        minimum (int): The smallest value of the field, used to expand `*/n`.
        maximum (int): The largest value of the field, used to expand `*/n`.

    Returns:
        Optional[List[int]]: The values, or None when the constraint matches everything.

    Raises:
        ScheduleParseError: If the constraint cannot be parsed.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ScheduleParseError(f"Unable to parse: {value!r}")
    if isinstance(value, int):
        return [value]
    if isinstance(value, str):
        return _parse_field(value.strip(), minimum, maximum)
    if isinstance(value, Iterable):
        items = list(value)
        if not all(isinstance(v, int) and not isinstance(v, bool) for v in items):
            raise ScheduleParseError(f"Unable to parse: {value!r}")
        return items
    raise ScheduleParseError(f"Unable to parse: {value!r}")


def _parse_field(field: str, minimum: int, maximum: int) -> Optional[List[int]]:
    if field == "*":
        return None

    parts = field.split(",")
    if len(parts) > 1:
        values = set()
        for part in parts:
            parsed = _parse_field(part.strip(), minimum, maximum)
            if parsed is None:
                # a wildcard inside a list widens the whole field
                return None
            values.update(parsed)
        return sorted(values)

    base, step = field, 1
    if "/" in field:
        base, step_s = field.split("/", 1)
        step = _parse_int(step_s, field)
        if step <= 0:
            raise ScheduleParseError(f"Invalid step in: {field}")
        if base == "*":
            return list(range(minimum, maximum + 1, step))

    if "-" in base:
        lower_s, higher_s = base.split("-", 1)
        lower, higher = _parse_int(lower_s, field), _parse_int(higher_s, field)
        if lower > higher:
            raise ScheduleParseError(f"Invalid range in: {field}")
        return list(range(lower, higher + 1, step))

    start = _parse_int(base, field)
    if step != 1:
        return list(range(start, maximum + 1, step))
    return [start]


def _parse_int(text: str, field: str) -> int:
    try:
        return int(text.strip())
    except ValueError:
        raise ScheduleParseError(f"Unable to parse: {field}")


def split_cron_expression(expression: str) -> List[Optional[str]]:
    """
    Split a 5-field (minute first) or 6-field (second first) cron expression.

    A 5-field expression gets a leading None in the seconds slot.
    """
    parts = expression.split()
    if len(parts) == 5:
        return [None, *parts]
    if len(parts) == 6:
        return list(parts)
    raise ScheduleParseError(
        f"Invalid cron expression: {expression!r}. Expected 5 or 6 fields, got {len(parts)}"
    )
