import logging
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from cron_scheduler.exceptions import ScheduleParseError
from cron_scheduler.parsing import parse_constraint, split_cron_expression

logger = logging.getLogger(__name__)

# Inclusive valid range of each field. Weekdays accept 0 and fold it into 7.
FIELD_RANGES: Dict[str, Tuple[int, int]] = {
    "seconds": (0, 59),
    "minutes": (0, 59),
    "hours": (0, 23),
    "days": (1, 31),
    "months": (1, 12),
    "weekdays": (0, 7),
}


class Schedule(BaseModel):
    """
    An immutable cron-like time matching predicate.

    Each field holds the sorted values it accepts, or None to accept every value.
    Weekdays follow ISO numbering (Monday is 1, Sunday is 7), with 0 accepted as Sunday.
    Values outside a field's range are dropped rather than rejected.
    """
    model_config = ConfigDict(frozen=True)

    seconds: Optional[Tuple[int, ...]] = Field(None, description="Seconds (0-59) a task should be started at")
    minutes: Optional[Tuple[int, ...]] = Field(None, description="Minutes (0-59) a task should be started at")
    hours: Optional[Tuple[int, ...]] = Field(None, description="Hours (0-23) a task should be started at")
    days: Optional[Tuple[int, ...]] = Field(None, description="Days of month (1-31) a task should be started at")
    months: Optional[Tuple[int, ...]] = Field(None, description="Months (1-12) a task should be started at")
    weekdays: Optional[Tuple[int, ...]] = Field(None, description="ISO weekdays (1-7) a task should be started at")

    @field_validator("seconds", "minutes", "hours", "days", "months", "weekdays", mode="before")
    @classmethod
    def normalize_constraint(cls, v: Any, info: ValidationInfo) -> Optional[Tuple[int, ...]]:
        minimum, maximum = FIELD_RANGES[info.field_name]
        values = parse_constraint(v, minimum, maximum)
        if values is None:
            return None
        requested = values
        values = [x for x in values if minimum <= x <= maximum]
        if info.field_name == "weekdays":
            values = [7 if x == 0 else x for x in values]
        if not values:
            if requested:
                logger.warning(
                    f"All {info.field_name} values {requested} are outside {minimum}-{maximum}; the field matches every value"
                )
            return None
        return tuple(sorted(set(values)))

    @classmethod
    def parse(cls, cron_expression: str) -> "Schedule":
        """
        Create a schedule from a 5-field (minute first) or 6-field (second first) cron expression.

        Raises:
            ScheduleParseError: If the expression has the wrong number of fields
                or one of its fields cannot be parsed.
        """
        seconds, minutes, hours, days, months, weekdays = split_cron_expression(cron_expression)
        try:
            return cls(
                seconds=seconds,
                minutes=minutes,
                hours=hours,
                days=days,
                months=months,
                weekdays=weekdays,
            )
        except ValidationError as e:
            errors = "; ".join(f"{error['loc'][0]}: {error['msg']}" for error in e.errors())
            raise ScheduleParseError(f"Invalid cron expression {cron_expression!r}: {errors}") from e

    def should_match(self, instant: datetime) -> bool:
        """
        Test if this schedule should run at the specified time.
        """
        if self.seconds is not None and instant.second not in self.seconds:
            return False
        if self.minutes is not None and instant.minute not in self.minutes:
            return False
        if self.hours is not None and instant.hour not in self.hours:
            return False
        if self.days is not None and instant.day not in self.days:
            return False
        if self.months is not None and instant.month not in self.months:
            return False
        if self.weekdays is not None and instant.isoweekday() not in self.weekdays:
            return False
        return True

    @property
    def requires_second_granularity(self) -> bool:
        # second 0 is reached by minute-aligned wake-ups
        return self.seconds is not None and self.seconds != (0,)

    def to_cron_string(self, has_second: bool = False) -> str:
        fields = [self.minutes, self.hours, self.days, self.months, self.weekdays]
        if has_second:
            fields.insert(0, self.seconds)
        return " ".join(_format_field(f) for f in fields)


def _format_field(values: Optional[Tuple[int, ...]]) -> str:
    if not values:
        return "*"
    return ",".join(str(v) for v in values)
