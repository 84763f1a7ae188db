class ScheduleParseError(ValueError):
    """
    Raised when a textual schedule or constraint cannot be parsed.
    """


class SchedulerClosedError(RuntimeError):
    """
    Raised when a task is registered on a scheduler that has been shut down.
    """
