"""Break timer exceptions"""


class TimerError(Exception):
    """Base class for break timer errors"""


class UsageDeniedError(TimerError):
    """The usage limiter refused a start or manual break"""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class TimerSessionError(TimerError):
    """A timer session was used after shutdown or could not be built"""


class TimerStateError(TimerError):
    """The operation is not allowed in the timer's current phase"""
