from dataclasses import dataclass

from .errors import InvalidElectionPeriodError

NOT_STARTED = "NOT_STARTED"
OPEN = "OPEN"
ENDED = "ENDED"


@dataclass(frozen=True)
class ElectionWindow:
    """The voting period, fixed when the election is created.

    The phase is derived from the caller-supplied time on every query and
    never stored, so the window itself needs no timer thread.
    """
    start_time: float
    end_time: float

    def validate(self, now):
        if self.start_time <= now:
            raise InvalidElectionPeriodError("Election start date must be in future")
        if self.end_time <= self.start_time:
            raise InvalidElectionPeriodError("Election end date must be greater than start date")

    def phase(self, now):
        if now < self.start_time:
            return NOT_STARTED
        if now > self.end_time:
            return ENDED
        return OPEN

    def time_left(self, now):
        """Seconds until the next phase boundary, 0 once the election ended."""
        state = self.phase(now)
        if state == NOT_STARTED:
            return self.start_time - now
        if state == OPEN:
            return self.end_time - now
        return 0


class ManualClock:
    """Clock that only moves when told to, for rehearsals and tests."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def increase_to(self, timestamp):
        if timestamp < self.now:
            raise ValueError(f"Time cannot move backwards: {timestamp} < {self.now}")
        self.now = timestamp

    def increase(self, seconds):
        self.increase_to(self.now + seconds)
