"""Clock adapters."""

from datetime import datetime, timedelta, timezone

from noetica.domain.ports import Clock


class SystemClock(Clock):
    """Wall-clock time in the local timezone, timezone-aware."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc).astimezone()


class FixedClock(Clock):
    """
    A controllable clock for tests and replays.

    Returns the same instant until moved with advance() or set().
    """

    def __init__(self, moment: datetime):
        self._moment = moment

    def now(self) -> datetime:
        return self._moment

    def set(self, moment: datetime) -> None:
        self._moment = moment

    def advance(self, **delta: float) -> datetime:
        """Move forward by timedelta keyword arguments (days=1, hours=2, ...)."""
        self._moment = self._moment + timedelta(**delta)
        return self._moment
