from datetime import UTC, datetime, timedelta


class SystemClock:
    def now_utc(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """Clock frozen at a given instant, for tests and replays."""

    def __init__(self, fixed: datetime) -> None:
        self._time = fixed if fixed.tzinfo else fixed.replace(tzinfo=UTC)

    def now_utc(self) -> datetime:
        return self._time

    def advance(self, **kwargs: float) -> None:
        self._time = self._time + timedelta(**kwargs)
