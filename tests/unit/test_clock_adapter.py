from datetime import UTC, datetime

from contentflow.adapters.clock import FixedClock, SystemClock


def test_system_clock():
    clock = SystemClock()
    now = clock.now_utc()
    assert now.tzinfo is UTC
    # Sanity check: is it close to real now?
    real_now = datetime.now(UTC)
    diff = abs((real_now - now).total_seconds())
    assert diff < 1.0


def test_fixed_clock_assumes_utc_and_advances():
    clock = FixedClock(datetime(2024, 6, 15, 12, 0, 0))
    assert clock.now_utc() == datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)

    clock.advance(minutes=5)
    assert clock.now_utc() == datetime(2024, 6, 15, 12, 5, 0, tzinfo=UTC)
