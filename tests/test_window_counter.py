"""Unit tests for the per-client sliding-window counter."""

import pytest

from app.adapters.rate_limit.in_memory import WindowCounter


def test_first_request_is_admitted_with_full_quota_minus_one(clock) -> None:
    counter = WindowCounter(capacity=5, window_seconds=60, clock=clock)

    decision = counter.allow()

    assert decision.admitted is True
    assert decision.remaining == 4
    assert decision.reset_at == clock() + 60


def test_admits_exactly_capacity_then_denies(clock) -> None:
    counter = WindowCounter(capacity=3, window_seconds=60, clock=clock)

    results = [counter.allow() for _ in range(3)]
    assert all(r.admitted for r in results)
    assert [r.remaining for r in results] == [2, 1, 0]

    denied = counter.allow()
    assert denied.admitted is False
    assert denied.remaining == 0


def test_scenario_capacity_three_window_sixty(clock) -> None:
    clock.set(0.0)
    counter = WindowCounter(capacity=3, window_seconds=60, clock=clock)

    for t, remaining in [(0, 2), (1, 1), (2, 0)]:
        clock.set(float(t))
        decision = counter.allow()
        assert decision.admitted is True
        assert decision.remaining == remaining

    clock.set(3.0)
    denied = counter.allow()
    assert denied.admitted is False
    # Earliest slot frees when the t=0 admission leaves the window
    assert denied.reset_at == 60.0
    assert denied.reset_at - clock() == 57.0

    clock.set(61.0)
    assert counter.allow().admitted is True


def test_denied_reset_is_never_in_the_past(clock) -> None:
    counter = WindowCounter(capacity=2, window_seconds=10, clock=clock)
    counter.allow()
    clock.advance(9.5)
    counter.allow()

    denied = counter.allow()

    assert denied.admitted is False
    assert denied.reset_at >= clock()


def test_denied_requests_do_not_extend_the_window(clock) -> None:
    counter = WindowCounter(capacity=1, window_seconds=10, clock=clock)
    assert counter.allow().admitted is True

    for _ in range(5):
        clock.advance(1)
        assert counter.allow().admitted is False

    clock.advance(5)
    assert counter.allow().admitted is True


def test_entry_exactly_at_cutoff_is_expired(clock) -> None:
    counter = WindowCounter(capacity=1, window_seconds=10, clock=clock)
    counter.allow()

    clock.advance(10)

    assert counter.allow().admitted is True


def test_admissions_never_exceed_capacity_in_any_trailing_window(clock) -> None:
    capacity, window = 4, 10
    counter = WindowCounter(capacity=capacity, window_seconds=window, clock=clock)
    admitted_at: list[float] = []

    # Irregular arrivals: bursts followed by quiet periods
    steps = [0.1, 0.1, 0.1, 0.1, 0.1, 3, 0.5, 0.5, 7, 0.2, 0.2, 0.2, 12, 0.1] * 5
    for step in steps:
        clock.advance(step)
        if counter.allow().admitted:
            admitted_at.append(clock())

    for t in admitted_at:
        in_window = [a for a in admitted_at if t - window < a <= t]
        assert len(in_window) <= capacity


def test_remaining_reports_quota_without_consuming(clock) -> None:
    counter = WindowCounter(capacity=3, window_seconds=60, clock=clock)
    counter.allow()

    assert counter.remaining() == 2
    assert counter.remaining() == 2

    clock.advance(61)
    assert counter.remaining() == 3


def test_idleness_and_retirement(clock) -> None:
    counter = WindowCounter(capacity=3, window_seconds=60, clock=clock)
    assert counter.is_idle(clock(), 120) is True

    counter.allow()
    assert counter.is_idle(clock(), 120) is False
    assert counter.retire_if_idle(clock(), 120) is False

    clock.advance(121)
    assert counter.is_idle(clock(), 120) is True
    assert counter.retire_if_idle(clock(), 120) is True
    assert counter.allow() is None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"capacity": 0, "window_seconds": 60},
        {"capacity": 1, "window_seconds": 0},
    ],
)
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        WindowCounter(**kwargs)
