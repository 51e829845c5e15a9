"""Poll rate limiting logic - Pure functions.

The poll loop runs on a fixed timer. A tick that fires before the poll
interval has elapsed since the last accepted cycle start is dropped,
which keeps overlapping timer firings from running extra cycles.
All functions are pure with no side effects.
"""

from dataclasses import dataclass


# Every Nth accepted tick forces a full refresh even without changes
DEFAULT_HEARTBEAT_EVERY = 60


@dataclass(frozen=True)
class PollState:
    """Tracks accepted poll cycles.

    Attributes:
        last_start: Monotonic time of the last accepted cycle start (None before the first)
        tick_count: Number of accepted cycles so far
    """
    last_start: float | None = None
    tick_count: int = 0


@dataclass(frozen=True)
class PollDecision:
    """Result of checking whether a cycle may start.

    Attributes:
        allowed: Whether the cycle may run
        reason: Reason if not allowed (None if allowed)
        elapsed: Seconds since the last accepted start (None before the first)
    """
    allowed: bool
    reason: str | None
    elapsed: float | None


def check_poll(
    now: float,
    state: PollState,
    interval_seconds: float,
) -> PollDecision:
    """Check if a poll cycle may start now.

    Pure function.

    Args:
        now: Current monotonic time in seconds
        state: Current poll state
        interval_seconds: Minimum spacing between cycle starts

    Returns:
        PollDecision indicating if the cycle may run
    """
    if state.last_start is None:
        return PollDecision(allowed=True, reason=None, elapsed=None)

    elapsed = now - state.last_start
    if elapsed < interval_seconds:
        return PollDecision(
            allowed=False,
            reason=f"Interval not elapsed: {elapsed:.3f}s/{interval_seconds:.3f}s",
            elapsed=elapsed,
        )

    return PollDecision(allowed=True, reason=None, elapsed=elapsed)


def record_tick(now: float, state: PollState) -> PollState:
    """Record an accepted cycle start and return updated state.

    Pure function - returns new state without modifying input.
    """
    return PollState(last_start=now, tick_count=state.tick_count + 1)


def is_heartbeat(tick_count: int, every: int = DEFAULT_HEARTBEAT_EVERY) -> bool:
    """Return True when this tick should force a full refresh.

    Pure function.

    Args:
        tick_count: Number of the accepted tick (1-based)
        every: Heartbeat period in ticks (0 disables heartbeats)

    Returns:
        True on every ``every``-th tick
    """
    if every <= 0 or tick_count <= 0:
        return False
    return tick_count % every == 0
