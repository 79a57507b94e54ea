import threading

import pytest

from intake.clock import ManualClock
from intake.ratelimit.limiter import RateLimiter


class TestTryAcquire:
    def test_twenty_first_call_is_denied(self, manual_clock: ManualClock) -> None:
        limiter = RateLimiter(ceiling=20, window_seconds=3600, clock=manual_clock)
        granted = [limiter.try_acquire("alice") for _ in range(20)]
        assert all(granted)
        assert limiter.try_acquire("alice") is False

    def test_denial_has_no_side_effects(self, manual_clock: ManualClock) -> None:
        limiter = RateLimiter(ceiling=1, window_seconds=60, clock=manual_clock)
        limiter.try_acquire("alice")
        limiter.try_acquire("alice")
        limiter.try_acquire("alice")
        assert limiter.remaining("alice") == 0

    def test_next_window_grants_again(self, manual_clock: ManualClock) -> None:
        limiter = RateLimiter(ceiling=20, window_seconds=3600, clock=manual_clock)
        for _ in range(20):
            limiter.try_acquire("alice")
        assert limiter.try_acquire("alice") is False
        manual_clock.advance(3600)
        assert limiter.try_acquire("alice") is True

    def test_actors_are_independent(self, manual_clock: ManualClock) -> None:
        limiter = RateLimiter(ceiling=1, window_seconds=60, clock=manual_clock)
        assert limiter.try_acquire("alice")
        assert limiter.try_acquire("bob")
        assert not limiter.try_acquire("alice")

    def test_concurrent_callers_never_exceed_ceiling(self, manual_clock: ManualClock) -> None:
        limiter = RateLimiter(ceiling=50, window_seconds=3600, clock=manual_clock)
        results: list[bool] = []
        lock = threading.Lock()

        def worker() -> None:
            for _ in range(20):
                granted = limiter.try_acquire("alice")
                with lock:
                    results.append(granted)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert results.count(True) == 50


class TestRemainingAndReset:
    def test_remaining_counts_down(self, manual_clock: ManualClock) -> None:
        limiter = RateLimiter(ceiling=3, window_seconds=60, clock=manual_clock)
        assert limiter.remaining("alice") == 3
        limiter.try_acquire("alice")
        assert limiter.remaining("alice") == 2

    def test_remaining_resets_after_window(self, manual_clock: ManualClock) -> None:
        limiter = RateLimiter(ceiling=3, window_seconds=60, clock=manual_clock)
        limiter.try_acquire("alice")
        manual_clock.advance(61)
        assert limiter.remaining("alice") == 3

    def test_reset_single_actor(self, manual_clock: ManualClock) -> None:
        limiter = RateLimiter(ceiling=1, window_seconds=60, clock=manual_clock)
        limiter.try_acquire("alice")
        limiter.reset("alice")
        assert limiter.try_acquire("alice")

    def test_invalid_configuration(self) -> None:
        with pytest.raises(ValueError):
            RateLimiter(ceiling=0)


class TestRelease:
    def test_release_gives_slots_back(self, manual_clock: ManualClock) -> None:
        limiter = RateLimiter(ceiling=3, window_seconds=60, clock=manual_clock)
        for _ in range(3):
            limiter.try_acquire("alice")
        limiter.release("alice", 2)
        assert limiter.remaining("alice") == 2
        assert limiter.try_acquire("alice")

    def test_release_never_goes_below_zero(self, manual_clock: ManualClock) -> None:
        limiter = RateLimiter(ceiling=3, window_seconds=60, clock=manual_clock)
        limiter.try_acquire("alice")
        limiter.release("alice", 5)
        assert limiter.remaining("alice") == 3

    def test_release_ignores_elapsed_window(self, manual_clock: ManualClock) -> None:
        limiter = RateLimiter(ceiling=2, window_seconds=60, clock=manual_clock)
        limiter.try_acquire("alice")
        manual_clock.advance(61)
        limiter.try_acquire("alice")
        manual_clock.advance(61)
        limiter.release("alice")
        assert limiter.remaining("alice") == 2

    def test_release_unknown_actor_is_noop(self, manual_clock: ManualClock) -> None:
        limiter = RateLimiter(ceiling=2, window_seconds=60, clock=manual_clock)
        limiter.release("nobody")
        assert limiter.remaining("nobody") == 2
