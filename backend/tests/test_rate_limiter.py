"""Tests for services/sources/rate_limiter.py - Per-adapter outbound cooldown."""
import asyncio

import pytest


class TestRateLimiter:
    """Test cooldown spacing with a fake clock."""

    @pytest.mark.asyncio
    async def test_first_call_does_not_wait(self, fake_clock):
        """The first call should go out immediately."""
        from evidence_engine.services.sources.rate_limiter import RateLimiter

        limiter = RateLimiter(2.0, clock=fake_clock, sleep=fake_clock.sleep)

        waited = await limiter.wait()

        assert waited == 0.0
        assert fake_clock.sleeps == []
        assert limiter.last_call == fake_clock.now

    @pytest.mark.asyncio
    async def test_back_to_back_calls_are_spaced(self, fake_clock):
        """A second immediate call should sleep for the full interval."""
        from evidence_engine.services.sources.rate_limiter import RateLimiter

        limiter = RateLimiter(2.0, clock=fake_clock, sleep=fake_clock.sleep)

        await limiter.wait()
        first = limiter.last_call
        await limiter.wait()

        assert fake_clock.sleeps == [2.0]
        assert limiter.last_call - first >= 2.0

    @pytest.mark.asyncio
    async def test_only_remaining_time_is_slept(self, fake_clock):
        """Time already elapsed should count towards the cooldown."""
        from evidence_engine.services.sources.rate_limiter import RateLimiter

        limiter = RateLimiter(1.5, clock=fake_clock, sleep=fake_clock.sleep)

        await limiter.wait()
        fake_clock.advance(1.0)
        waited = await limiter.wait()

        assert waited == pytest.approx(0.5)

    @pytest.mark.asyncio
    async def test_no_wait_after_interval_elapsed(self, fake_clock):
        """No sleep should happen once the interval has passed."""
        from evidence_engine.services.sources.rate_limiter import RateLimiter

        limiter = RateLimiter(1.0, clock=fake_clock, sleep=fake_clock.sleep)

        await limiter.wait()
        fake_clock.advance(5.0)
        waited = await limiter.wait()

        assert waited == 0.0
        assert fake_clock.sleeps == []

    @pytest.mark.asyncio
    async def test_concurrent_callers_are_serialized(self, fake_clock):
        """Concurrent waits on one limiter should each be spaced by the interval."""
        from evidence_engine.services.sources.rate_limiter import RateLimiter

        limiter = RateLimiter(1.0, clock=fake_clock, sleep=fake_clock.sleep)
        stamps = []

        async def call():
            await limiter.wait()
            stamps.append(limiter.last_call)

        await asyncio.gather(call(), call(), call())

        stamps.sort()
        assert stamps[1] - stamps[0] >= 1.0
        assert stamps[2] - stamps[1] >= 1.0

    def test_negative_interval_rejected(self):
        """A negative interval should raise ValueError."""
        from evidence_engine.services.sources.rate_limiter import RateLimiter

        with pytest.raises(ValueError):
            RateLimiter(-1.0)

    @pytest.mark.asyncio
    async def test_separate_limiters_do_not_interfere(self, fake_clock):
        """Each adapter's limiter should track only its own calls."""
        from evidence_engine.services.sources.rate_limiter import RateLimiter

        first = RateLimiter(2.0, clock=fake_clock, sleep=fake_clock.sleep, name="a")
        second = RateLimiter(2.0, clock=fake_clock, sleep=fake_clock.sleep, name="b")

        await first.wait()
        waited = await second.wait()

        assert waited == 0.0

    @pytest.mark.asyncio
    async def test_built_in_thread_without_event_loop(self, fake_clock):
        """A limiter built in a worker thread should still work on the event loop."""
        import threading

        from evidence_engine.services.sources.rate_limiter import RateLimiter

        built = []
        worker = threading.Thread(
            target=lambda: built.append(RateLimiter(1.0, clock=fake_clock, sleep=fake_clock.sleep))
        )
        worker.start()
        worker.join()

        limiter = built[0]
        await limiter.wait()
        await limiter.wait()

        assert fake_clock.sleeps == [1.0]
