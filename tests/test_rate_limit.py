from app.club.rate_limit import SlidingWindowRateLimiter


class FakeClock:
    """Millisecond clock moved by hand"""

    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


def make_limiter(clock, window_ms=1000, max_requests=3, **kwargs):
    return SlidingWindowRateLimiter(window_ms=window_ms, max_requests=max_requests, clock=clock, **kwargs)


class TestSlidingWindow:

    def test_allows_max_then_rejects(self):
        clock = FakeClock()
        limiter = make_limiter(clock)

        results = [limiter.check("10.0.0.1") for _ in range(3)]
        assert all(r.success for r in results)
        assert [r.remaining for r in results] == [2, 1, 0]
        assert all(r.reset_ms == 1000 for r in results)

        rejected = limiter.check("10.0.0.1")
        assert rejected.success is False
        assert rejected.remaining == 0

    def test_window_elapses(self):
        clock = FakeClock()
        limiter = make_limiter(clock)
        for _ in range(3):
            limiter.check("k")

        clock.advance(999)
        assert limiter.check("k").success is False

        clock.advance(1)
        result = limiter.check("k")
        assert result.success is True
        assert result.remaining == 2

    def test_reset_ms_counts_from_oldest_hit(self):
        clock = FakeClock()
        limiter = make_limiter(clock)
        limiter.check("k")
        clock.advance(300)
        limiter.check("k")
        limiter.check("k")
        clock.advance(200)

        rejected = limiter.check("k")
        assert rejected.success is False
        assert rejected.reset_ms == 500

    def test_window_slides(self):
        clock = FakeClock()
        limiter = make_limiter(clock)
        limiter.check("k")          # t=0
        clock.advance(400)
        limiter.check("k")          # t=400
        clock.advance(400)
        limiter.check("k")          # t=800
        clock.advance(200)

        # t=1000: the hit at t=0 has left the window, the other two remain
        result = limiter.check("k")
        assert result.success is True
        assert result.remaining == 0
        assert limiter.check("k").success is False

    def test_rejected_calls_do_not_extend_the_window(self):
        clock = FakeClock()
        limiter = make_limiter(clock, max_requests=1)
        limiter.check("k")
        for _ in range(5):
            clock.advance(100)
            assert limiter.check("k").success is False

        clock.advance(500)
        assert limiter.check("k").success is True

    def test_keys_are_independent(self):
        clock = FakeClock()
        limiter = make_limiter(clock, max_requests=1)

        assert limiter.check("a").success is True
        assert limiter.check("a").success is False
        assert limiter.check("b").success is True

    def test_instances_are_independent(self):
        clock = FakeClock()
        first = make_limiter(clock, max_requests=1)
        second = make_limiter(clock, max_requests=1)

        assert first.check("k").success is True
        assert second.check("k").success is True

    def test_cleanup_drops_expired_keys(self):
        clock = FakeClock()
        limiter = make_limiter(clock, cleanup_interval_ms=5000)
        limiter.check("a")
        limiter.check("b")
        assert limiter.tracked_keys() == 2

        clock.advance(6000)
        limiter.check("c")
        assert limiter.tracked_keys() == 1

    def test_cleanup_waits_for_interval(self):
        clock = FakeClock()
        limiter = make_limiter(clock, cleanup_interval_ms=5000)
        limiter.check("a")

        clock.advance(2000)
        limiter.check("b")
        assert limiter.tracked_keys() == 2

    def test_deterministic(self):
        def run():
            clock = FakeClock()
            limiter = make_limiter(clock, max_requests=2)
            out = []
            for step in range(6):
                out.append(limiter.check("k"))
                clock.advance(300)
            return out

        assert run() == run()
