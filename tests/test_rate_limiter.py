from mindnamo.core.ratelimit import AccountRateLimiter


async def test_unconfigured_limiter_allows_everything():
    limiter = AccountRateLimiter()
    limiter.init("")

    assert limiter.enabled is False
    for _ in range(20):
        assert (await limiter.limit("signin:someone@mindnamo.com")).success


async def test_window_is_exhausted_after_limit(limiter):
    results = [await limiter.limit("otp:acc-1") for _ in range(6)]

    assert [r.success for r in results] == [True] * 5 + [False]
    assert results[-1].reset_at is not None


async def test_keys_are_counted_separately(limiter):
    for _ in range(5):
        await limiter.limit("signin:a@mindnamo.com")

    assert not (await limiter.limit("signin:a@mindnamo.com")).success
    assert (await limiter.limit("signin:b@mindnamo.com")).success


async def test_storage_failure_fails_open(limiter, monkeypatch):
    async def broken_hit(*args, **kwargs):
        raise ConnectionError("storage down")

    monkeypatch.setattr(limiter._strategy, "hit", broken_hit)

    for _ in range(10):
        assert (await limiter.limit("otp:acc-2")).success


async def test_close_disables_limiter(limiter):
    await limiter.close()
    assert limiter.enabled is False
    assert (await limiter.limit("otp:acc-3")).success


async def test_unusable_storage_url_leaves_limiter_open():
    limiter = AccountRateLimiter()
    limiter.init("nosuchbackend://127.0.0.1:1", requests=1, window_seconds=60)

    assert limiter.enabled is False
    for _ in range(3):
        assert (await limiter.limit("otp:acc-4")).success
