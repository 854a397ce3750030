import time

import pytest
from limits.storage import MemoryStorage

from app.core.exceptions import RateLimitExceededError
from app.core.rate_limit import AuthRateLimiter

WINDOW_SECONDS = 60


@pytest.fixture
def limiter():
    return AuthRateLimiter(MemoryStorage())


def test_allows_up_to_max_requests(limiter):
    for _ in range(3):
        status = limiter.check("login", "1.2.3.4", 3, WINDOW_SECONDS)
    assert status.remaining == 0
    assert status.limit == 3


def test_rejects_request_over_limit_with_retry_after(limiter):
    for _ in range(3):
        limiter.check("login", "1.2.3.4", 3, WINDOW_SECONDS)

    with pytest.raises(RateLimitExceededError) as exc_info:
        limiter.check("login", "1.2.3.4", 3, WINDOW_SECONDS)

    assert 1 <= exc_info.value.retry_after <= WINDOW_SECONDS
    assert exc_info.value.to_dict()["retryAfter"] == exc_info.value.retry_after
    assert exc_info.value.to_dict()["message"] == "Maximum of 3 requests per 60 seconds"
    assert exc_info.value.status_code == 429


def test_window_slides(limiter):
    limiter.check("k", "1.2.3.4", 1, 1)
    with pytest.raises(RateLimitExceededError):
        limiter.check("k", "1.2.3.4", 1, 1)

    time.sleep(1.1)
    status = limiter.check("k", "1.2.3.4", 1, 1)
    assert status.remaining == 0


def test_keys_are_independent(limiter):
    limiter.check("register", "1.2.3.4", 1, WINDOW_SECONDS)
    limiter.check("register", "5.6.7.8", 1, WINDOW_SECONDS)
    limiter.check("login", "1.2.3.4", 1, WINDOW_SECONDS)
    with pytest.raises(RateLimitExceededError):
        limiter.check("register", "1.2.3.4", 1, WINDOW_SECONDS)


def test_rejected_requests_are_not_counted(limiter):
    limiter.check("k", "1.2.3.4", 1, 2)

    time.sleep(1.0)
    with pytest.raises(RateLimitExceededError):
        limiter.check("k", "1.2.3.4", 1, 2)

    # Only the first hit occupies the window, so it frees up two seconds after it
    time.sleep(1.1)
    status = limiter.check("k", "1.2.3.4", 1, 2)
    assert status.remaining == 0


def test_reset_clears_windows(limiter):
    limiter.check("k", "1.2.3.4", 1, WINDOW_SECONDS)
    limiter.reset()
    status = limiter.check("k", "1.2.3.4", 1, WINDOW_SECONDS)
    assert status.remaining == 0


def test_status_headers(limiter):
    before = time.time()
    status = limiter.check("k", "1.2.3.4", 5, WINDOW_SECONDS)
    headers = status.headers()

    assert headers["X-RateLimit-Limit"] == "5"
    assert headers["X-RateLimit-Remaining"] == "4"
    assert headers["X-RateLimit-Reset"].endswith("+00:00")
    assert before + WINDOW_SECONDS - 1 <= status.reset_time <= time.time() + WINDOW_SECONDS + 1
