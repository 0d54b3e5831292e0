from payhub.rate_limit import RATE_LIMIT_MESSAGE, SlidingWindowRateLimiter
from payhub.services.pagination import pagination_meta, parse_pagination


def test_sliding_window():
    limiter = SlidingWindowRateLimiter(max_requests=2, window_seconds=60)

    assert limiter.is_allowed('10.0.0.1', now=0) == (True, 1, 0)
    assert limiter.is_allowed('10.0.0.1', now=10) == (True, 0, 0)

    allowed, remaining, retry_after = limiter.is_allowed('10.0.0.1', now=20)
    assert (allowed, remaining) == (False, 0)
    assert retry_after == 41

    # Other addresses have their own window
    assert limiter.is_allowed('10.0.0.2', now=20)[0] is True

    # First hit has left the window
    assert limiter.is_allowed('10.0.0.1', now=61)[0] is True


def test_reset_clears_history():
    limiter = SlidingWindowRateLimiter(max_requests=1, window_seconds=60)
    limiter.is_allowed('10.0.0.1', now=0)

    limiter.reset()

    assert limiter.is_allowed('10.0.0.1', now=1)[0] is True


def test_api_requests_are_limited(client, app):
    app.config['RATE_LIMIT_ENABLED'] = True
    limiter = app.extensions['rate_limiter']
    limiter.max_requests = 3

    for _ in range(3):
        assert client.get('/api/subscriptions/plans').status_code == 200

    blocked = client.get('/api/subscriptions/plans')
    assert blocked.status_code == 429
    assert blocked.get_json() == {"success": False, "error": RATE_LIMIT_MESSAGE}
    assert int(blocked.headers['Retry-After']) > 0

    assert client.get('/health').status_code == 200


def test_parse_pagination():
    assert parse_pagination({}) == (1, 10)
    assert parse_pagination({"page": "3", "limit": "25"}) == (3, 25)
    assert parse_pagination({"page": "-1", "limit": "500"}) == (1, 100)
    assert parse_pagination({"page": "x", "limit": "y"}) == (1, 10)


def test_pagination_meta():
    assert pagination_meta(1, 10, 0) == {
        "page": 1,
        "limit": 10,
        "total": 0,
        "totalPages": 0,
        "hasNext": False,
        "hasPrev": False
    }
    assert pagination_meta(2, 10, 21)['totalPages'] == 3


def test_idle_addresses_are_swept():
    limiter = SlidingWindowRateLimiter(max_requests=5, window_seconds=1, cleanup_interval=300)
    for index in range(10000):
        limiter.is_allowed(f"10.{index // 65536}.{index // 256 % 256}.{index % 256}", now=0)
    assert limiter.tracked_addresses() == 10000

    # Before the sweep interval nothing is dropped
    limiter.is_allowed('192.168.0.1', now=100)
    assert limiter.tracked_addresses() == 10001

    assert limiter.is_allowed('192.168.0.2', now=10000)[0] is True
    assert limiter.tracked_addresses() == 1


def test_sweep_keeps_addresses_still_in_window():
    limiter = SlidingWindowRateLimiter(max_requests=5, window_seconds=600, cleanup_interval=300)
    limiter.is_allowed('10.0.0.1', now=0)
    limiter.is_allowed('10.0.0.2', now=400)

    limiter.is_allowed('10.0.0.3', now=700)

    assert limiter.tracked_addresses() == 2
    assert limiter.is_allowed('10.0.0.2', now=701) == (True, 3, 0)
