from invite_api.utils.rate_limit import DailyRateLimiter


def test_limit_per_client_per_day():
    limiter = DailyRateLimiter(limit=2)

    assert limiter.hit("1.2.3.4", day="2026-06-01") == (True, 1)
    assert limiter.hit("1.2.3.4", day="2026-06-01") == (True, 0)
    assert limiter.hit("1.2.3.4", day="2026-06-01") == (False, 0)
    assert limiter.hit("5.6.7.8", day="2026-06-01") == (True, 1)


def test_counts_reset_on_a_new_day():
    limiter = DailyRateLimiter(limit=1)
    limiter.hit("1.2.3.4", day="2026-06-01")

    assert limiter.hit("1.2.3.4", day="2026-06-02") == (True, 0)


def test_forwarded_header_identifies_client(client, api_headers):
    headers = {**api_headers, "x-forwarded-for": "203.0.113.7, 10.0.0.1"}
    for _ in range(5):
        client.post("/functions/v1/get-guests", json={"searchQuery": "x"}, headers=headers)

    blocked = client.post("/functions/v1/get-guests", json={"searchQuery": "x"}, headers=headers)
    other = client.post("/functions/v1/get-guests", json={"searchQuery": "x"}, headers=api_headers)

    assert blocked.status_code == 429
    assert other.status_code == 200
