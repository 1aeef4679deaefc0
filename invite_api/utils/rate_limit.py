"""
Daily request quotas per client.

Counts live in process memory and reset when the UTC date changes, so they
are per-instance and lost on restart.
"""

import threading
from dataclasses import dataclass
from datetime import datetime, timezone

from fastapi import Request


@dataclass
class _Window:
    day: str
    count: int = 0


def _today() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


class DailyRateLimiter:
    def __init__(self, limit: int):
        self.limit = limit
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, day: str | None = None) -> tuple[bool, int]:
        """
        Count one request for ``key``.

        Returns (allowed, remaining-after-this-request). A refused request is
        not counted.
        """
        day = day or _today()
        with self._lock:
            # Drop earlier days
            for stale in [k for k, w in self._windows.items() if w.day != day]:
                del self._windows[stale]

            window = self._windows.setdefault(key, _Window(day=day))
            if window.count >= self.limit:
                return False, 0
            window.count += 1
            return True, self.limit - window.count

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


def client_identifier(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    ip = (
        forwarded.split(",")[0].strip()
        or request.headers.get("x-real-ip")
        or request.headers.get("cf-connecting-ip")
        or (request.client.host if request.client else "")
    )
    return ip or "unknown"
