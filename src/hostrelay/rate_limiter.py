import math
import threading
import time


class RateLimiter:
    """Fixed-window admission counter shared by every request in the process.

    The window rolls over lazily on the first attempt after it expires; there
    is no background timer.
    """

    def __init__(self, limit: int, window_ms: int):
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        if window_ms <= 0:
            raise ValueError(f"window_ms must be positive, got {window_ms}")

        self.limit = limit
        self.window_ms = window_ms
        self.count = 0
        self.window_end = self._now_ms() + window_ms
        self._lock = threading.Lock()

    @staticmethod
    def _now_ms() -> float:
        return time.monotonic() * 1000

    def try_request(self) -> bool:
        with self._lock:
            now = self._now_ms()
            if now > self.window_end:
                self.count = 0
                self.window_end = now + self.window_ms

            if self.count >= self.limit:
                return False

            self.count += 1
            return True

    def ms_until_reset(self) -> int:
        with self._lock:
            return max(0, math.ceil(self.window_end - self._now_ms()))
