import time


def current_time_ms() -> int:
    """Wall clock time, in whole milliseconds since the epoch."""
    return time.time_ns() // 1_000_000
