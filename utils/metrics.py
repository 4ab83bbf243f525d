import threading
import time
from collections import defaultdict
from typing import Dict

# Very small in-memory metrics store. Counters are bumped from capture,
# recognition and timer threads, hence the lock.
_lock = threading.Lock()
_counters: Dict[str, int] = defaultdict(int)
_timings: Dict[str, list] = defaultdict(list)


def incr(name: str, amount: int = 1) -> None:
    with _lock:
        _counters[name] += amount


def get_counter(name: str) -> int:
    with _lock:
        return _counters.get(name, 0)


def record_timing(name: str, value_ms: float) -> None:
    with _lock:
        _timings[name].append(value_ms)


def get_timings(name: str):
    with _lock:
        return list(_timings.get(name, []))


def reset() -> None:
    with _lock:
        _counters.clear()
        _timings.clear()


def time_ms() -> float:
    return time.monotonic() * 1000.0
