import time
from contextlib import contextmanager


@contextmanager
def timer_ms():
    """Yield a callable returning whole milliseconds since entry (usable after exit)."""
    start = time.perf_counter()
    yield lambda: int((time.perf_counter() - start) * 1000)
