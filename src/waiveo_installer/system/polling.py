import time
from collections.abc import Callable


def wait_until(predicate: Callable[[], bool], timeout: float, interval: float = 0.5) -> bool:
    """Poll a readiness check until it passes or the timeout elapses.

    The predicate is always evaluated at least once.

    Args:
        predicate: Readiness check, called repeatedly
        timeout: Maximum number of seconds to wait
        interval: Delay between checks in seconds

    Returns:
        True if the predicate passed within the timeout, False otherwise
    """
    deadline = time.monotonic() + timeout
    while True:
        if predicate():
            return True
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return False
        time.sleep(min(interval, remaining))
