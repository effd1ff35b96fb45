import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

from propledger.errors import PersistenceTimeoutError


def run_bounded(func, items, max_workers=1, timeout=None, app=None):
    """Apply ``func`` to every item with at most ``max_workers`` in flight.

    Results come back in input order. When ``app`` is given each call runs in
    its own application context, which gives it its own database session.
    If the whole batch is not done within ``timeout`` seconds the run aborts
    with ``PersistenceTimeoutError``; the first failing call's exception propagates.
    """
    items = list(items)
    if not items:
        return []

    def call(item):
        if app is None:
            return func(item)
        with app.app_context():
            return func(item)

    if max_workers is None or max_workers <= 1:
        return [func(item) for item in items]

    executor = ThreadPoolExecutor(max_workers=min(max_workers, len(items)), thread_name_prefix="commission")
    deadline = None if timeout is None else time.monotonic() + timeout
    futures = [executor.submit(call, item) for item in items]
    try:
        results = []
        for future in futures:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            results.append(future.result(timeout=remaining))
        return results
    except FutureTimeoutError as exc:
        raise PersistenceTimeoutError("Commission calculation timed out. Try again shortly.") from exc
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
