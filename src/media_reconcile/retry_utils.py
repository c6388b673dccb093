"""Retry utilities for handling transient errors."""

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

from media_reconcile.errors import OperationCancelled

logger = logging.getLogger(__name__)


def retry(
    timeout: float = 3.0,
    interval: float = 0.5,
    log_interval: float = 2.0,
    exceptions: tuple[type[Exception], ...] = (Exception,),
    cancel_event: threading.Event | None = None,
) -> Callable[[Callable[[], Any]], Callable[[], Any]]:
    """Retry decorator that catches specified exceptions and retries until timeout.

    Args:
        timeout: Maximum time to retry in seconds
        interval: Time between retries in seconds
        log_interval: Time between log messages in seconds
        exceptions: Tuple of exception types to catch and retry on
        cancel_event: Stops retrying with OperationCancelled once set

    Returns:
        Decorator function
    """

    def decorator(func: Callable[[], Any]) -> Callable[[], Any]:
        def wrapper() -> Any:
            start_time = time.time()
            last_log = 0.0
            last_error = None
            attempt = 0

            while time.time() - start_time < timeout:
                if cancel_event is not None and cancel_event.is_set():
                    raise OperationCancelled("Cancelled while retrying")

                attempt += 1
                try:
                    result = func()
                    if attempt > 1:
                        logger.debug(f"Retry succeeded on attempt {attempt}")
                    return result
                except exceptions as e:
                    last_error = e

                elapsed = time.time() - start_time
                if elapsed - last_log >= log_interval:
                    logger.debug(
                        f"Retrying... (attempt {attempt}, {elapsed:.1f}s elapsed)"
                    )
                    last_log = elapsed

                time.sleep(interval)

            # Timeout reached, re-raise the last error
            if last_error:
                raise last_error
            else:
                raise TimeoutError("Retry timeout reached with no errors captured")

        return wrapper

    return decorator
