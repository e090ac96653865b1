"""
Retry utility with exponential backoff for transient errors.
Used only for idempotent storage calls (content-addressed metadata upload and
fetch). Stream creation and ledger submission are never retried.
"""
import logging
import time
from typing import Callable, TypeVar

import requests

logger = logging.getLogger(__name__)

T = TypeVar('T')

TRANSIENT_STATUS_CODES = {429, 500, 502, 503, 504}


def is_transient_error(error: Exception) -> bool:
    """
    Determine if an error is transient and should be retried.

    Transient errors include:
    - Network timeouts
    - Connection errors
    - HTTP 429 and 5xx responses
    """
    if isinstance(error, (
        requests.exceptions.Timeout,
        requests.exceptions.ConnectionError,
        TimeoutError,
        ConnectionError,
    )):
        return True

    if isinstance(error, requests.exceptions.HTTPError) and error.response is not None:
        return error.response.status_code in TRANSIENT_STATUS_CODES

    return False


def retry_call(
    func: Callable[..., T],
    *args,
    max_retries: int = 3,
    base_delay: float = 1.0,
    operation_name: str = "operation",
    sleep: Callable[[float], None] = time.sleep,
    **kwargs
) -> T:
    """
    Call a function, retrying transient failures with exponential backoff.

    Args:
        func: Function to call
        *args: Arguments to pass to func
        max_retries: Maximum number of retry attempts
        base_delay: Base delay in seconds (exponentially increased)
        operation_name: Name of operation for logging
        sleep: Blocking sleep used between attempts
        **kwargs: Keyword arguments to pass to func

    Returns:
        Result from the first successful call

    Raises:
        Exception: The last exception if all retries fail, or the first
            non-transient one

    Retry delays: base_delay * (2 ** attempt)
    - Attempt 1 (first retry): base_delay = 1s
    - Attempt 2 (second retry): base_delay * 2 = 2s
    - Attempt 3 (third retry): base_delay * 4 = 4s
    """
    for attempt in range(max_retries + 1):
        try:
            result = func(*args, **kwargs)

            if attempt > 0:
                logger.info(
                    f"{operation_name} succeeded on attempt {attempt + 1}/{max_retries + 1}"
                )

            return result

        except Exception as e:
            if attempt >= max_retries:
                logger.error(
                    f"{operation_name} failed after {max_retries + 1} attempts: {type(e).__name__}: {e}"
                )
                raise

            if not is_transient_error(e):
                logger.error(
                    f"{operation_name} failed with non-transient error: {type(e).__name__}: {e}"
                )
                raise

            delay = base_delay * (2 ** attempt)

            logger.warning(
                f"{operation_name} attempt {attempt + 1}/{max_retries + 1} failed: "
                f"{type(e).__name__}: {e}. Retrying in {delay}s..."
            )

            sleep(delay)

    raise RuntimeError(f"{operation_name} made no attempts")
