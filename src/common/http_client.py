"""Shared HTTP helpers used by the repository transports.

Encapsulates session setup, timeouts, DEBUG traces and the bounded retry
policy so transports avoid duplicating try/except blocks. Network errors are
raised to the caller; mapping them onto domain errors is the caller's job.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional, Tuple, TypeVar

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)

T = TypeVar("T")


def default_timeout() -> Tuple[int, int]:
    """(connect, read) timeout applied to every request."""
    return (Constants.CONNECT_TIMEOUT, Constants.REQUEST_TIMEOUT)


def new_session(user_agent: str = Constants.USER_AGENT) -> requests.Session:
    """Create a requests session with the project User-Agent."""
    session = requests.Session()
    session.headers.update({"User-Agent": user_agent})
    return session


def safe_request(
    session: requests.Session,
    method: str,
    url: str,
    *,
    context: str,
    **kwargs: Any,
) -> requests.Response:
    """Perform a request with a timeout and consistent DEBUG traces.

    Args:
        session: Session to send with.
        method: HTTP verb.
        url: Target URL.
        context: Human-readable source tag for logs (e.g., repository id).
        **kwargs: Passed through to ``session.request``.

    Returns:
        requests.Response: The HTTP response object; the status is not checked.

    Raises:
        requests.RequestException: on timeouts and connection errors.
    """
    safe_target = safe_url(url)
    kwargs.setdefault("timeout", default_timeout())
    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action=method,
                    target=safe_target,
                    repository=context,
                ),
            )
        try:
            res = session.request(method, url, **kwargs)
        except requests.Timeout:
            logger.warning(
                "%s request timed out after %s seconds: %s",
                context,
                kwargs["timeout"],
                safe_target,
            )
            raise
        except requests.RequestException as exc:  # includes ConnectionError
            logger.warning("%s connection error: %s", context, exc)
            raise
    if is_debug_enabled(logger):
        logger.debug(
            "HTTP response",
            extra=extra_context(
                event="http_response",
                component="http_client",
                action=method,
                outcome="success" if res.status_code < 400 else "http_error",
                status_code=res.status_code,
                duration_ms=t.duration_ms(),
                target=safe_target,
                repository=context,
            ),
        )
    return res


def with_retries(
    func: Callable[[], T],
    *,
    is_transient: Callable[[Exception], bool],
    attempts: int = Constants.HTTP_RETRY_MAX,
    base_delay: float = Constants.HTTP_RETRY_BASE_DELAY_SEC,
    context: str = "",
    sleep: Callable[[float], None] = time.sleep,
    should_abort: Optional[Callable[[], bool]] = None,
) -> T:
    """Call ``func`` up to ``attempts`` times with exponential backoff.

    Only exceptions for which ``is_transient`` returns True are retried; the
    delay doubles after each failed attempt (base, 2*base, ...). The last
    transient exception is re-raised once attempts are exhausted.
    """
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            if not is_transient(exc) or attempt == attempts:
                raise
            if should_abort is not None and should_abort():
                raise
            delay = base_delay * (2 ** (attempt - 1))
            logger.info(
                "Transient failure for %s (attempt %d/%d), retrying in %.2fs: %s",
                context,
                attempt,
                attempts,
                delay,
                exc,
                extra=extra_context(event="retry", component="http_client", attempt=attempt),
            )
            sleep(delay)
    raise AssertionError("unreachable")  # pragma: no cover
