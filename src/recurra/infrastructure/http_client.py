"""Shared HTTP client utilities (requests + retry/backoff).

Every executor that talks HTTP goes through here so transport retries behave
the same way everywhere.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

import requests
from tenacity import (
    before_sleep_log,
    retry as tenacity_retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from recurra.domain.config.retry import RetryConfig

logger = logging.getLogger(__name__)


def _should_retry_http_error(exception: requests.exceptions.HTTPError) -> bool:
    """Check if HTTPError should be retried."""
    status_code = exception.response.status_code if exception.response is not None else None
    # Don't retry on auth errors or most 4xx (except 429)
    if status_code in (401, 403):
        return False
    if status_code and 400 <= status_code < 500 and status_code != 429:
        return False
    # Retry on 429 and 5xx
    return True


def _should_retry(exception: BaseException) -> bool:
    if isinstance(exception, requests.exceptions.HTTPError):
        return _should_retry_http_error(exception)
    # Network errors
    return isinstance(exception, requests.exceptions.RequestException)


def retry_config_from_dict(config: Dict[str, Any]) -> RetryConfig:
    """Parse retry config from a dict, clamping out-of-range values."""
    defaults = RetryConfig()

    def _number(key: str, cast, default, minimum):
        try:
            value = cast(config.get(key, default))
        except (TypeError, ValueError):
            value = default
        return max(value, minimum)

    return RetryConfig(
        max_attempts=min(_number("max_attempts", int, defaults.max_attempts, 1), 10),
        initial_delay=_number("initial_delay", float, defaults.initial_delay, 0.0),
        backoff_multiplier=min(_number("backoff_multiplier", float, defaults.backoff_multiplier, 1.0), 10.0),
        jitter=min(_number("jitter", float, defaults.jitter, 0.0), 1.0),
    )


def post_json_with_retries(
    url: str,
    *,
    payload: Dict[str, Any],
    headers: Dict[str, str],
    timeout: float,
    retry: RetryConfig,
) -> requests.Response:
    """POST JSON with retry on network errors, 429 and 5xx.

    Raises:
        requests.HTTPError: If the final response has an error status
        RuntimeError: If the request could not be completed
    """

    def _make_request() -> requests.Response:
        logger.debug(f"HTTP POST {url}")
        resp = requests.post(url, json=payload, headers=headers, timeout=timeout)
        resp.raise_for_status()
        return resp

    wait = wait_exponential(
        multiplier=retry.initial_delay,
        exp_base=retry.backoff_multiplier,
        min=retry.initial_delay,
        max=60.0,
    )
    if retry.jitter > 0:
        jitter_amount = retry.initial_delay * retry.jitter
        wait = wait + wait_random(-jitter_amount, jitter_amount)

    @tenacity_retry(
        stop=stop_after_attempt(retry.max_attempts),
        wait=wait,
        retry=retry_if_exception(_should_retry),
        reraise=True,
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )
    def _request_with_retry():
        return _make_request()

    try:
        return _request_with_retry()
    except requests.exceptions.HTTPError:
        raise
    except Exception as e:
        raise RuntimeError(f"HTTP request failed: {e}") from e
