"""Retry strategies for upstream provider calls."""

import asyncio
import logging

import aiohttp
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.constants import Retries

logger = logging.getLogger(__name__)

# Connection-level failures worth retrying; HTTP error statuses are not
TRANSIENT_NETWORK_ERRORS = (aiohttp.ClientConnectionError, asyncio.TimeoutError)


def get_upstream_retry(max_attempts: int = Retries.MAX_UPSTREAM_ATTEMPTS):
    """
    Get retry strategy for calls to SMS providers and the form relay endpoint.

    Args:
        max_attempts: Total attempts including the first one

    Returns:
        Retry decorator configured for transient network errors
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(
            multiplier=Retries.BACKOFF_MULTIPLIER,
            min=Retries.BACKOFF_MIN_SECONDS,
            max=Retries.BACKOFF_MAX_SECONDS,
        ),
        retry=retry_if_exception_type(TRANSIENT_NETWORK_ERRORS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
