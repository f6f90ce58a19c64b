"""Retry backoff policy.

``resolve_backoff_settings`` fills the four tuning values from the
environment or hard defaults; it only runs on the environment-derived
loading path and only when backoff is enabled. ``build_backoff_policy``
turns the settings into the ``BackoffPolicy`` handed to cloud clients.

Backoff applies to API calls made by downstream clients, never to
configuration resolution itself.
"""

import logging
from datetime import timedelta
from typing import Mapping

from azconfig.coerce import env_value, parse_float, parse_int
from azconfig.schemas.internal import BackoffPolicy

__all__ = [
    'BACKOFF_RETRIES_DEFAULT',
    'BACKOFF_EXPONENT_DEFAULT',
    'BACKOFF_DURATION_DEFAULT',
    'BACKOFF_JITTER_DEFAULT',
    'resolve_backoff_settings',
    'build_backoff_policy',
]

logger = logging.getLogger(__name__)

BACKOFF_RETRIES_DEFAULT = 6
BACKOFF_EXPONENT_DEFAULT = 1.5
BACKOFF_DURATION_DEFAULT = 5  # seconds
BACKOFF_JITTER_DEFAULT = 1.0


def resolve_backoff_settings(environ: Mapping[str, str]) -> dict:
    """Resolve each backoff tuning value independently.

    Returns
    -------
    dict
        ``CloudConfig`` field names mapped to resolved values.

    Raises
    ------
    MalformedValue
        If a ``BACKOFF_*`` variable cannot be parsed.
    """
    raw = env_value(environ, "BACKOFF_RETRIES")
    retries = BACKOFF_RETRIES_DEFAULT if raw is None else parse_int("BACKOFF_RETRIES", raw)

    raw = env_value(environ, "BACKOFF_EXPONENT")
    exponent = BACKOFF_EXPONENT_DEFAULT if raw is None else parse_float("BACKOFF_EXPONENT", raw)

    raw = env_value(environ, "BACKOFF_DURATION")
    duration = BACKOFF_DURATION_DEFAULT if raw is None else parse_int("BACKOFF_DURATION", raw)

    raw = env_value(environ, "BACKOFF_JITTER")
    jitter = BACKOFF_JITTER_DEFAULT if raw is None else parse_float("BACKOFF_JITTER", raw)

    logger.debug(
        "Backoff settings: retries=%d exponent=%s duration=%ds jitter=%s",
        retries, exponent, duration, jitter,
    )
    return {
        "cloud_provider_backoff_retries": retries,
        "cloud_provider_backoff_exponent": exponent,
        "cloud_provider_backoff_duration": duration,
        "cloud_provider_backoff_jitter": jitter,
    }


def build_backoff_policy(
    enabled: bool,
    retries: int = 0,
    exponent: float = 0.0,
    duration: int = 0,
    jitter: float = 0.0,
) -> BackoffPolicy:
    """Build the retry policy for cloud clients.

    When backoff is disabled the policy is a single attempt with no growth
    and no jitter; callers treat that as "no retry".
    """
    if not enabled:
        return BackoffPolicy(steps=1)
    return BackoffPolicy(
        steps=retries,
        factor=exponent,
        duration=timedelta(seconds=duration),
        jitter=jitter,
    )
