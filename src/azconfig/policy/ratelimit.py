"""Rate limit override resolution.

Two levels, in order:

1. The global default is completed from environment overrides or hard
   defaults. Write QPS and write bucket inherit the *resolved* read values
   unless set explicitly.
2. Each resource kind is resolved against the completed default with
   ``override_rate_limit``.

The result always has a concrete, fully populated policy for every kind.
"""

import logging
from typing import Mapping, Optional

from azconfig.coerce import env_value, parse_float, parse_int
from azconfig.schemas.ratelimit import (
    CloudProviderRateLimitConfig,
    RateLimitConfig,
    RateLimitPolicies,
    ResourceKind,
)

__all__ = [
    'RATE_LIMIT_QPS_DEFAULT',
    'RATE_LIMIT_BUCKET_DEFAULT',
    'override_rate_limit',
    'resolve_default_rate_limit',
    'resolve_rate_limits',
]

logger = logging.getLogger(__name__)

RATE_LIMIT_QPS_DEFAULT = 1.0
RATE_LIMIT_BUCKET_DEFAULT = 5

RATE_LIMIT_READ_QPS_ENV_VAR = "RATE_LIMIT_READ_QPS"
RATE_LIMIT_READ_BUCKETS_ENV_VAR = "RATE_LIMIT_READ_BUCKETS"
RATE_LIMIT_WRITE_QPS_ENV_VAR = "RATE_LIMIT_WRITE_QPS"
RATE_LIMIT_WRITE_BUCKETS_ENV_VAR = "RATE_LIMIT_WRITE_BUCKETS"

_NUMERIC_FIELDS = (
    "cloud_provider_rate_limit_qps",
    "cloud_provider_rate_limit_bucket",
    "cloud_provider_rate_limit_qps_write",
    "cloud_provider_rate_limit_bucket_write",
)


def resolve_default_rate_limit(
    config: CloudProviderRateLimitConfig, environ: Mapping[str, str]
) -> RateLimitConfig:
    """Complete the global default rate limit.

    Zero fields are taken from the environment, then from hard defaults.
    Write values fall back to the resolved read values.

    Raises
    ------
    MalformedValue
        If a rate limit variable cannot be parsed.
    """
    default = config.default_rate_limit()

    qps = default.cloud_provider_rate_limit_qps
    if qps == 0:
        raw = env_value(environ, RATE_LIMIT_READ_QPS_ENV_VAR)
        qps = RATE_LIMIT_QPS_DEFAULT if raw is None else parse_float(RATE_LIMIT_READ_QPS_ENV_VAR, raw)

    bucket = default.cloud_provider_rate_limit_bucket
    if bucket == 0:
        raw = env_value(environ, RATE_LIMIT_READ_BUCKETS_ENV_VAR)
        bucket = RATE_LIMIT_BUCKET_DEFAULT if raw is None else parse_int(RATE_LIMIT_READ_BUCKETS_ENV_VAR, raw)

    qps_write = default.cloud_provider_rate_limit_qps_write
    if qps_write == 0:
        raw = env_value(environ, RATE_LIMIT_WRITE_QPS_ENV_VAR)
        qps_write = qps if raw is None else parse_float(RATE_LIMIT_WRITE_QPS_ENV_VAR, raw)

    bucket_write = default.cloud_provider_rate_limit_bucket_write
    if bucket_write == 0:
        raw = env_value(environ, RATE_LIMIT_WRITE_BUCKETS_ENV_VAR)
        bucket_write = bucket if raw is None else parse_int(RATE_LIMIT_WRITE_BUCKETS_ENV_VAR, raw)

    return default.model_copy(update={
        "cloud_provider_rate_limit_qps": qps,
        "cloud_provider_rate_limit_bucket": bucket,
        "cloud_provider_rate_limit_qps_write": qps_write,
        "cloud_provider_rate_limit_bucket_write": bucket_write,
    })


def override_rate_limit(defaults: RateLimitConfig, override: Optional[RateLimitConfig]) -> RateLimitConfig:
    """Resolve one per-kind override against the completed default.

    - No override: the default object itself is returned (shared, not copied).
    - Override disabled: a policy with only the disabled flag; every other
      field of the override is discarded, even explicit QPS and bucket values.
    - Override enabled: zero numeric fields are filled from the default.

    The override is never mutated.
    """
    if override is None:
        return defaults

    if override.cloud_provider_rate_limit is False:
        return RateLimitConfig(cloud_provider_rate_limit=False)

    filled = {
        field: getattr(defaults, field)
        for field in _NUMERIC_FIELDS
        if getattr(override, field) == 0
    }
    return override.model_copy(update=filled)


def resolve_rate_limits(
    config: CloudProviderRateLimitConfig, environ: Mapping[str, str]
) -> RateLimitPolicies:
    """Resolve the global default and every per-kind override.

    Parameters
    ----------
    config : CloudProviderRateLimitConfig
        Draft rate limit settings (a ``CloudConfig`` is accepted).
    environ : Mapping[str, str]
        Environment snapshot holding the ``RATE_LIMIT_*`` overrides.

    Returns
    -------
    RateLimitPolicies
        A concrete policy for the default and each ``ResourceKind``.
    """
    defaults = resolve_default_rate_limit(config, environ)
    logger.debug(
        "Default rate limit: enabled=%s qps=%s bucket=%s qps_write=%s bucket_write=%s",
        defaults.cloud_provider_rate_limit,
        defaults.cloud_provider_rate_limit_qps,
        defaults.cloud_provider_rate_limit_bucket,
        defaults.cloud_provider_rate_limit_qps_write,
        defaults.cloud_provider_rate_limit_bucket_write,
    )

    policies = {"default": defaults}
    for kind in ResourceKind:
        override = config.override_for(kind)
        policies[kind.value] = override_rate_limit(defaults, override)
        if override is not None and not override.cloud_provider_rate_limit:
            logger.debug("Rate limit disabled for %s", kind.value)

    return RateLimitPolicies(**policies)
