"""Source selection: structured payload or environment variables.

Exactly one of two loading paths runs. A supplied payload always wins;
without one, every field is derived from the environment. Both paths
produce a ``CloudConfig`` draft for the assembler to complete.
"""

import json
import logging
from dataclasses import dataclass
from typing import IO, Any, Mapping, Optional, Union

from pydantic import ValidationError

from azconfig.errors import MalformedPayload, ProviderFailure
from azconfig.policy.backoff import resolve_backoff_settings
from azconfig.providers import (
    IMDS_SERVER_URL,
    InstanceMetadataService,
    MetadataProvider,
    call_provider,
)
from azconfig.schemas.cloud import CloudConfig
from azconfig.schemas.env import EnvConfig

__all__ = [
    'PayloadSource',
    'EnvironmentSource',
    'ConfigSource',
    'select_source',
    'load_draft',
]

logger = logging.getLogger(__name__)

Payload = Union[str, bytes, IO, Mapping[str, Any]]


@dataclass(frozen=True)
class PayloadSource:
    """Structured JSON payload (text, bytes, readable file or decoded mapping)."""
    payload: Payload


@dataclass(frozen=True)
class EnvironmentSource:
    """Environment snapshot the whole configuration is derived from."""
    environ: Mapping[str, str]


ConfigSource = Union[PayloadSource, EnvironmentSource]


def select_source(payload: Optional[Payload], environ: Mapping[str, str]) -> ConfigSource:
    """Pick the loading path: the payload when supplied, else the environment."""
    if payload is not None:
        return PayloadSource(payload)
    return EnvironmentSource(environ)


def _load_payload(source: PayloadSource) -> CloudConfig:
    """Deserialize the payload into a draft.

    Raises
    ------
    MalformedPayload
        If the payload cannot be read, is not JSON, or does not fit the
        ``CloudConfig`` shape. Decoding is strict: a string is never accepted
        for a bool or int field.
    """
    payload = source.payload
    try:
        if hasattr(payload, "read"):
            payload = payload.read()
        if isinstance(payload, Mapping):
            # Decoded mappings go through JSON so nested objects validate strictly
            payload = json.dumps(dict(payload))
    except (OSError, TypeError, ValueError) as err:
        raise MalformedPayload(f"failed to read config: {err}") from err

    try:
        return CloudConfig.model_validate_json(payload, strict=True)
    except ValidationError as err:
        raise MalformedPayload(f"failed to unmarshal config body: {err}") from err


def _query_subscription(metadata_provider: Optional[MetadataProvider]) -> str:
    """Ask the metadata provider for the subscription id.

    Without a provider a default ``InstanceMetadataService`` is created for
    this one query and closed afterwards.
    """
    logger.info("ARM_SUBSCRIPTION_ID not set, querying instance metadata")
    if metadata_provider is None:
        imds = InstanceMetadataService(IMDS_SERVER_URL)
        try:
            subscription_id = call_provider("instance-metadata", imds)
        finally:
            imds.close()
    else:
        subscription_id = call_provider("instance-metadata", metadata_provider)

    if not isinstance(subscription_id, str):
        raise ProviderFailure("instance-metadata", "subscription id is not a string")
    return subscription_id


def _load_environment(
    source: EnvironmentSource, metadata_provider: Optional[MetadataProvider]
) -> CloudConfig:
    """Derive a draft from environment variables.

    The subscription id comes from ``ARM_SUBSCRIPTION_ID`` or, when that is
    unset or empty, from ``metadata_provider``. Backoff tuning is resolved
    only when ``ENABLE_BACKOFF`` is true.

    Raises
    ------
    MalformedValue, ConflictingIdentity, ProviderFailure
    """
    env = EnvConfig.model_validate(dict(source.environ))
    overrides = env.to_overrides()

    if env.arm_subscription_id is not None:
        overrides["subscription_id"] = env.arm_subscription_id
    else:
        overrides["subscription_id"] = _query_subscription(metadata_provider)

    if overrides.get("cloud_provider_backoff"):
        overrides.update(resolve_backoff_settings(source.environ))

    return CloudConfig.model_validate(overrides)


def load_draft(
    source: ConfigSource, metadata_provider: Optional[MetadataProvider] = None
) -> CloudConfig:
    """Run the loading path matching ``source``."""
    if isinstance(source, PayloadSource):
        logger.info("Loading configuration from structured payload")
        return _load_payload(source)
    logger.info("Loading configuration from environment variables")
    return _load_environment(source, metadata_provider)
