"""Configuration assembly.

This module provides the single entrypoint for configuration resolution:
build_azure_config(). It sequences every stage and returns an immutable
AzureConfig, or raises the first error encountered.

Stages, in order:
1. Source selection (payload wins over environment)
2. Fields always read from the environment, whitespace trimming
3. Global rate limit and force-delete toggles from the environment
4. Rate limit override resolution
5. VM type default, deployment parameter lookup, retention default
6. Validation
7. Backoff policy and freezing
"""

import copy
import logging
import os
from typing import Mapping, Optional

from azconfig.coerce import env_value, parse_bool
from azconfig.errors import ProviderFailure
from azconfig.policy.backoff import build_backoff_policy
from azconfig.policy.ratelimit import resolve_rate_limits
from azconfig.providers import (
    DEPLOYMENT_PARAMETERS_PATH,
    DeploymentParametersProvider,
    MetadataProvider,
    call_provider,
    read_deployment_parameters,
)
from azconfig.schemas.cloud import (
    DEFAULT_MAX_DEPLOYMENTS_COUNT,
    DEFAULT_VM_TYPE,
    AuthMethod,
    CloudConfig,
    VMType,
)
from azconfig.schemas.internal import AzureConfig
from azconfig.schemas.ratelimit import CloudProviderRateLimitConfig
from azconfig.sources import Payload, load_draft, select_source
from azconfig.validation import validate

logger = logging.getLogger(__name__)

# Read from the environment on both loading paths; the payload has no say
ALWAYS_FROM_ENV = {
    "cluster_name": "CLUSTER_NAME",
    "cluster_resource_group": "ARM_CLUSTER_RESOURCE_GROUP",
    "arm_base_url_for_ap_client": "ARM_BASE_URL_FOR_AP_CLIENT",
}

# Boolean toggles the environment overrides on both paths when set
TOGGLES_FROM_ENV = {
    "cloud_provider_rate_limit": "CLOUD_PROVIDER_RATE_LIMIT",
    "enable_force_delete": "AZURE_ENABLE_FORCE_DELETE",
}


def deep_merge(base: dict, *overrides: dict) -> dict:
    """Layer field dictionaries on top of a draft dump.

    Parameters
    ----------
    base : dict
        Dumped draft, left unmodified.
    *overrides : dict
        Applied left to right. A nested dict (a rate limit override object)
        is merged key by key when both sides hold one; any other value
        replaces what was there.

    Returns
    -------
    dict
        New dictionary ready for ``CloudConfig.model_validate``.

    Examples
    --------
    >>> deep_merge({"cluster_name": "a", "disk_rate_limit": {"x": 1}},
    ...            {"cluster_name": "", "disk_rate_limit": {"y": 2}})
    {'cluster_name': '', 'disk_rate_limit': {'x': 1, 'y': 2}}
    """
    result = base.copy()

    for override in overrides:
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = deep_merge(result[key], value)
            else:
                result[key] = value

    return result


def environment_overrides(environ: Mapping[str, str]) -> dict:
    """Collect the fields the environment controls on both loading paths.

    Raises
    ------
    MalformedValue
        If a toggle variable cannot be parsed.
    """
    overrides = {field: environ.get(key, "") for field, key in ALWAYS_FROM_ENV.items()}

    for field, key in TOGGLES_FROM_ENV.items():
        raw = env_value(environ, key)
        if raw is not None:
            overrides[field] = parse_bool(key, raw)

    return overrides


def _lookup_deployment_parameters(
    provider: DeploymentParametersProvider, path: str
) -> dict:
    """Fetch deployment parameters for the standard VM type."""
    logger.info("Deployment parameters not set, reading %s", path)
    try:
        parameters = call_provider("deployment-parameters", provider, path)
    except ProviderFailure as err:
        logger.error("Reading deployment parameters failed: %s", err)
        raise
    if parameters is None:
        return {}
    if not isinstance(parameters, dict):
        raise ProviderFailure("deployment-parameters", f"expected a mapping from {path}")
    return parameters


def build_azure_config(
    payload: Optional[Payload] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    deployment_parameters_provider: Optional[DeploymentParametersProvider] = None,
    metadata_provider: Optional[MetadataProvider] = None,
    deployment_parameters_path: str = DEPLOYMENT_PARAMETERS_PATH,
) -> AzureConfig:
    """Resolve the runtime cloud configuration.

    This is the SINGLE ENTRYPOINT for configuration resolution.

    Parameters
    ----------
    payload : str, bytes, file-like or mapping, optional
        Structured JSON cloud config. When given, the environment only
        supplies the always-from-environment fields, the global toggles and
        the rate limit defaults.
    environ : Mapping[str, str], optional
        Environment snapshot. Defaults to a copy of ``os.environ``; the
        mapping is never modified.
    deployment_parameters_provider : callable, optional
        ``provider(path) -> dict``, consulted only for the standard VM type
        when no parameters were supplied. Defaults to reading the file.
    metadata_provider : callable, optional
        ``provider() -> str`` returning the subscription id, consulted only
        on the environment path when ``ARM_SUBSCRIPTION_ID`` is not set.
        Defaults to an ``InstanceMetadataService`` created only when queried.
    deployment_parameters_path : str, optional
        File handed to the deployment parameters provider.

    Returns
    -------
    AzureConfig
        Fully resolved, validated and immutable configuration.

    Raises
    ------
    ConfigurationError
        MalformedValue, MalformedPayload, ConflictingIdentity,
        ValidationFailed or ProviderFailure; the first one encountered.

    Examples
    --------
    >>> config = build_azure_config(
    ...     '{"resourceGroup": "rg", "subscriptionId": "sub", '
    ...     '"tenantId": "tenant", "aadClientId": "client"}',
    ...     environ={},
    ... )
    >>> config.vm_type
    'vmss'
    """
    environ = dict(os.environ if environ is None else environ)
    if deployment_parameters_provider is None:
        deployment_parameters_provider = read_deployment_parameters

    # 1. Source selection
    source = select_source(payload, environ)
    draft = load_draft(source, metadata_provider)

    # 2-3. Environment-controlled fields; re-validation trims every string
    merged = deep_merge(draft.model_dump(), environment_overrides(environ))
    draft = CloudConfig.model_validate(merged)

    # 4. Rate limits
    rate_limits = resolve_rate_limits(draft, environ)

    # 5. Top-level defaults
    completed = {}
    if draft.vm_type == "":
        completed["vm_type"] = DEFAULT_VM_TYPE.value
        logger.debug("vm type not set, defaulting to %s", DEFAULT_VM_TYPE.value)

    vm_type = completed.get("vm_type", draft.vm_type)
    if vm_type == VMType.STANDARD and not draft.deployment_parameters:
        completed["deployment_parameters"] = _lookup_deployment_parameters(
            deployment_parameters_provider, deployment_parameters_path
        )

    if draft.max_deployments_count == 0:
        completed["max_deployments_count"] = DEFAULT_MAX_DEPLOYMENTS_COUNT

    draft = draft.model_copy(update=completed)

    # 6. Validation
    validate(draft)

    # 7. Freeze
    backoff = build_backoff_policy(
        draft.cloud_provider_backoff,
        retries=draft.cloud_provider_backoff_retries,
        exponent=draft.cloud_provider_backoff_exponent,
        duration=draft.cloud_provider_backoff_duration,
        jitter=draft.cloud_provider_backoff_jitter,
    )

    fields = draft.model_dump(exclude=set(CloudProviderRateLimitConfig.model_fields))
    fields.update(
        auth_method=draft.auth_method or AuthMethod.PRINCIPAL.value,
        deployment_parameters=copy.deepcopy(draft.deployment_parameters or {}),
        rate_limits=rate_limits,
        backoff=backoff,
    )
    config = AzureConfig.model_validate(fields)

    logger.info(
        "Resolved configuration: vm_type=%s auth_method=%s managed_identity=%s "
        "rate_limit=%s backoff_steps=%d",
        config.vm_type,
        config.auth_method,
        config.use_managed_identity_extension,
        rate_limits.default.cloud_provider_rate_limit,
        backoff.steps,
    )
    return config
