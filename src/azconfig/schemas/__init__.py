"""Pydantic configuration schemas for the cloud provider.

All parsing, defaulting and validation happens once, in
``azconfig.schemas.resolve.build_azure_config``. Consumers only ever see the
frozen ``AzureConfig``.

Exports
-------
AzureConfig : class
    Fully validated, authoritative runtime configuration
CloudConfig : class
    Structured payload shape (and resolution draft)
EnvConfig : class
    Environment variable view of the configuration
RateLimitConfig, RateLimitPolicies, ResourceKind : classes
    Rate limit policy and its per-resource table
BackoffPolicy, ClientConfig : classes
    Retry policy and client settings handed to cloud clients
VMType, AuthMethod : enums
    Closed sets of VM types and authorization methods
"""

from azconfig.schemas.internal import AzureConfig, BackoffPolicy, ClientConfig
from azconfig.schemas.cloud import AuthMethod, CloudConfig, VMType
from azconfig.schemas.env import EnvConfig
from azconfig.schemas.ratelimit import RateLimitConfig, RateLimitPolicies, ResourceKind

__all__ = [
    'AzureConfig',
    'BackoffPolicy',
    'ClientConfig',
    'CloudConfig',
    'EnvConfig',
    'RateLimitConfig',
    'RateLimitPolicies',
    'ResourceKind',
    'VMType',
    'AuthMethod',
]
