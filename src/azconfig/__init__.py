"""`azconfig` - cloud provider configuration for the cluster autoscaler.

Subpackages:
- schemas: Payload, environment and final configuration models, assembly
- policy: Rate limit and retry backoff resolution
- cli: Command-line inspection of the resolved configuration

Resolution has a single entrypoint::

    from azconfig import build_azure_config
    config = build_azure_config(payload)
"""

__version__ = "0.1.0"

from azconfig.errors import ConfigurationError
from azconfig.schemas.resolve import build_azure_config

__all__ = ['build_azure_config', 'ConfigurationError']
