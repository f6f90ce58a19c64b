"""Conditional validation of a completed configuration draft.

Rules run in a fixed order and the first violation aborts with
``ValidationFailed`` naming the field. Which rules apply depends on the VM
type and on the authentication method.
"""

from azconfig.errors import ValidationFailed, require
from azconfig.schemas.cloud import AuthMethod, CloudConfig, VMType

__all__ = ['validate']


def validate(cfg: CloudConfig) -> None:
    """Validate a completed draft.

    Parameters
    ----------
    cfg : CloudConfig
        Draft with defaults applied and deployment parameters looked up.

    Raises
    ------
    ValidationFailed
        On the first violated rule.
    """
    require(cfg.resource_group != "", "resource_group", "resource group not set")

    if cfg.vm_type == VMType.STANDARD:
        require(cfg.deployment != "", "deployment", "deployment not set")
        require(bool(cfg.deployment_parameters), "deployment_parameters", "deploymentParameters not set")

    require(cfg.subscription_id != "", "subscription_id", "subscription ID not set")

    # Managed identity needs no tenant or client credentials
    if cfg.use_managed_identity_extension:
        return

    require(cfg.tenant_id != "", "tenant_id", "tenant ID not set")

    if cfg.auth_method in ("", AuthMethod.PRINCIPAL):
        require(cfg.aad_client_id != "", "aad_client_id", "ARM Client ID not set")
    elif cfg.auth_method == AuthMethod.CLI:
        pass
    else:
        raise ValidationFailed("auth_method", f"unsupported authorization method: {cfg.auth_method}")

    require(
        not (cfg.cloud_provider_backoff and cfg.cloud_provider_backoff_retries == 0),
        "cloud_provider_backoff_retries",
        "Cloud provider backoff is enabled but retries are not set",
    )
