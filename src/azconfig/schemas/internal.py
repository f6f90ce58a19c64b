"""AzureConfig: authoritative runtime configuration.

This is the ONLY config schema downstream cloud clients see. It is fully
resolved, validated and immutable: every rate limit policy is concrete and
the backoff policy is always present (a single attempt when backoff is
disabled).

All .get() calls, fallback defaults and validation logic are FORBIDDEN in
consumers - everything is explicit here.
"""

from datetime import timedelta
from typing import Optional

from azconfig.errors import ValidationFailed
from azconfig.schemas.base import AzconfigBaseModel
from azconfig.schemas.cloud import DeploymentParameters
from azconfig.schemas.ratelimit import RateLimitPolicies


# Resource manager endpoints of the known cloud environments, keyed by the
# upper-cased cloud name. An empty cloud name means the public cloud.
CLOUD_RESOURCE_MANAGER_ENDPOINTS = {
    "AZUREPUBLICCLOUD": "https://management.azure.com/",
    "AZURECHINACLOUD": "https://management.chinacloudapi.cn/",
    "AZUREUSGOVERNMENTCLOUD": "https://management.usgovcloudapi.net/",
    "AZUREGERMANCLOUD": "https://management.microsoftazure.de/",
}
DEFAULT_CLOUD = "AzurePublicCloud"
POLLING_DELAY = timedelta(seconds=30)


class FrozenModel(AzconfigBaseModel):
    """Immutable runtime model."""

    model_config = AzconfigBaseModel.model_config.copy()
    model_config.update({"frozen": True})


class BackoffPolicy(FrozenModel):
    """Retry policy for cloud API calls.

    ``steps`` is the total number of attempts. A policy with ``steps=1`` and
    zero growth means "no retry".
    """
    steps: int
    factor: float = 0.0
    duration: timedelta = timedelta(0)
    jitter: float = 0.0

    @property
    def retries_enabled(self) -> bool:
        return self.steps > 1


class ClientConfig(FrozenModel):
    """Settings shared by every cloud client built from an ``AzureConfig``.

    No authorizer is attached; building authenticated clients is the
    consumer's job.
    """
    location: str
    subscription_id: str
    resource_manager_endpoint: str
    backoff: BackoffPolicy
    polling_delay: timedelta = POLLING_DELAY


class AzureConfig(FrozenModel):
    """Authoritative cloud configuration.

    Usage
    -----
    Consumers receive AzureConfig and access fields directly:

        def __init__(self, config: AzureConfig):
            self.disk_qps = config.rate_limits[ResourceKind.DISK].cloud_provider_rate_limit_qps
            self.retry = config.backoff

    Rules
    -----
    - NO .get() calls
    - NO fallback defaults
    - NO validation

    All of that happens during resolution, not in consumers.
    """

    # Identity and topology
    cloud: str
    location: str
    tenant_id: str
    subscription_id: str
    cluster_name: str
    resource_group: str
    cluster_resource_group: str
    vm_type: str  # not limited to VMType; other pool types pass through
    arm_base_url_for_ap_client: str

    # Authentication
    auth_method: str  # unchecked when managed identity is used
    aad_client_id: str
    aad_client_secret: str
    aad_client_cert_path: str
    aad_client_cert_password: str
    aad_federated_token_file: str
    use_managed_identity_extension: bool
    use_workload_identity_extension: bool
    user_assigned_identity_id: str

    # Deployment-based (standard) VM type only
    deployment: str
    deployment_parameters: DeploymentParameters

    # Caches, refresh, retention
    vmss_cache_ttl: int
    vmss_vms_cache_ttl: int
    vmss_vms_cache_jitter: int
    get_vmss_size_refresh_period: int
    max_deployments_count: int

    # Policies
    rate_limits: RateLimitPolicies
    cloud_provider_backoff: bool
    cloud_provider_backoff_retries: int
    cloud_provider_backoff_exponent: float
    cloud_provider_backoff_duration: int
    cloud_provider_backoff_jitter: float
    backoff: BackoffPolicy

    # Toggles
    enable_force_delete: bool
    enable_dynamic_instance_list: bool
    enable_vmss_flex: bool

    def resource_manager_endpoint(self) -> str:
        """Return the resource manager endpoint of the configured cloud.

        Raises
        ------
        ValidationFailed
            If the cloud name is not a known environment.
        """
        name = (self.cloud or DEFAULT_CLOUD).upper()
        try:
            return CLOUD_RESOURCE_MANAGER_ENDPOINTS[name]
        except KeyError:
            raise ValidationFailed("cloud", f"unknown cloud environment: {self.cloud}") from None

    def client_config(self, resource_manager_endpoint: Optional[str] = None) -> ClientConfig:
        """Derive the settings cloud clients are built with.

        Parameters
        ----------
        resource_manager_endpoint : str, optional
            Endpoint to use instead of the configured cloud's default.
        """
        return ClientConfig(
            location=self.location,
            subscription_id=self.subscription_id,
            resource_manager_endpoint=resource_manager_endpoint or self.resource_manager_endpoint(),
            backoff=self.backoff,
        )
