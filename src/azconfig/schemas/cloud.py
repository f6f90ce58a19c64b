"""CloudConfig: structured payload shape and resolution draft.

This is the shape of the ``azure.json`` cloud config. Field aliases are the
payload's camelCase keys; snake_case names are accepted too. Both loading
paths (payload and environment) produce a CloudConfig, which the assembler
then completes and validates before freezing it into an ``AzureConfig``.

Zero values mean "not set" throughout: defaults are applied by the resolver
stages, not by this schema.
"""

from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import Field, StringConstraints

from azconfig.schemas.ratelimit import CloudProviderRateLimitConfig


# =============================================================================
# Enumerations and hard defaults
# =============================================================================

class VMType(str, Enum):
    """How the cluster's nodes are provisioned."""
    VMSS = "vmss"          # pool-based (scale sets)
    STANDARD = "standard"  # deployment-based (ARM template deployments)


class AuthMethod(str, Enum):
    """How requests to the cloud are authorized."""
    PRINCIPAL = "principal"  # service principal (default)
    CLI = "cli"              # delegate to the az command line login


DEFAULT_VM_TYPE = VMType.VMSS
DEFAULT_MAX_DEPLOYMENTS_COUNT = 10
VMSS_SIZE_REFRESH_PERIOD_DEFAULT = 30  # seconds
DYNAMIC_INSTANCE_LIST_DEFAULT = False
ENABLE_VMSS_FLEX_DEFAULT = False

# Fields holding credentials; never logged and redacted on display
SECRET_FIELDS = frozenset({"aad_client_secret", "aad_client_cert_password"})

# Free-form ARM deployment parameters; kept exactly as supplied
DeploymentParameters = dict[Annotated[str, StringConstraints(strip_whitespace=False)], Any]


# =============================================================================
# CloudConfig
# =============================================================================

class CloudConfig(CloudProviderRateLimitConfig):
    """Unresolved cloud configuration.

    Usage
    -----
        draft = CloudConfig.model_validate_json(payload)
        draft.resource_group
    """

    # Identity and topology
    cloud: str = Field("", alias="cloud")
    location: str = Field("", alias="location")
    tenant_id: str = Field("", alias="tenantId")
    subscription_id: str = Field("", alias="subscriptionId")
    cluster_name: str = Field("", alias="clusterName")
    resource_group: str = Field("", alias="resourceGroup")
    cluster_resource_group: str = Field("", alias="clusterResourceGroup")
    vm_type: str = Field("", alias="vmType")
    arm_base_url_for_ap_client: str = Field("", alias="armBaseURLForAPClient")

    # Authentication
    auth_method: str = Field("", alias="authMethod")
    aad_client_id: str = Field("", alias="aadClientId")
    aad_client_secret: str = Field("", alias="aadClientSecret")
    aad_client_cert_path: str = Field("", alias="aadClientCertPath")
    aad_client_cert_password: str = Field("", alias="aadClientCertPassword")
    aad_federated_token_file: str = Field("", alias="aadFederatedTokenFile")
    use_managed_identity_extension: bool = Field(False, alias="useManagedIdentityExtension")
    use_workload_identity_extension: bool = Field(False, alias="useWorkloadIdentityExtension")
    user_assigned_identity_id: str = Field("", alias="userAssignedIdentityID")

    # Deployment-based (standard) VM type only
    deployment: str = Field("", alias="deployment")
    deployment_parameters: Optional[DeploymentParameters] = Field(None, alias="deploymentParameters")

    # Caches and refresh
    vmss_cache_ttl: int = Field(0, alias="vmssCacheTTL")
    vmss_vms_cache_ttl: int = Field(0, alias="vmssVmsCacheTTL")
    vmss_vms_cache_jitter: int = Field(0, alias="vmssVmsCacheJitter")
    get_vmss_size_refresh_period: int = Field(0, alias="getVmssSizeRefreshPeriod")
    max_deployments_count: int = Field(0, alias="maxDeploymentsCount")

    # Retry backoff
    cloud_provider_backoff: bool = Field(False, alias="cloudProviderBackoff")
    cloud_provider_backoff_retries: int = Field(0, alias="cloudProviderBackoffRetries")
    cloud_provider_backoff_exponent: float = Field(0.0, alias="cloudProviderBackoffExponent")
    cloud_provider_backoff_duration: int = Field(0, alias="cloudProviderBackoffDuration")
    cloud_provider_backoff_jitter: float = Field(0.0, alias="cloudProviderBackoffJitter")

    # Toggles
    enable_force_delete: bool = Field(False, alias="enableForceDelete")
    enable_dynamic_instance_list: bool = Field(False, alias="enableDynamicInstanceList")
    enable_vmss_flex: bool = Field(False, alias="enableVmssFlex")
