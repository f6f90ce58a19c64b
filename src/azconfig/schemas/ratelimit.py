"""Rate limit schemas: one global default plus per-resource overrides.

The payload carries the global default fields flattened at its top level and
one optional nested object per resource kind. After resolution every kind has
a concrete policy in ``RateLimitPolicies``.
"""

from enum import Enum
from typing import Iterator, Optional

from pydantic import Field

from azconfig.schemas.base import AzconfigBaseModel


class ResourceKind(str, Enum):
    """Closed set of resource kinds that carry their own rate limit.

    Values double as field names on ``RateLimitPolicies``.
    """
    INTERFACE = "interface"
    VIRTUAL_MACHINE = "virtual_machine"
    STORAGE_ACCOUNT = "storage_account"
    DISK = "disk"
    VIRTUAL_MACHINE_SCALE_SET = "virtual_machine_scale_set"
    KUBERNETES_SERVICE = "kubernetes_service"

    @property
    def override_field(self) -> str:
        """Name of the override field on ``CloudProviderRateLimitConfig``."""
        return f"{self.value}_rate_limit"


class RateLimitFields(AzconfigBaseModel):
    """Fields shared by the global default and every per-kind override."""

    cloud_provider_rate_limit: bool = Field(False, alias="cloudProviderRateLimit")
    cloud_provider_rate_limit_qps: float = Field(0.0, alias="cloudProviderRateLimitQPS")
    cloud_provider_rate_limit_bucket: int = Field(0, alias="cloudProviderRateLimitBucket")
    cloud_provider_rate_limit_qps_write: float = Field(0.0, alias="cloudProviderRateLimitQPSWrite")
    cloud_provider_rate_limit_bucket_write: int = Field(0, alias="cloudProviderRateLimitBucketWrite")

    model_config = AzconfigBaseModel.model_config.copy()
    model_config.update({"extra": "ignore"})  # Unknown payload keys are ignored


class RateLimitConfig(RateLimitFields):
    """A single rate limit policy (enabled flag, read and write QPS/bucket)."""

    model_config = RateLimitFields.model_config.copy()
    model_config.update({"frozen": True})


class CloudProviderRateLimitConfig(RateLimitFields):
    """Global default rate limit plus optional per-kind overrides.

    An override that is None inherits the resolved default in full.
    """

    interface_rate_limit: Optional[RateLimitConfig] = Field(None, alias="interfaceRateLimit")
    virtual_machine_rate_limit: Optional[RateLimitConfig] = Field(None, alias="virtualMachineRateLimit")
    storage_account_rate_limit: Optional[RateLimitConfig] = Field(None, alias="storageAccountRateLimit")
    disk_rate_limit: Optional[RateLimitConfig] = Field(None, alias="diskRateLimit")
    virtual_machine_scale_set_rate_limit: Optional[RateLimitConfig] = Field(
        None, alias="virtualMachineScaleSetRateLimit"
    )
    kubernetes_service_rate_limit: Optional[RateLimitConfig] = Field(
        None, alias="kubernetesServiceRateLimit"
    )

    def default_rate_limit(self) -> RateLimitConfig:
        """Return the global default fields as a standalone policy."""
        return RateLimitConfig.model_validate(
            self.model_dump(include=set(RateLimitFields.model_fields))
        )

    def override_for(self, kind: ResourceKind) -> Optional[RateLimitConfig]:
        """Return the override for ``kind``, or None when not supplied."""
        return getattr(self, ResourceKind(kind).override_field)


class RateLimitPolicies(AzconfigBaseModel):
    """Effective rate limit policy for the default and every resource kind.

    Every field is populated after resolution. Index by ``ResourceKind``:

        policies[ResourceKind.DISK].cloud_provider_rate_limit_qps
    """

    default: RateLimitConfig
    interface: RateLimitConfig
    virtual_machine: RateLimitConfig
    storage_account: RateLimitConfig
    disk: RateLimitConfig
    virtual_machine_scale_set: RateLimitConfig
    kubernetes_service: RateLimitConfig

    model_config = AzconfigBaseModel.model_config.copy()
    model_config.update({"frozen": True})

    def __getitem__(self, kind: ResourceKind) -> RateLimitConfig:
        return getattr(self, ResourceKind(kind).value)

    def items(self) -> Iterator[tuple[ResourceKind, RateLimitConfig]]:
        """Iterate ``(kind, policy)`` pairs in declaration order."""
        for kind in ResourceKind:
            yield kind, self[kind]
