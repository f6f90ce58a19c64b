"""EnvConfig: configuration read from process environment variables.

Field aliases are the documented variable names, so a plain environment
mapping validates directly:

    env = EnvConfig.model_validate(os.environ)

Every field stays a raw string. Typed coercion happens in
``to_overrides()``, which fails fast with ``MalformedValue`` naming the
offending variable. Unset and empty variables are both treated as absent.
"""

from typing import Any, Callable, Optional

from pydantic import Field, field_validator

from azconfig.coerce import parse_bool, parse_int
from azconfig.errors import ConflictingIdentity
from azconfig.schemas.base import AzconfigBaseModel
from azconfig.schemas.cloud import (
    DYNAMIC_INSTANCE_LIST_DEFAULT,
    ENABLE_VMSS_FLEX_DEFAULT,
    VMSS_SIZE_REFRESH_PERIOD_DEFAULT,
)


class EnvConfig(AzconfigBaseModel):
    """Raw environment variables that populate a ``CloudConfig``.

    Where two variables back one field (``ARM_TENANT_ID`` and
    ``AZURE_TENANT_ID``), the newer ``AZURE_*`` name wins when both are set.
    """

    # Identity and topology
    arm_cloud: Optional[str] = Field(None, alias="ARM_CLOUD")
    location: Optional[str] = Field(None, alias="LOCATION")
    arm_resource_group: Optional[str] = Field(None, alias="ARM_RESOURCE_GROUP")
    arm_subscription_id: Optional[str] = Field(None, alias="ARM_SUBSCRIPTION_ID")
    arm_vm_type: Optional[str] = Field(None, alias="ARM_VM_TYPE")
    arm_deployment: Optional[str] = Field(None, alias="ARM_DEPLOYMENT")

    # Authentication
    arm_tenant_id: Optional[str] = Field(None, alias="ARM_TENANT_ID")
    azure_tenant_id: Optional[str] = Field(None, alias="AZURE_TENANT_ID")
    arm_client_id: Optional[str] = Field(None, alias="ARM_CLIENT_ID")
    azure_client_id: Optional[str] = Field(None, alias="AZURE_CLIENT_ID")
    arm_client_secret: Optional[str] = Field(None, alias="ARM_CLIENT_SECRET")
    arm_client_cert_path: Optional[str] = Field(None, alias="ARM_CLIENT_CERT_PATH")
    arm_client_cert_password: Optional[str] = Field(None, alias="ARM_CLIENT_CERT_PASSWORD")
    azure_federated_token_file: Optional[str] = Field(None, alias="AZURE_FEDERATED_TOKEN_FILE")
    arm_use_managed_identity_extension: Optional[str] = Field(
        None, alias="ARM_USE_MANAGED_IDENTITY_EXTENSION"
    )
    arm_use_workload_identity_extension: Optional[str] = Field(
        None, alias="ARM_USE_WORKLOAD_IDENTITY_EXTENSION"
    )
    arm_user_assigned_identity_id: Optional[str] = Field(None, alias="ARM_USER_ASSIGNED_IDENTITY_ID")

    # Caches, refresh, retention
    azure_vmss_cache_ttl: Optional[str] = Field(None, alias="AZURE_VMSS_CACHE_TTL")
    azure_vmss_vms_cache_ttl: Optional[str] = Field(None, alias="AZURE_VMSS_VMS_CACHE_TTL")
    azure_vmss_vms_cache_jitter: Optional[str] = Field(None, alias="AZURE_VMSS_VMS_CACHE_JITTER")
    azure_max_deployment_count: Optional[str] = Field(None, alias="AZURE_MAX_DEPLOYMENT_COUNT")
    azure_get_vmss_size_refresh_period: Optional[str] = Field(
        None, alias="AZURE_GET_VMSS_SIZE_REFRESH_PERIOD"
    )

    # Toggles
    enable_backoff: Optional[str] = Field(None, alias="ENABLE_BACKOFF")
    azure_enable_dynamic_instance_list: Optional[str] = Field(
        None, alias="AZURE_ENABLE_DYNAMIC_INSTANCE_LIST"
    )
    azure_enable_vmss_flex: Optional[str] = Field(None, alias="AZURE_ENABLE_VMSS_FLEX")

    model_config = AzconfigBaseModel.model_config.copy()
    # The environment holds plenty of unrelated variables; raw strings are
    # kept untouched so coercion sees exactly what was set. Only the
    # documented variable names are read, never the field names.
    model_config.update({
        "extra": "ignore",
        "str_strip_whitespace": False,
        "frozen": True,
        "populate_by_name": False,
    })

    @field_validator("*", mode="before")
    @classmethod
    def empty_is_absent(cls, v):
        """Treat an empty variable the same as an unset one."""
        if v == "":
            return None
        return v

    def _coerce(self, field: str, parser: Callable[[str, str], Any]) -> Any:
        """Coerce one field with ``parser``, reporting its variable name."""
        raw = getattr(self, field)
        if raw is None:
            return None
        return parser(type(self).model_fields[field].alias, raw)

    def to_overrides(self) -> dict:
        """Convert raw variables to a ``CloudConfig``-shaped dictionary.

        Returns
        -------
        dict
            Keys are ``CloudConfig`` field names. Unset variables are left out
            so the ``CloudConfig`` zero values apply, except for the three
            settings that carry their own environment default.

        Raises
        ------
        MalformedValue
            If a typed variable cannot be parsed.
        ConflictingIdentity
            If managed and workload identity are both enabled.
        """
        overrides = {}

        # Plain strings
        strings = {
            "cloud": self.arm_cloud,
            "location": self.location,
            "resource_group": self.arm_resource_group,
            "tenant_id": self.azure_tenant_id or self.arm_tenant_id,
            "aad_client_id": self.azure_client_id or self.arm_client_id,
            "aad_federated_token_file": self.azure_federated_token_file,
            "aad_client_secret": self.arm_client_secret,
            "aad_client_cert_path": self.arm_client_cert_path,
            "aad_client_cert_password": self.arm_client_cert_password,
            "deployment": self.arm_deployment,
            "user_assigned_identity_id": self.arm_user_assigned_identity_id,
        }
        overrides.update({k: v for k, v in strings.items() if v is not None})

        if self.arm_vm_type is not None:
            overrides["vm_type"] = self.arm_vm_type.lower()

        # Identity delegation
        use_managed = self._coerce("arm_use_managed_identity_extension", parse_bool)
        use_workload = self._coerce("arm_use_workload_identity_extension", parse_bool)
        if use_managed and use_workload:
            raise ConflictingIdentity()
        if use_managed is not None:
            overrides["use_managed_identity_extension"] = use_managed
        if use_workload is not None:
            overrides["use_workload_identity_extension"] = use_workload

        # Integers
        integers = {
            "vmss_cache_ttl": "azure_vmss_cache_ttl",
            "vmss_vms_cache_ttl": "azure_vmss_vms_cache_ttl",
            "vmss_vms_cache_jitter": "azure_vmss_vms_cache_jitter",
            "max_deployments_count": "azure_max_deployment_count",
        }
        for target, field in integers.items():
            value = self._coerce(field, parse_int)
            if value is not None:
                overrides[target] = value

        backoff = self._coerce("enable_backoff", parse_bool)
        if backoff is not None:
            overrides["cloud_provider_backoff"] = backoff

        # Settings with an environment-path default
        dynamic_list = self._coerce("azure_enable_dynamic_instance_list", parse_bool)
        overrides["enable_dynamic_instance_list"] = (
            DYNAMIC_INSTANCE_LIST_DEFAULT if dynamic_list is None else dynamic_list
        )

        refresh_period = self._coerce("azure_get_vmss_size_refresh_period", parse_int)
        overrides["get_vmss_size_refresh_period"] = (
            VMSS_SIZE_REFRESH_PERIOD_DEFAULT if refresh_period is None else refresh_period
        )

        vmss_flex = self._coerce("azure_enable_vmss_flex", parse_bool)
        overrides["enable_vmss_flex"] = (
            ENABLE_VMSS_FLEX_DEFAULT if vmss_flex is None else vmss_flex
        )

        return overrides
