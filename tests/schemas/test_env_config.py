"""Test EnvConfig parsing of environment variables."""

import pytest

from azconfig.errors import ConflictingIdentity, MalformedValue
from azconfig.schemas import EnvConfig

pytestmark = pytest.mark.unit


def overrides(environ):
    return EnvConfig.model_validate(environ).to_overrides()


class TestStrings:
    """Plain string variables."""

    def test_variables_map_to_fields(self):
        """Each documented variable lands on its field."""
        result = overrides({
            "ARM_CLOUD": "AzureChinaCloud",
            "LOCATION": "chinaeast",
            "ARM_RESOURCE_GROUP": "rg",
            "ARM_DEPLOYMENT": "dep",
            "ARM_CLIENT_SECRET": "secret",
            "ARM_CLIENT_CERT_PATH": "/etc/cert.pfx",
            "ARM_CLIENT_CERT_PASSWORD": "pw",
            "AZURE_FEDERATED_TOKEN_FILE": "/var/run/token",
            "ARM_USER_ASSIGNED_IDENTITY_ID": "uai",
        })

        assert result["cloud"] == "AzureChinaCloud"
        assert result["location"] == "chinaeast"
        assert result["resource_group"] == "rg"
        assert result["deployment"] == "dep"
        assert result["aad_client_secret"] == "secret"
        assert result["aad_client_cert_path"] == "/etc/cert.pfx"
        assert result["aad_client_cert_password"] == "pw"
        assert result["aad_federated_token_file"] == "/var/run/token"
        assert result["user_assigned_identity_id"] == "uai"

    def test_unset_variables_are_left_out(self):
        """Unset variables produce no override."""
        result = overrides({})

        assert "cloud" not in result
        assert "tenant_id" not in result
        assert "vmss_cache_ttl" not in result

    def test_empty_variables_are_left_out(self):
        """Empty variables count as unset."""
        result = overrides({"LOCATION": "", "AZURE_VMSS_CACHE_TTL": ""})

        assert "location" not in result
        assert "vmss_cache_ttl" not in result

    def test_unrelated_variables_are_ignored(self):
        """Other process variables are ignored."""
        env = EnvConfig.model_validate({"PATH": "/usr/bin", "HOME": "/root"})
        assert env.location is None

    @pytest.mark.parametrize("environ", [
        {"enable_backoff": "true"},
        {"location": "westus"},
        {"arm_resource_group": "rg"},
    ])
    def test_field_names_are_not_variables(self, environ):
        """Only the documented upper-case names are read, never field names."""
        env = EnvConfig.model_validate(environ)

        assert env.enable_backoff is None
        assert env.location is None
        assert env.arm_resource_group is None
        assert overrides(environ).keys() == overrides({}).keys()

    def test_vm_type_is_lowercased(self):
        """ARM_VM_TYPE is lower-cased."""
        assert overrides({"ARM_VM_TYPE": "VMSS"})["vm_type"] == "vmss"
        assert overrides({"ARM_VM_TYPE": "Standard"})["vm_type"] == "standard"


class TestDualNames:
    """AZURE_* names win over ARM_* names."""

    def test_arm_tenant_alone(self):
        """ARM_TENANT_ID is used when alone."""
        assert overrides({"ARM_TENANT_ID": "arm"})["tenant_id"] == "arm"

    def test_azure_tenant_wins(self):
        """AZURE_TENANT_ID takes precedence."""
        result = overrides({"ARM_TENANT_ID": "arm", "AZURE_TENANT_ID": "azure"})
        assert result["tenant_id"] == "azure"

    def test_empty_azure_tenant_falls_back(self):
        """An empty AZURE_TENANT_ID falls back to ARM_TENANT_ID."""
        result = overrides({"ARM_TENANT_ID": "arm", "AZURE_TENANT_ID": ""})
        assert result["tenant_id"] == "arm"

    def test_azure_client_wins(self):
        """AZURE_CLIENT_ID takes precedence."""
        result = overrides({"ARM_CLIENT_ID": "arm", "AZURE_CLIENT_ID": "azure"})
        assert result["aad_client_id"] == "azure"


class TestIdentityFlags:
    """Managed and workload identity toggles."""

    def test_managed_identity(self):
        """The managed identity flag is parsed on its own."""
        result = overrides({"ARM_USE_MANAGED_IDENTITY_EXTENSION": "true"})

        assert result["use_managed_identity_extension"] is True
        assert "use_workload_identity_extension" not in result

    def test_workload_identity(self):
        """The workload identity flag is parsed on its own."""
        result = overrides({"ARM_USE_WORKLOAD_IDENTITY_EXTENSION": "1"})
        assert result["use_workload_identity_extension"] is True

    def test_both_enabled_conflict(self):
        """Both identities enabled at once conflict."""
        with pytest.raises(ConflictingIdentity, match="can not combine"):
            overrides({
                "ARM_USE_MANAGED_IDENTITY_EXTENSION": "true",
                "ARM_USE_WORKLOAD_IDENTITY_EXTENSION": "true",
            })

    def test_one_disabled_is_not_a_conflict(self):
        """An explicitly disabled identity does not conflict."""
        result = overrides({
            "ARM_USE_MANAGED_IDENTITY_EXTENSION": "true",
            "ARM_USE_WORKLOAD_IDENTITY_EXTENSION": "false",
        })
        assert result["use_managed_identity_extension"] is True
        assert result["use_workload_identity_extension"] is False

    def test_malformed_flag_names_variable(self):
        """A malformed flag names its variable."""
        with pytest.raises(MalformedValue, match="ARM_USE_MANAGED_IDENTITY_EXTENSION"):
            overrides({"ARM_USE_MANAGED_IDENTITY_EXTENSION": "yes"})


class TestTypedValues:
    """Integer and boolean variables."""

    def test_integers(self):
        """Integer variables are parsed."""
        result = overrides({
            "AZURE_VMSS_CACHE_TTL": "60",
            "AZURE_VMSS_VMS_CACHE_TTL": "240",
            "AZURE_VMSS_VMS_CACHE_JITTER": "30",
            "AZURE_MAX_DEPLOYMENT_COUNT": "3",
        })

        assert result["vmss_cache_ttl"] == 60
        assert result["vmss_vms_cache_ttl"] == 240
        assert result["vmss_vms_cache_jitter"] == 30
        assert result["max_deployments_count"] == 3

    def test_malformed_integer_names_variable(self):
        """A malformed integer names its variable."""
        with pytest.raises(MalformedValue, match="AZURE_VMSS_CACHE_TTL"):
            overrides({"AZURE_VMSS_CACHE_TTL": "sixty"})

    def test_enable_backoff(self):
        """ENABLE_BACKOFF sets the backoff toggle only when present."""
        assert overrides({"ENABLE_BACKOFF": "true"})["cloud_provider_backoff"] is True
        assert "cloud_provider_backoff" not in overrides({})

    def test_environment_defaults(self):
        """Environment-only defaults apply when unset."""
        result = overrides({})

        assert result["enable_dynamic_instance_list"] is False
        assert result["get_vmss_size_refresh_period"] == 30
        assert result["enable_vmss_flex"] is False

    def test_environment_defaults_overridden(self):
        """Environment-only defaults yield to set variables."""
        result = overrides({
            "AZURE_ENABLE_DYNAMIC_INSTANCE_LIST": "true",
            "AZURE_GET_VMSS_SIZE_REFRESH_PERIOD": "90",
            "AZURE_ENABLE_VMSS_FLEX": "true",
        })

        assert result["enable_dynamic_instance_list"] is True
        assert result["get_vmss_size_refresh_period"] == 90
        assert result["enable_vmss_flex"] is True
