"""Root-level pytest fixtures for the azconfig test suite.

Provides environment snapshots, payloads and fake providers. Resolution is
never allowed to touch the real filesystem, network or ``os.environ``: every
test goes through ``resolve`` (or passes fakes explicitly).
"""

import pytest

from azconfig.schemas.resolve import build_azure_config


# =============================================================================
# Environment and payload fixtures
# =============================================================================

@pytest.fixture
def base_environ():
    """Smallest environment that resolves on the environment path.

    Service principal auth on the default (vmss) VM type.
    """
    return {
        "ARM_RESOURCE_GROUP": "rg",
        "ARM_SUBSCRIPTION_ID": "sub",
        "ARM_TENANT_ID": "tenant",
        "ARM_CLIENT_ID": "client",
        "ARM_CLIENT_SECRET": "secret",
    }


@pytest.fixture
def base_payload():
    """Smallest structured payload that resolves (camelCase keys)."""
    return {
        "resourceGroup": "rg",
        "subscriptionId": "sub",
        "tenantId": "tenant",
        "aadClientId": "client",
        "aadClientSecret": "secret",
    }


# =============================================================================
# Fake providers
# =============================================================================

class FakeMetadata:
    """Metadata provider that records calls and returns a fixed id."""

    def __init__(self, subscription_id="imds-sub", error=None):
        self.subscription_id = subscription_id
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.subscription_id


class FakeDeploymentParameters:
    """Deployment parameters provider that records the paths it was given."""

    def __init__(self, parameters=None, error=None):
        self.parameters = {"masterEndpointDNSNamePrefix": {"value": "k8s"}} if parameters is None else parameters
        self.error = error
        self.paths = []

    def __call__(self, path):
        self.paths.append(path)
        if self.error is not None:
            raise self.error
        return self.parameters


@pytest.fixture
def fake_metadata():
    """Metadata provider returning ``imds-sub``."""
    return FakeMetadata()


@pytest.fixture
def fake_deployment_parameters():
    """Deployment parameters provider with one master endpoint entry."""
    return FakeDeploymentParameters()


@pytest.fixture
def make_metadata():
    """Factory for metadata providers with a custom id or error."""
    return FakeMetadata


@pytest.fixture
def make_deployment_parameters():
    """Factory for deployment parameter providers with custom output or error."""
    return FakeDeploymentParameters


@pytest.fixture
def resolve(fake_metadata, fake_deployment_parameters):
    """Call ``build_azure_config`` with fake providers and an empty environment.

    Examples
    --------
    >>> def test_payload(resolve, base_payload):
    ...     config = resolve(base_payload)
    ...     assert config.vm_type == "vmss"
    """
    def _resolve(payload=None, environ=None, **kwargs):
        kwargs.setdefault("metadata_provider", fake_metadata)
        kwargs.setdefault("deployment_parameters_provider", fake_deployment_parameters)
        return build_azure_config(payload, environ={} if environ is None else environ, **kwargs)

    return _resolve


class RecordingMetadataService:
    """Stands in for ``InstanceMetadataService`` and counts instances."""

    instances = []

    def __init__(self, base_url):
        self.base_url = base_url
        self.closed = False
        RecordingMetadataService.instances.append(self)

    def __call__(self):
        return "imds-sub"

    def close(self):
        self.closed = True


@pytest.fixture
def recording_imds(monkeypatch):
    """Replace the default metadata service with a recording one."""
    monkeypatch.setattr(RecordingMetadataService, "instances", [])
    monkeypatch.setattr("azconfig.sources.InstanceMetadataService", RecordingMetadataService)
    return RecordingMetadataService
