"""External providers consulted during resolution.

Both providers are injected into ``build_azure_config`` so resolution can run
without touching the filesystem or the network:

- deployment parameters: ``Callable[[str], dict]``, given a file path
- instance metadata: ``Callable[[], str]``, returning a subscription id

Every failure is raised as ``ProviderFailure`` with the provider's origin.
"""

import json
import logging
from pathlib import Path
from typing import Callable

import requests

from azconfig.errors import ProviderFailure

__all__ = [
    'DEPLOYMENT_PARAMETERS_PATH',
    'IMDS_SERVER_URL',
    'DeploymentParametersProvider',
    'MetadataProvider',
    'read_deployment_parameters',
    'InstanceMetadataService',
    'call_provider',
]

logger = logging.getLogger(__name__)

DEPLOYMENT_PARAMETERS_PATH = "/var/lib/azure/azuredeploy.parameters.json"
IMDS_SERVER_URL = "http://169.254.169.254"
IMDS_API_VERSION = "2019-03-11"

DeploymentParametersProvider = Callable[[str], dict]
MetadataProvider = Callable[[], str]


def read_deployment_parameters(path: str) -> dict:
    """Read the ``parameters`` object of an ARM deployment parameters file.

    Parameters
    ----------
    path : str
        Path to a JSON file of the form ``{"parameters": {...}}``.

    Returns
    -------
    dict
        The deployment parameters.

    Raises
    ------
    ProviderFailure
        If the file is missing or unreadable, is not valid JSON, or has no
        ``parameters`` object.
    """
    try:
        contents = Path(path).read_text()
    except OSError as err:
        raise ProviderFailure("deployment-parameters", f"failed to read {path}: {err}") from err

    try:
        document = json.loads(contents)
    except json.JSONDecodeError as err:
        raise ProviderFailure("deployment-parameters", f"failed to parse {path}: {err}") from err

    parameters = document.get("parameters") if isinstance(document, dict) else None
    if not isinstance(parameters, dict):
        raise ProviderFailure(
            "deployment-parameters", f"failed to get deployment parameters from file {path}"
        )

    logger.debug("Loaded %d deployment parameter(s) from %s", len(parameters), path)
    return parameters


class InstanceMetadataService:
    """Client for the instance metadata service (IMDS).

    Only the subscription id of the current instance is needed.

    Parameters
    ----------
    base_url : str
        IMDS endpoint, ``http://169.254.169.254`` on every cloud VM.
    timeout : float
        Seconds to wait for the metadata service before failing.
    session : requests.Session, optional
        Session to issue requests with. Allows injection for testing.

    Examples
    --------
    >>> imds = InstanceMetadataService(IMDS_SERVER_URL)
    >>> imds.subscription_id()
    '00000000-0000-0000-0000-000000000000'
    """

    def __init__(self, base_url: str = IMDS_SERVER_URL, timeout: float = 5.0, session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_metadata(self) -> dict:
        """Fetch the instance metadata document."""
        url = f"{self.base_url}/metadata/instance"
        try:
            response = self.session.get(
                url,
                params={"api-version": IMDS_API_VERSION, "format": "json"},
                headers={"Metadata": "true"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as err:
            raise ProviderFailure("instance-metadata", f"failed to query {url}: {err}") from err

    def subscription_id(self) -> str:
        """Return the subscription id the current instance belongs to."""
        metadata = self.get_metadata()
        try:
            subscription_id = metadata["compute"]["subscriptionId"]
        except (KeyError, TypeError) as err:
            raise ProviderFailure(
                "instance-metadata", "metadata has no compute.subscriptionId"
            ) from err
        logger.info("Subscription id resolved from instance metadata")
        return subscription_id

    def close(self) -> None:
        """Release the underlying HTTP session."""
        self.session.close()

    def __call__(self) -> str:
        return self.subscription_id()


def call_provider(origin: str, provider: Callable, *args):
    """Call an injected provider, raising any failure as ``ProviderFailure``."""
    try:
        return provider(*args)
    except ProviderFailure:
        raise
    except Exception as err:
        raise ProviderFailure(origin, str(err)) from err
