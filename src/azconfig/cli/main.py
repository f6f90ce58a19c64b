"""Resolve the cloud configuration and print it as JSON.

Usage:
    azconfig
    azconfig --config /etc/kubernetes/azure.json
    azconfig --config azure.json --deployment-parameters params.json --log-level DEBUG

Without ``--config`` every setting comes from environment variables.
Credentials are redacted unless ``--show-secrets`` is given.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from azconfig.errors import ConfigurationError
from azconfig.providers import DEPLOYMENT_PARAMETERS_PATH
from azconfig.schemas.cloud import SECRET_FIELDS
from azconfig.schemas.resolve import build_azure_config


logger = logging.getLogger(__name__)

REDACTED = "***"


def redact(dump: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``dump`` with every non-empty secret replaced."""
    return {
        key: REDACTED if key in SECRET_FIELDS and value else value
        for key, value in dump.items()
    }


def resolve_for_display(
    config_path: Optional[str] = None,
    deployment_parameters_path: str = DEPLOYMENT_PARAMETERS_PATH,
    show_secrets: bool = False,
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """Resolve the configuration into a JSON-ready dictionary.

    Parameters
    ----------
    config_path : str, optional
        Structured JSON cloud config. When None the environment is used.
    deployment_parameters_path : str, optional
        Deployment parameters file read for the standard VM type.
    show_secrets : bool, optional
        If True, credentials are included verbatim.
    environ : Mapping[str, str], optional
        Environment snapshot, ``os.environ`` by default.

    Raises
    ------
    FileNotFoundError
        If ``config_path`` does not exist.
    ConfigurationError
        If resolution fails.
    """
    payload = None
    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config not found: {path}")
        payload = path.read_bytes()

    config = build_azure_config(
        payload,
        environ=environ,
        deployment_parameters_path=deployment_parameters_path,
    )

    dump = config.model_dump(mode="json")
    return dump if show_secrets else redact(dump)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="azconfig",
        description="Resolve and print the cluster autoscaler cloud configuration",
    )
    parser.add_argument(
        "--config",
        help="Path to a JSON cloud config (default: read environment variables)",
    )
    parser.add_argument(
        "--deployment-parameters",
        default=DEPLOYMENT_PARAMETERS_PATH,
        help=f"Deployment parameters file for the standard VM type (default: {DEPLOYMENT_PARAMETERS_PATH})",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING)",
    )
    parser.add_argument(
        "--show-secrets",
        action="store_true",
        help="Print credentials instead of redacting them",
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    try:
        dump = resolve_for_display(
            config_path=args.config,
            deployment_parameters_path=args.deployment_parameters,
            show_secrets=args.show_secrets,
        )
    except (ConfigurationError, FileNotFoundError) as err:
        logger.error("Configuration failed: %s", err)
        return 1

    print(json.dumps(dump, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
