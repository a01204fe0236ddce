"""Argument parsing, configuration loading, and provisioning bootstrap."""

from __future__ import annotations

import argparse
import logging
import sys

from azure.core.exceptions import AzureError

from .config import load_config
from .exceptions import ConfigError, ProvisionerError
from .logging_config import configure_logging
from .provisioning import Provisioner, build_clients

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spring-apps-provisioner",
        description="Provision an Azure Spring Apps service, app and deployment",
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to the YAML configuration file (built-in defaults when omitted)",
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate the configuration and exit",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Load config (minimal logging until config is loaded)
    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    configure_logging(config.logging, http_logging=config.azure.http_logging)

    if args.validate:
        logger.info("Configuration is valid")
        return 0

    try:
        provisioner = Provisioner(build_clients(config.azure), config)
        result = provisioner.run()
    except (ProvisionerError, AzureError) as exc:
        logger.exception("Fatal error: %s", exc)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130

    if result.url:
        logger.info("App %s is available at %s", result.application.name, result.url)
    return 0


if __name__ == "__main__":
    sys.exit(main())
