"""Command-line front-end: ``ci-cleaner aws|azure|version``."""

from __future__ import annotations
import argparse
import signal
import sys
import threading
from importlib.metadata import PackageNotFoundError, version
from typing import Sequence

from aws_lambda_powertools import Logger

from . import __version__
from .aws import new_aws_orchestrator
from .azure import new_azure_orchestrator
from .errors import CleanupCancelledError, InvalidConfigError
from .models import AWSConfig, AzureConfig
from .orchestrator import CleanupResult, Orchestrator
from .utils import get_logger

DISTRIBUTION_NAME = "ci-cleaner"

EXIT_OK = 0
EXIT_ERRORS = 1
EXIT_INVALID_CONFIG = 2
EXIT_CANCELLED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ci-cleaner",
        description="Delete leftover CI resources from AWS and Azure accounts",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level, defaults to the LOG_LEVEL environment variable or INFO",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    aws_parser = subparsers.add_parser("aws", help="Clean CloudFormation stacks and S3 buckets")
    aws_parser.add_argument("--access-key-id", default=None)
    aws_parser.add_argument("--secret-access-key", default=None)
    aws_parser.add_argument("--region", default=None)

    azure_parser = subparsers.add_parser(
        "azure", help="Clean resource groups and installation leftovers"
    )
    azure_parser.add_argument("--client-id", default=None)
    azure_parser.add_argument("--client-secret", default=None)
    azure_parser.add_argument("--tenant-id", default=None)
    azure_parser.add_argument("--subscription-id", default=None)
    azure_parser.add_argument("--location", default=None)
    azure_parser.add_argument(
        "--installations",
        default=None,
        help="Comma separated installation names, e.g. ghost,godsmack",
    )
    azure_parser.add_argument(
        "--delegate-dns-zone",
        default=None,
        help="Root zone holding delegations of terraform E2E clusters",
    )

    subparsers.add_parser("version", help="Print the installed version")
    return parser


def package_version() -> str:
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return __version__


def aws_config_from_args(args: argparse.Namespace) -> AWSConfig:
    return AWSConfig.from_env().with_overrides(
        access_key_id=args.access_key_id,
        secret_access_key=args.secret_access_key,
        region=args.region,
    )


def azure_config_from_args(args: argparse.Namespace) -> AzureConfig:
    return AzureConfig.from_env().with_overrides(
        client_id=args.client_id,
        client_secret=args.client_secret,
        tenant_id=args.tenant_id,
        subscription_id=args.subscription_id,
        location=args.location,
        installations=args.installations,
        delegate_dns_zone=args.delegate_dns_zone,
    )


def report(result: CleanupResult) -> int:
    """Print the flattened errors of a run and return its exit code."""
    if result.ok:
        return EXIT_OK
    print(f"{result.provider} cleanup failed:", file=sys.stderr)
    print(result.errors.dump(), file=sys.stderr, end="")
    return EXIT_ERRORS


class _CancelOnSignal:
    """Sets ``event`` on SIGINT/SIGTERM while active."""

    SIGNALS = (signal.SIGINT, signal.SIGTERM)

    def __init__(self, event: threading.Event, logger: Logger):
        self.event = event
        self.logger = logger
        self._previous: dict[int, object] = {}

    def _handle(self, signum, frame) -> None:
        self.logger.warning(
            "cancellation requested, stopping before the next provider call",
            extra={"signal": signal.Signals(signum).name},
        )
        self.event.set()

    def __enter__(self) -> _CancelOnSignal:
        if threading.current_thread() is threading.main_thread():
            for signum in self.SIGNALS:
                self._previous[signum] = signal.signal(signum, self._handle)
        return self

    def __exit__(self, *exc_info) -> None:
        for signum, handler in self._previous.items():
            signal.signal(signum, handler)
        self._previous.clear()


def run_aws(args: argparse.Namespace, logger: Logger) -> int:
    orchestrator = new_aws_orchestrator(aws_config_from_args(args), logger)
    return report(orchestrator.clean())


def run_azure(args: argparse.Namespace, logger: Logger) -> int:
    cancel_event = threading.Event()
    orchestrator: Orchestrator = new_azure_orchestrator(
        azure_config_from_args(args), logger, cancel_event
    )
    with _CancelOnSignal(cancel_event, logger):
        result = orchestrator.clean()
    return report(result)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "version":
        print(package_version())
        return EXIT_OK

    logger = get_logger(args.log_level)
    commands = {"aws": run_aws, "azure": run_azure}
    try:
        return commands[args.command](args, logger)
    except InvalidConfigError as e:
        print(f"invalid configuration: {e}", file=sys.stderr)
        return EXIT_INVALID_CONFIG
    except CleanupCancelledError as e:
        logger.warning("cleanup cancelled", extra={"error": str(e)})
        return EXIT_CANCELLED
