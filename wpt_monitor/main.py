"""Main module entrypoint for local runtime execution.

This module validates startup configuration, configures logging, and runs the
selected command: the API service, a scheduler worker, or a one-shot action.
"""

import argparse
import logging
import time
from collections.abc import Iterable

import structlog
import uvicorn

from wpt_monitor.bootstrap import (
    bootstrap_create_application,
    bootstrap_create_job_submitter,
    bootstrap_create_poll_cycle_runner,
    bootstrap_create_scheduler_runtime,
    bootstrap_create_threshold_service,
)
from wpt_monitor.config import config_load_settings
from wpt_monitor.domain import TargetSpec

logger = structlog.get_logger(__name__)


def main_configure_logging(log_level: str) -> None:
    """Configure structlog console output at the given level name."""

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, log_level, logging.INFO)),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def main_parse_target_lines(lines: Iterable[str]) -> list[TargetSpec]:
    """Parse a targets file into target specs.

    Each non-blank line is either `URL` or `KEY URL`. Lines starting with `#`
    are ignored.

    Args:
        lines: Raw file lines.

    Returns:
        list[TargetSpec]: Targets in file order.
    """

    targets: list[TargetSpec] = []
    for raw_line in lines:
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        if len(parts) == 1:
            targets.append(TargetSpec.from_url(parts[0]))
        else:
            targets.append(TargetSpec.from_url(parts[-1], target_key=" ".join(parts[:-1])))
    return targets


def main_parse_threshold_values(raw_values: str) -> list[float]:
    """Parse comma-separated threshold values.

    Raises:
        ValueError: Raised when a value is not numeric.
    """

    return [float(raw_value) for raw_value in raw_values.split(",") if raw_value.strip()]


def main_build_argument_parser() -> argparse.ArgumentParser:
    argument_parser = argparse.ArgumentParser(description="WebPageTest monitor runtime entrypoint")
    subparsers = argument_parser.add_subparsers(dest="command")

    subparsers.add_parser("api", help="Start the HTTP API with in-process poll scheduling")

    submit_parser = subparsers.add_parser("submit", help="Submit targets for measurement")
    submit_parser.add_argument("urls", nargs="*", help="Target URLs; each URL is also its target key")
    submit_parser.add_argument(
        "--targets-file",
        dest="targets_file",
        type=str,
        help="File with one `URL` or `KEY URL` per line",
    )

    subparsers.add_parser("poll-cycle", help="Run one poll cycle now")
    subparsers.add_parser("worker", help="Run registered poll activations until interrupted")

    thresholds_parser = subparsers.add_parser("thresholds-set", help="Replace the threshold set")
    thresholds_parser.add_argument("values", type=str, help="Comma-separated threshold values in metric order")

    argument_parser.set_defaults(command="api")
    return argument_parser


def main() -> None:
    """Run selected runtime command with validated startup configuration.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
        SystemExit: Raised with a non-zero code when a one-shot command fails.
    """

    parsed_arguments = main_build_argument_parser().parse_args()
    settings = config_load_settings()
    main_configure_logging(settings.log_level)

    if parsed_arguments.command == "submit":
        main_run_submit(parsed_arguments.urls, parsed_arguments.targets_file)
        return

    if parsed_arguments.command == "poll-cycle":
        cycle_result = bootstrap_create_poll_cycle_runner(settings).job_run_cycle()
        logger.info("Poll cycle command finished", status=cycle_result.status)
        if cycle_result.status != "success":
            raise SystemExit(1)
        return

    if parsed_arguments.command == "worker":
        main_run_worker()
        return

    if parsed_arguments.command == "thresholds-set":
        try:
            values = main_parse_threshold_values(parsed_arguments.values)
            threshold_set = bootstrap_create_threshold_service(settings).db_threshold_replace(values)
        except ValueError as error:
            logger.error("Threshold update rejected", error=str(error))
            raise SystemExit(2) from error
        logger.info("Thresholds replaced", values=list(threshold_set.values))
        return

    uvicorn.run(
        bootstrap_create_application(),
        host=settings.application_host,
        port=settings.application_port,
    )


def main_run_submit(urls: list[str], targets_file: str | None) -> None:
    """Submit targets from arguments and an optional targets file.

    Raises:
        SystemExit: Raised when no target was given or no job was stored.
    """

    targets = [TargetSpec.from_url(url) for url in urls]
    if targets_file:
        with open(targets_file, encoding="utf-8") as handle:
            targets.extend(main_parse_target_lines(handle))
    if not targets:
        logger.error("No targets given")
        raise SystemExit(2)

    job_submitter = bootstrap_create_job_submitter()
    scheduler_runtime = bootstrap_create_scheduler_runtime()
    try:
        outcome = job_submitter.job_submit(targets)
    finally:
        # Registrations are persisted; this process does not run them.
        scheduler_runtime.runtime_stop()

    for job in outcome.submitted_jobs:
        print(f"submitted {job.target_key} {job.handle}")
    for rejected in outcome.rejected_targets:
        print(f"rejected {rejected.target.target_key} {rejected.reason}: {rejected.detail}")
    for failure in outcome.failed_submissions:
        print(f"failed {failure.target.target_key} status={failure.status_code}: {failure.message}")
    if not outcome.submitted_jobs:
        raise SystemExit(1)


def main_run_worker() -> None:
    """Run registered poll activations in this process until interrupted."""

    scheduler_runtime = bootstrap_create_scheduler_runtime()
    scheduler_runtime.runtime_start()
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Worker interrupted")
    finally:
        scheduler_runtime.runtime_stop()


if __name__ == "__main__":
    main()
