"""Scheduled entrypoint fired by registered poll activations.

Registrations reference this function by `module:function` text, so it must
stay importable at this path without arguments.
"""

from wpt_monitor.bootstrap import bootstrap_create_poll_cycle_runner


def job_poll_cycle_entry() -> None:
    """Build the poll cycle runner from settings and run one cycle."""

    poll_cycle_runner = bootstrap_create_poll_cycle_runner()
    poll_cycle_runner.job_run_cycle()
