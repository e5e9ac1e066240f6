"""Scheduling package for the poll activation lifecycle."""

from .apscheduler_trigger import (
	APSchedulerActivationTrigger,
	SchedulerRuntime,
	scheduling_create_scheduler,
)
from .interfaces import ActivationTriggerPort, PollSchedulerPort
from .poll_scheduler import PollScheduler

__all__ = [
	"APSchedulerActivationTrigger",
	"ActivationTriggerPort",
	"PollScheduler",
	"PollSchedulerPort",
	"SchedulerRuntime",
	"scheduling_create_scheduler",
]
