"""Domain models and pure rules used across application layer boundaries."""

from .metric_schema import METRIC_COUNT, METRIC_SCHEMA, MetricField, domain_extract_metrics
from .models import (
	HealthStatus,
	MetricRecord,
	PendingJob,
	PollCompleted,
	PollMalformed,
	PollPending,
	PollResult,
	SubmitAccepted,
	SubmitRejected,
	SubmitResult,
	TargetSpec,
	ThresholdSet,
	Violation,
)
from .target_validation import TargetValidationError, domain_target_require_valid, domain_target_url_is_valid
from .thresholds import ThresholdSchemaMismatchError, domain_evaluate_thresholds
from .timeline import domain_build_cycle_event

__all__ = [
	"HealthStatus",
	"METRIC_COUNT",
	"METRIC_SCHEMA",
	"MetricField",
	"MetricRecord",
	"PendingJob",
	"PollCompleted",
	"PollMalformed",
	"PollPending",
	"PollResult",
	"SubmitAccepted",
	"SubmitRejected",
	"SubmitResult",
	"TargetSpec",
	"TargetValidationError",
	"ThresholdSchemaMismatchError",
	"ThresholdSet",
	"Violation",
	"domain_build_cycle_event",
	"domain_evaluate_thresholds",
	"domain_extract_metrics",
	"domain_target_require_valid",
	"domain_target_url_is_valid",
]
