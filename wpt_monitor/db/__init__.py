"""Database layer package for all SQL and persistence boundaries."""

from .health import SQLAlchemyDatabaseHealthService
from .interfaces import (
	CycleErrorRow,
	DatabaseHealthPort,
	DuplicateJobKeyError,
	JobStoreCapacityError,
	JobStorePort,
	MetricResultRow,
	ResultLogReaderPort,
	ResultSinkPort,
	SchedulerStatePort,
	ThresholdRepositoryPort,
	ThresholdSourcePort,
)
from .job_store import SQLAlchemyJobStoreService
from .result_log import SQLAlchemyResultLogService
from .scheduler_state import SQLAlchemySchedulerStateService
from .session import db_create_engine
from .thresholds import SQLAlchemyThresholdService

__all__ = [
	"CycleErrorRow",
	"DatabaseHealthPort",
	"DuplicateJobKeyError",
	"JobStoreCapacityError",
	"JobStorePort",
	"MetricResultRow",
	"ResultLogReaderPort",
	"ResultSinkPort",
	"SQLAlchemyDatabaseHealthService",
	"SQLAlchemyJobStoreService",
	"SQLAlchemyResultLogService",
	"SQLAlchemySchedulerStateService",
	"SQLAlchemyThresholdService",
	"SchedulerStatePort",
	"ThresholdRepositoryPort",
	"ThresholdSourcePort",
	"db_create_engine",
]
