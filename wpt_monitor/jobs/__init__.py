"""Job layer package for workflow orchestration boundaries."""

from .errors import CycleAbortError
from .interfaces import PollCycleResult, RejectedTarget, SubmissionFailure, SubmissionOutcome
from .job_submitter import JobSubmitter
from .poll_cycle import PollCycleRunner

__all__ = [
	"CycleAbortError",
	"JobSubmitter",
	"PollCycleResult",
	"PollCycleRunner",
	"RejectedTarget",
	"SubmissionFailure",
	"SubmissionOutcome",
]
