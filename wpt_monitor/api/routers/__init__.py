"""API router package for endpoint composition."""

from .health import api_create_health_router
from .jobs import api_create_jobs_router
from .results import api_create_results_router
from .submissions import api_create_submissions_router
from .thresholds import api_create_thresholds_router

__all__ = [
	"api_create_health_router",
	"api_create_jobs_router",
	"api_create_results_router",
	"api_create_submissions_router",
	"api_create_thresholds_router",
]
