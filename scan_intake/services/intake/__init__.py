from .failure_routing import route_to_failed
from .intake_dispatcher import IntakeDispatcher
from .intake_processor import IntakeProcessor
from .job_models import IntakeJob

__all__ = [
    "IntakeDispatcher",
    "IntakeJob",
    "IntakeProcessor",
    "route_to_failed",
]
