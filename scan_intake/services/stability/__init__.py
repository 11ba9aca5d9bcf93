from .stability_detector import (
    StabilityDetector,
    StabilityPhase,
    StabilityState,
    sample_file_size,
)

__all__ = [
    "StabilityDetector",
    "StabilityPhase",
    "StabilityState",
    "sample_file_size",
]
