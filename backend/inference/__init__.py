from .candidates import (
    ModelCandidate,
    camera_candidates,
    upload_candidates,
)
from .fallback import is_transient_error, run_with_fallback
from .vision_client import VisionClient

__all__ = [
    "ModelCandidate",
    "camera_candidates",
    "upload_candidates",
    "is_transient_error",
    "run_with_fallback",
    "VisionClient",
]
