"""
sycf: copy files and directory trees with progress, cancellation and resume.

The engine is UI-agnostic: callers probe the destination, start a job,
receive progress fractions through a callback, cancel through an event and
get a short status message back.
"""

from .config import CopyConfig
from .copier import StreamCopier
from .engine import (
    CopyJob,
    CopyOrchestrator,
    CopyOutcome,
    CopyRequest,
    CopyStatus,
    CopyWorker,
    JobState,
    run_copy,
)
from .cli import main
from .paths import ProbeResult, normalize_path, probe_writable
from .progress import ProgressSample, ProgressThrottle
from .scanner import (
    FileCopyPlan,
    initial_copied_estimate,
    plan_file,
    resume_offset,
    total_size,
)

__version__ = "1.0.0"
__author__ = "sycf project"
__description__ = "Copy files and directory trees with progress and resume"

__all__ = [
    "CopyConfig",
    "CopyJob",
    "CopyOrchestrator",
    "CopyOutcome",
    "CopyRequest",
    "CopyStatus",
    "CopyWorker",
    "FileCopyPlan",
    "JobState",
    "ProbeResult",
    "ProgressSample",
    "ProgressThrottle",
    "StreamCopier",
    "initial_copied_estimate",
    "main",
    "normalize_path",
    "plan_file",
    "probe_writable",
    "resume_offset",
    "run_copy",
    "total_size",
]
