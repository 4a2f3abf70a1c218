"""
Configuration for sycf copy jobs.
"""

import argparse
from dataclasses import dataclass

# Constants
BUFFER_SIZE = 1024 * 1024  # 1MB
PROGRESS_BYTES = 4 * 1024 * 1024  # 4MB
PROGRESS_INTERVAL = 0.15  # seconds
TOOL_NAME = "sycf"
ERROR_LOG_NAME = f"{TOOL_NAME}_errors.log"
PROBE_FILE_NAME = f".{TOOL_NAME}_write_test.tmp"


@dataclass
class CopyConfig:
    """
    Tunables for a copy job.

    Attributes
    ----------
    buffer_size : int, default=1MB
        Chunk size used when streaming a file
    progress_bytes : int, default=4MB
        Emit progress once this many new bytes have been written
    progress_interval : float, default=0.15
        Emit progress once this many seconds have passed
    error_log_name : str, default="sycf_errors.log"
        File name of the failure log written at the destination root
    """

    buffer_size: int = BUFFER_SIZE
    progress_bytes: int = PROGRESS_BYTES
    progress_interval: float = PROGRESS_INTERVAL
    error_log_name: str = ERROR_LOG_NAME

    def __post_init__(self):
        """Validate configuration."""
        if self.buffer_size <= 0:
            raise ValueError(f"Buffer size must be positive, got {self.buffer_size}")
        if self.progress_bytes <= 0:
            raise ValueError(
                f"Progress byte threshold must be positive, got {self.progress_bytes}"
            )
        if self.progress_interval < 0:
            raise ValueError(
                f"Progress interval must not be negative, got {self.progress_interval}"
            )
        if not self.error_log_name:
            raise ValueError("Error log name must not be empty")

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "CopyConfig":
        """Create config from command-line arguments."""
        return cls(
            buffer_size=args.buffer_size,
            progress_interval=args.progress_interval,
        )
