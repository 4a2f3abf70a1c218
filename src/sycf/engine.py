"""
Copy engine: job state, tree orchestration and the public entry points.

Architecture:
- The engine never touches stdout; progress goes to a callback, outcomes
  come back as ``CopyOutcome``
- One job runs on one worker, files are copied one after another
- Per-file failures are collected, never fatal to the tree copy
- Cancellation is a terminal state of its own, not an error
"""

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .config import CopyConfig
from .copier import StreamCopier
from .paths import probe_writable
from .progress import ProgressCallback, ProgressThrottle
from .scanner import initial_copied_estimate, list_tree, plan_file, total_size


# ============================================================================
# Data Models
# ============================================================================


class JobState(Enum):
    """Lifecycle of a copy job."""

    NOT_STARTED = "not_started"
    SCANNING = "scanning"
    COPYING = "copying"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    CANCELLED = "cancelled"
    FAILED = "failed"


class CopyStatus(Enum):
    """
    Outcome reported to the caller.

    Attributes
    ----------
    COMPLETED : str
        Everything copied
    COMPLETED_WITH_ERRORS : str
        Tree copied, some files failed (see error log)
    CANCELLED : str
        Stopped on request
    SOURCE_NOT_FOUND : str
        Source is neither a file nor a directory
    DESTINATION_NOT_WRITABLE : str
        Writability probe failed
    FAILED : str
        Anything else
    """

    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    CANCELLED = "cancelled"
    SOURCE_NOT_FOUND = "source_not_found"
    DESTINATION_NOT_WRITABLE = "destination_not_writable"
    FAILED = "failed"


@dataclass(frozen=True)
class CopyRequest:
    """
    What to copy.

    Attributes
    ----------
    source_path : Path
        Source file or directory
    destination_path : Path
        Destination directory
    resume : bool, default=False
        Reuse bytes already present at the destination
    """

    source_path: Path
    destination_path: Path
    resume: bool = False


@dataclass
class CopyJob:
    """
    Transient state of one running copy.

    Attributes
    ----------
    total_bytes : int
        Job size, computed once before copying
    bytes_done : int
        Bytes accounted for so far (never decreases)
    errors : list[tuple[str, str]]
        (relative_path, message) for every failed entry, in order
    cancel_event : threading.Event
        Set by the caller to stop the job
    state : JobState
        Current lifecycle state
    """

    total_bytes: int = 0
    bytes_done: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)
    cancel_event: threading.Event = field(default_factory=threading.Event)
    state: JobState = JobState.NOT_STARTED

    def advance(self, nbytes: int) -> None:
        if nbytes > 0:
            self.bytes_done += nbytes

    def check_cancelled(self) -> None:
        """
        Raises
        ------
        InterruptedError
            If cancellation was requested
        """
        if self.cancel_event.is_set():
            raise InterruptedError("Copy operation interrupted")


@dataclass
class CopyOutcome:
    """
    Final result of a copy job.

    Attributes
    ----------
    status : CopyStatus
        Terminal status
    message : str
        Short human-readable status line
    bytes_done : int, default=0
        Bytes accounted for when the job ended
    total_bytes : int, default=0
        Job size
    errors : list[tuple[str, str]], default=[]
        Per-entry failures
    log_path : Path | None, default=None
        Error log written for this job, if any
    """

    status: CopyStatus
    message: str
    bytes_done: int = 0
    total_bytes: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)
    log_path: Path | None = None

    @property
    def success(self) -> bool:
        return self.status in (CopyStatus.COMPLETED, CopyStatus.COMPLETED_WITH_ERRORS)

    def __str__(self) -> str:
        return self.message


MSG_COMPLETED = "Copy complete"
MSG_CANCELLED = "Copy cancelled"
MSG_SOURCE_NOT_FOUND = "Source path does not exist"


# ============================================================================
# Tree Copy Orchestrator
# ============================================================================


class CopyOrchestrator:
    """
    Run one copy job: scan, mirror directories, stream files, summarize.

    Parameters
    ----------
    request : CopyRequest
        What to copy
    progress : ProgressCallback | None, default=None
        Receives fractions in [0.0, 1.0], called on the worker
    cancel_event : threading.Event | None, default=None
        Set by the caller to cancel (a private event is used if None)
    config : CopyConfig | None, default=None
        Buffer size and progress knobs
    """

    def __init__(
        self,
        request: CopyRequest,
        progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
        config: CopyConfig | None = None,
    ):
        self.request = request
        self.progress = progress
        self.config = config or CopyConfig()
        self.copier = StreamCopier(self.config)
        self.job = CopyJob(cancel_event=cancel_event or threading.Event())

    async def run(self) -> CopyOutcome:
        """
        Execute the job.

        Returns
        -------
        CopyOutcome
            Terminal outcome; exceptions never escape
        """
        source = Path(self.request.source_path)
        dest = Path(self.request.destination_path)
        logging.info(
            f"Copying {source} to {dest}" + (" (resume)" if self.request.resume else "")
        )

        try:
            if source.is_file():
                outcome = await self._copy_single(source, dest)
            elif source.is_dir():
                outcome = await self._copy_tree(source, dest)
            else:
                self.job.state = JobState.FAILED
                outcome = self._outcome(CopyStatus.SOURCE_NOT_FOUND, MSG_SOURCE_NOT_FOUND)
        except InterruptedError:
            self.job.state = JobState.CANCELLED
            outcome = self._outcome(CopyStatus.CANCELLED, MSG_CANCELLED)
        except Exception as e:
            self.job.state = JobState.FAILED
            outcome = self._outcome(CopyStatus.FAILED, f"Copy failed: {e}")

        logging.info(outcome.message)
        return outcome

    def _outcome(self, status: CopyStatus, message: str, log_path=None) -> CopyOutcome:
        return CopyOutcome(
            status=status,
            message=message,
            bytes_done=self.job.bytes_done,
            total_bytes=self.job.total_bytes,
            errors=list(self.job.errors),
            log_path=log_path,
        )

    def _throttle(self) -> ProgressThrottle:
        return ProgressThrottle(
            self.progress,
            self.job.total_bytes,
            bytes_threshold=self.config.progress_bytes,
            interval=self.config.progress_interval,
        )

    async def _copy_single(self, source: Path, dest: Path) -> CopyOutcome:
        """Copy a single file into the destination directory."""
        self.job.state = JobState.COPYING
        target = dest / source.name
        try:
            dest.mkdir(parents=True, exist_ok=True)
            plan = plan_file(source, target, self.request.resume)
            self.job.total_bytes = plan.source_length
            self.job.bytes_done = plan.resume_offset
            throttle = self._throttle()
            throttle.start(self.job.bytes_done)

            if plan.complete:
                logging.info(f"{target} already complete, skipping")
            else:
                self.job.advance(
                    await self.copier.copy_file(
                        source,
                        target,
                        throttle,
                        bytes_done_before=self.job.bytes_done,
                        resume_offset=plan.resume_offset,
                        cancel_event=self.job.cancel_event,
                    )
                )
        except InterruptedError:
            raise
        except Exception as e:
            self.job.state = JobState.FAILED
            return self._outcome(CopyStatus.FAILED, f"Copy failed: {e}")

        throttle.finish()
        self.job.state = JobState.COMPLETED
        return self._outcome(CopyStatus.COMPLETED, MSG_COMPLETED)

    async def _copy_tree(self, source: Path, dest: Path) -> CopyOutcome:
        """Mirror a directory tree into the destination directory."""
        job = self.job
        job.state = JobState.SCANNING
        job.total_bytes = total_size(source)
        throttle = self._throttle()
        if self.request.resume:
            job.bytes_done = initial_copied_estimate(source, dest)
            throttle.emit(job.bytes_done)
        logging.info(
            f"Total {job.total_bytes:,} bytes, {job.bytes_done:,} already present"
        )

        job.state = JobState.COPYING
        dirs, files = list_tree(source)
        for directory in dirs:
            rel = directory.relative_to(source)
            try:
                (dest / rel).mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logging.error(f"✗ Cannot create directory {rel}: {e}")
                job.errors.append((str(rel), str(e)))

        throttle.start(job.bytes_done)
        for source_file in files:
            job.check_cancelled()
            rel = source_file.relative_to(source)
            target = dest / rel
            try:
                await self._copy_tree_file(source_file, target, throttle)
            except InterruptedError:
                raise
            except Exception as e:
                logging.error(f"✗ Error copying {rel}: {e}")
                job.errors.append((str(rel), str(e)))

        throttle.finish()

        if not job.errors:
            job.state = JobState.COMPLETED
            return self._outcome(CopyStatus.COMPLETED, MSG_COMPLETED)

        job.state = JobState.COMPLETED_WITH_ERRORS
        log_path = dest / self.config.error_log_name
        try:
            write_error_log(log_path, job.errors)
        except OSError as e:
            logging.error(f"Could not write error log {log_path}: {e}")
            log_path = None
        return self._outcome(
            CopyStatus.COMPLETED_WITH_ERRORS,
            f"Completed with {len(job.errors)} failure(s), "
            f"see {self.config.error_log_name}",
            log_path=log_path,
        )

    async def _copy_tree_file(
        self, source_file: Path, target: Path, throttle: ProgressThrottle
    ) -> None:
        job = self.job
        target.parent.mkdir(parents=True, exist_ok=True)
        plan = plan_file(source_file, target, self.request.resume)

        if plan.complete:
            # Only the part not already credited by the initial estimate
            job.advance(plan.source_length - plan.resume_offset)
            throttle.update(job.bytes_done)
            logging.debug(f"{target} already complete, skipping")
            return

        job.advance(
            await self.copier.copy_file(
                source_file,
                target,
                throttle,
                bytes_done_before=job.bytes_done,
                resume_offset=plan.resume_offset,
                cancel_event=job.cancel_event,
            )
        )


def write_error_log(log_path: Path, errors: list[tuple[str, str]]) -> None:
    """
    Append ``<relative_path>: <message>`` lines to the error log.

    Raises
    ------
    OSError
        If the log cannot be written
    """
    with open(log_path, "a", encoding="utf-8", errors="backslashreplace") as f:
        for rel, message in errors:
            f.write(f"{rel}: {message}\n")


# ============================================================================
# Entry Points
# ============================================================================


def run_copy(
    request: CopyRequest,
    progress: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
    config: CopyConfig | None = None,
) -> CopyOutcome:
    """
    Probe the destination, then run a copy job to completion.

    Blocks the calling thread; run it on a worker (see ``CopyWorker``) and
    cancel by setting ``cancel_event`` from another thread.

    Parameters
    ----------
    request : CopyRequest
        What to copy
    progress : ProgressCallback | None, default=None
        Receives fractions in [0.0, 1.0]
    cancel_event : threading.Event | None, default=None
        Cancellation token
    config : CopyConfig | None, default=None
        Buffer size and progress knobs

    Returns
    -------
    CopyOutcome
        Terminal outcome
    """
    probe = probe_writable(request.destination_path)
    if not probe:
        return CopyOutcome(status=CopyStatus.DESTINATION_NOT_WRITABLE, message=probe.reason)

    orchestrator = CopyOrchestrator(request, progress, cancel_event, config)
    return asyncio.run(orchestrator.run())


class CopyWorker:
    """
    Run a single copy job on a dedicated thread.

    Parameters
    ----------
    request : CopyRequest
        What to copy
    progress : ProgressCallback | None, default=None
        Called on the worker thread; marshal to a UI yourself
    config : CopyConfig | None, default=None
        Buffer size and progress knobs
    """

    def __init__(
        self,
        request: CopyRequest,
        progress: ProgressCallback | None = None,
        config: CopyConfig | None = None,
    ):
        self.request = request
        self.progress = progress
        self.config = config
        self.cancel_event = threading.Event()
        self.outcome: CopyOutcome | None = None
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """
        Start the job.

        Raises
        ------
        RuntimeError
            If this worker already ran or is running
        """
        if self._thread is not None:
            raise RuntimeError("Copy job already started")
        self._thread = threading.Thread(target=self._run, name="sycf-copy", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        try:
            self.outcome = run_copy(
                self.request, self.progress, self.cancel_event, self.config
            )
        except Exception as e:
            logging.error(f"Copy worker crashed: {e}")
            self.outcome = CopyOutcome(status=CopyStatus.FAILED, message=f"Copy failed: {e}")

    def cancel(self) -> None:
        """Request cancellation; takes effect before the next chunk."""
        self.cancel_event.set()

    def join(self, timeout: float | None = None) -> CopyOutcome | None:
        if self._thread is not None:
            self._thread.join(timeout)
        return self.outcome
