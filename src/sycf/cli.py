#!/usr/bin/env python3
"""
sycf command-line front-end.

Drives the copy engine the way a GUI would: probe the destination, run the
job on a worker thread, render progress, cancel on Ctrl+C and print the
final status line.
"""

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path

from .config import BUFFER_SIZE, PROGRESS_INTERVAL, CopyConfig
from .engine import CopyRequest, CopyStatus, CopyWorker
from .paths import probe_writable
from .progress import ProgressSample

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CANCELLED = 130


def setup_logging(verbose: bool = False) -> None:
    """
    Configure logging for the application.

    Parameters
    ----------
    verbose : bool
        Enable verbose logging
    """
    log_level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=log_level,
        format="%(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns
    -------
    argparse.Namespace
        Parsed command line arguments
    """
    parser = argparse.ArgumentParser(
        prog="sycf",
        description="Copy a file or directory tree with progress and resume",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sycf /media/card /backup/card            # Copy a whole directory
  sycf --resume /media/card /backup/card   # Continue an interrupted copy
  sycf clip.mov /backup                    # Copy a single file into /backup
        """,
    )

    parser.add_argument(
        "source",
        type=Path,
        help="Source file or directory to copy",
    )

    parser.add_argument(
        "destination",
        type=Path,
        help="Destination directory",
    )

    parser.add_argument(
        "-r",
        "--resume",
        action="store_true",
        help="Reuse bytes already present at the destination",
    )

    parser.add_argument(
        "--buffer-size",
        type=int,
        default=BUFFER_SIZE,
        help=f"Copy buffer size in bytes (default: {BUFFER_SIZE})",
    )

    parser.add_argument(
        "--progress-interval",
        type=float,
        default=PROGRESS_INTERVAL,
        help=f"Seconds between progress updates (default: {PROGRESS_INTERVAL})",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args(argv)


class ProgressPrinter:
    """Render progress samples on a single terminal line."""

    def __init__(self, stream=None):
        self.stream = stream or sys.stdout
        self.lock = threading.Lock()
        self.last_text = ""

    def __call__(self, fraction: float) -> None:
        text = ProgressSample(fraction).percent_text
        with self.lock:
            if text == self.last_text:
                return
            self.last_text = text
            self.stream.write(f"\rCopying: {text}".ljust(40))
            self.stream.flush()

    def close(self) -> None:
        if self.last_text:
            self.stream.write("\n")
            self.stream.flush()


def exit_code(status: CopyStatus) -> int:
    if status == CopyStatus.COMPLETED:
        return EXIT_OK
    if status == CopyStatus.CANCELLED:
        return EXIT_CANCELLED
    return EXIT_FAILED


def main(argv: list[str] | None = None) -> int:
    """
    CLI entry point.

    Returns
    -------
    int
        Exit code: 0 for success, 1 for failure, 130 for cancellation
    """
    args = parse_arguments(argv)
    setup_logging(args.verbose)

    try:
        config = CopyConfig.from_args(args)
    except ValueError as e:
        print(f"Error: {e}")
        return EXIT_FAILED

    # Fail before starting the worker if the destination is unusable
    probe = probe_writable(args.destination)
    if not probe:
        print(probe.reason)
        return EXIT_FAILED

    printer = ProgressPrinter()
    worker = CopyWorker(
        CopyRequest(args.source, args.destination, resume=args.resume),
        progress=printer,
        config=config,
    )

    def handle_interrupt(signum, frame):
        if not worker.cancel_event.is_set():
            worker.cancel()
            print("\n\nCancelling copy...", file=sys.stderr)

    previous_handler = signal.signal(signal.SIGINT, handle_interrupt)
    try:
        worker.start()
        # Poll so the main thread stays responsive to Ctrl+C
        while worker.running:
            worker.join(timeout=0.2)
    finally:
        signal.signal(signal.SIGINT, previous_handler)
        printer.close()

    outcome = worker.outcome
    if outcome is None:
        print("Copy failed: worker did not report an outcome")
        return EXIT_FAILED

    print(outcome.message)
    return exit_code(outcome.status)


if __name__ == "__main__":
    sys.exit(main())
