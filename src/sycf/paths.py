"""
Path handling: extended-length normalization and destination probing.
"""

import logging
import ntpath
import os
from dataclasses import dataclass
from pathlib import Path

from .config import PROBE_FILE_NAME

IS_WINDOWS = os.name == "nt"

EXTENDED_PREFIX = "\\\\?\\"
UNC_PREFIX = "\\\\"


def normalize_path(path: str | Path, windows: bool = IS_WINDOWS) -> str:
    """
    Rewrite a path so deep or long paths survive the platform's I/O calls.

    On Windows, absolute paths are given the ``\\\\?\\`` extended-length
    prefix (``\\\\?\\UNC\\`` for network shares). Everywhere else the path
    is returned as is.

    Parameters
    ----------
    path : str | Path
        Path to normalize
    windows : bool, default=IS_WINDOWS
        Apply the Windows rules

    Returns
    -------
    str
        Normalized path
    """
    p = os.fspath(path)
    if not windows:
        return p
    if p.startswith(EXTENDED_PREFIX):
        return p
    if p.startswith(UNC_PREFIX):
        return EXTENDED_PREFIX + "UNC" + p[1:]
    if not ntpath.isabs(p):
        return p
    return EXTENDED_PREFIX + p


@dataclass
class ProbeResult:
    """
    Outcome of a writability probe.

    Attributes
    ----------
    ok : bool
        Whether the destination accepted a test write
    reason : str, default=""
        Human-readable failure reason
    """

    ok: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.ok


def probe_writable(destination: Path) -> ProbeResult:
    """
    Make sure the destination exists and accepts writes.

    Creates the destination directory (with parents), writes a small
    sentinel file and removes it again.

    Parameters
    ----------
    destination : Path
        Destination directory

    Returns
    -------
    ProbeResult
        ``ok`` is False with a reason if any step failed
    """
    destination = Path(destination)
    try:
        destination.mkdir(parents=True, exist_ok=True)
        test_file = destination / PROBE_FILE_NAME
        test_file.write_bytes(b"\x01\x02\x03")
        test_file.unlink()
    except OSError as e:
        logging.error(f"Destination {destination} is not writable: {e}")
        return ProbeResult(ok=False, reason=f"Destination not writable: {e}")

    logging.debug(f"Destination {destination} is writable")
    return ProbeResult(ok=True)
