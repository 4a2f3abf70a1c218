"""
Read-only tree scanning: listing, size accounting and resume planning.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path


def list_tree(root: Path) -> tuple[list[Path], list[Path]]:
    """
    List every directory and file below a root.

    Unreadable directories are skipped silently.

    Parameters
    ----------
    root : Path
        Directory to walk

    Returns
    -------
    tuple[list[Path], list[Path]]
        (directories, files), each sorted
    """
    dirs = []
    files = []
    for dirpath, dirnames, filenames in os.walk(root):
        base = Path(dirpath)
        dirs.extend(base / name for name in dirnames)
        files.extend(base / name for name in filenames)
    return sorted(dirs), sorted(files)


def _file_length(path: Path) -> int:
    return path.stat().st_size


def total_size(root: Path) -> int:
    """
    Sum the size of every file below a root.

    Files that cannot be stat'ed count as zero bytes.

    Parameters
    ----------
    root : Path
        Directory to scan

    Returns
    -------
    int
        Total size in bytes
    """
    size = 0
    _, files = list_tree(root)
    for file in files:
        try:
            size += _file_length(file)
        except OSError as e:
            logging.debug(f"Ignoring {file} while sizing: {e}")
    return size


def initial_copied_estimate(source_root: Path, dest_root: Path) -> int:
    """
    Estimate how many bytes a resumed copy can reuse.

    For each source file with a counterpart at the same relative path under
    the destination, adds ``min(source_length, dest_length)``.

    Parameters
    ----------
    source_root : Path
        Source directory
    dest_root : Path
        Destination directory

    Returns
    -------
    int
        Bytes already present at the destination
    """
    total = 0
    _, files = list_tree(source_root)
    for file in files:
        target = dest_root / file.relative_to(source_root)
        if not target.is_file():
            continue
        try:
            total += min(_file_length(file), _file_length(target))
        except OSError as e:
            logging.debug(f"Ignoring {target} while estimating resume: {e}")
    return total


def resume_offset(source_file: Path, dest_file: Path) -> int:
    """
    Decide how many bytes of an existing destination file can be reused.

    Parameters
    ----------
    source_file : Path
        Source file
    dest_file : Path
        Possibly partial destination file

    Returns
    -------
    int
        0 if there is nothing to reuse (or anything failed),
        the source length if the destination is at least as long,
        otherwise the destination length
    """
    try:
        source_length = _file_length(source_file)
        if not dest_file.is_file():
            return 0
        dest_length = _file_length(dest_file)
    except OSError:
        return 0

    if dest_length <= 0:
        return 0
    if dest_length >= source_length:
        return source_length
    return dest_length


@dataclass
class FileCopyPlan:
    """
    How a single file is going to be copied.

    Attributes
    ----------
    source_file : Path
        Source file path
    dest_file : Path
        Destination file path
    source_length : int
        Size of the source file in bytes
    dest_length : int, default=0
        Size of the existing destination file (0 if missing)
    resume_offset : int, default=0
        Bytes of the destination that are reused
    """

    source_file: Path
    dest_file: Path
    source_length: int
    dest_length: int = 0
    resume_offset: int = 0

    @property
    def complete(self) -> bool:
        """True if the destination already holds the whole file."""
        return self.resume_offset > 0 and self.dest_length == self.source_length

    @property
    def remaining(self) -> int:
        return self.source_length - self.resume_offset


def plan_file(source_file: Path, dest_file: Path, resume: bool) -> FileCopyPlan:
    """
    Build the copy plan for one file.

    Raises
    ------
    OSError
        If the source file cannot be stat'ed
    """
    source_length = _file_length(source_file)
    dest_length = 0
    offset = 0
    if resume:
        offset = resume_offset(source_file, dest_file)
        if offset > 0:
            try:
                dest_length = _file_length(dest_file)
            except OSError:
                offset = 0

    return FileCopyPlan(
        source_file=source_file,
        dest_file=dest_file,
        source_length=source_length,
        dest_length=dest_length,
        resume_offset=min(offset, source_length),
    )
