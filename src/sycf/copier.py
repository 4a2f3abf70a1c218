"""
Per-file streamed copy with resume, throttled progress and cancellation.
"""

import asyncio
import logging
import os
import shutil
import threading
from pathlib import Path

import aiofiles
import aiofiles.os

from .config import CopyConfig
from .paths import normalize_path
from .progress import ProgressThrottle


class StreamCopier:
    """
    Copy one file in chunks, optionally continuing a partial destination.

    If streaming fails with an I/O error the file is copied again in one go
    with ``shutil.copyfile``; both paths return the number of bytes newly
    accounted for.

    Parameters
    ----------
    config : CopyConfig | None, default=None
        Buffer size and progress knobs (defaults if None)
    """

    def __init__(self, config: CopyConfig | None = None):
        self.config = config or CopyConfig()

    async def copy_file(
        self,
        source: Path,
        dest: Path,
        throttle: ProgressThrottle,
        bytes_done_before: int = 0,
        resume_offset: int = 0,
        cancel_event: threading.Event | None = None,
    ) -> int:
        """
        Copy ``source`` to ``dest``.

        Parameters
        ----------
        source : Path
            Source file path
        dest : Path
            Destination file path
        throttle : ProgressThrottle
            Job-wide progress emitter (knows the job's total bytes)
        bytes_done_before : int, default=0
            Bytes accounted for by the job before this file, including
            ``resume_offset``
        resume_offset : int, default=0
            Bytes of the destination already credited to the job
        cancel_event : threading.Event | None, default=None
            Checked before every chunk

        Returns
        -------
        int
            Bytes newly accounted for by this file

        Raises
        ------
        InterruptedError
            If ``cancel_event`` is set during the copy
        OSError
            If the whole-file fallback fails as well
        """
        src_path = normalize_path(source)
        dst_path = normalize_path(dest)

        try:
            return await self._stream(
                src_path, dst_path, throttle, bytes_done_before, resume_offset, cancel_event
            )
        except InterruptedError:
            raise
        except OSError as e:
            logging.warning(
                f"Streaming {source} failed ({e}), falling back to whole-file copy"
            )

        await asyncio.to_thread(shutil.copyfile, src_path, dst_path)
        source_length = (await aiofiles.os.stat(src_path)).st_size
        copied = max(source_length - resume_offset, 0)
        throttle.emit(bytes_done_before + copied)
        return copied

    async def _stream(
        self,
        src_path: str,
        dst_path: str,
        throttle: ProgressThrottle,
        bytes_done_before: int,
        resume_offset: int,
        cancel_event: threading.Event | None,
    ) -> int:
        """
        Streaming copy; see ``copy_file``.

        Raises
        ------
        OSError
            On any read/write error (triggers the fallback)
        InterruptedError
            If the copy is cancelled
        """
        async with aiofiles.open(src_path, "rb") as f_source:
            source_length = (await aiofiles.os.stat(src_path)).st_size
            dest_length = 0
            if await aiofiles.os.path.exists(dst_path):
                dest_length = (await aiofiles.os.stat(dst_path)).st_size

            offset = resume_offset
            if offset > 0 and dest_length >= offset:
                mode = "r+b"
            else:
                mode = "wb"
                offset = 0

            async with aiofiles.open(dst_path, mode) as f_dest:
                if mode == "r+b" and dest_length > source_length:
                    # Longer than its source: not a partial copy of it
                    logging.info(
                        f"Discarding {dst_path}: {dest_length} bytes "
                        f"but source has {source_length}"
                    )
                    await f_dest.truncate(0)
                    offset = 0

                await f_source.seek(offset)
                await f_dest.seek(offset)
                if offset:
                    logging.debug(f"Resuming {src_path} at byte {offset:,}")

                position = offset
                while True:
                    if cancel_event is not None and cancel_event.is_set():
                        raise InterruptedError("Copy operation interrupted")

                    chunk = await f_source.read(self.config.buffer_size)
                    if not chunk:
                        break

                    await f_dest.write(chunk)
                    position += len(chunk)
                    throttle.update(bytes_done_before + max(position - resume_offset, 0))

                await f_dest.flush()
                await asyncio.to_thread(os.fsync, f_dest.fileno())

        copied = max(position - resume_offset, 0)
        throttle.emit(bytes_done_before + copied)
        return copied
