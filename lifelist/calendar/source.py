"""Whole-document reader/writer for the YAML events file."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import NamedTuple, Optional, Union

from lifelist.core.exceptions import SourceNotFoundError

logger = logging.getLogger(__name__)


class StatSignature(NamedTuple):
    """File identity used to detect changes without reading the file."""

    mtime_ns: int
    size: int
    inode: int


class EventSource:
    """The backing data file.

    Reads and writes always cover the whole document; blocking file I/O runs
    in a worker thread so the event loop stays responsive.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"EventSource({str(self.path)!r})"

    def stat_signature(self) -> Optional[StatSignature]:
        """Current (mtime, size, inode) of the file, or None if it is missing."""
        try:
            st = self.path.stat()
        except FileNotFoundError:
            return None
        return StatSignature(st.st_mtime_ns, st.st_size, st.st_ino)

    def read_text(self) -> str:
        """Read the document synchronously.

        Raises:
            SourceNotFoundError: If the file does not exist
        """
        try:
            return self.path.read_text(encoding="utf-8")
        except (FileNotFoundError, IsADirectoryError) as e:
            raise SourceNotFoundError(str(self.path)) from e

    async def read(self) -> str:
        """Read the document without blocking the event loop."""
        return await asyncio.to_thread(self.read_text)

    def write_text(self, text: str) -> None:
        """Replace the document atomically.

        Writes to a temporary file in the same directory and renames it over
        the original, so readers never see a partial document.

        Raises:
            SourceNotFoundError: If the file no longer exists
        """
        if not self.path.is_file():
            raise SourceNotFoundError(str(self.path))

        tmp_path: Optional[Path] = None
        try:
            # Same directory so the replace stays on one filesystem
            with tempfile.NamedTemporaryFile(
                "w", dir=self.path.parent, delete=False, encoding="utf-8", suffix=".tmp"
            ) as tf:
                tmp_path = Path(tf.name)
                tf.write(text)
                tf.flush()
                os.fsync(tf.fileno())
            shutil.copymode(self.path, tmp_path)
            tmp_path.replace(self.path)
            logger.debug("Wrote %d bytes to %s", len(text), self.path)
        except OSError:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    tmp_path.unlink()
            raise

    async def write(self, text: str) -> None:
        """Replace the document without blocking the event loop."""
        await asyncio.to_thread(self.write_text, text)
