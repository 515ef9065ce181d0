from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


class LocalDownloadSaver:
    """Saves downloaded documents into a directory on the console host.

    The payload is first written to a temporary file beside the target and then
    moved into place, so a reader never sees a half-written document. The
    temporary file is always released, whether or not the save succeeds.
    """

    def __init__(self, download_dir: Path | str) -> None:
        self._download_dir = Path(download_dir)

    def save(self, payload: bytes, filename: str) -> Path:
        self._download_dir.mkdir(parents=True, exist_ok=True)
        target = self._download_dir / Path(filename).name
        handle = tempfile.NamedTemporaryFile(
            dir=self._download_dir, prefix=".download-", suffix=".part", delete=False
        )
        temp_path = Path(handle.name)
        try:
            with handle:
                handle.write(payload)
            os.replace(temp_path, target)
        finally:
            if temp_path.exists():
                temp_path.unlink()
        logger.info("Saved %s bytes to %s", len(payload), target)
        return target

    def purge(self) -> None:
        """Remove the directory and every document saved into it."""

        if self._download_dir.exists():
            shutil.rmtree(self._download_dir)
            logger.info("Removed download directory %s", self._download_dir)
