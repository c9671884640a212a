"""Local file store for uploaded BoQ spreadsheets."""
import os
import logging
from pathlib import Path
from typing import Optional

from boq_pareto.config import UPLOAD_DIR
from boq_pareto.services.errors import StorageError

logger = logging.getLogger("boq-pareto-storage")


class LocalFileStore:
    """
    Stores files under a root directory using relative keys such as
    ``<project_id>/<file_name>``. Keys may not escape the root.
    """

    def __init__(self, root: Optional[str] = None):
        self.root = Path(root or UPLOAD_DIR).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if path != self.root and self.root not in path.parents:
            raise StorageError(f"Storage key escapes upload root: {key}")
        return path

    def upload(self, key: str, data: bytes) -> str:
        path = self._resolve(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "wb") as fh:
                fh.write(data)
        except OSError as exc:
            raise StorageError(f"Could not write {key}: {exc}") from exc
        logger.info(f"Stored {key} ({len(data)} bytes)")
        return key

    def download(self, key: str) -> bytes:
        path = self._resolve(key)
        try:
            with open(path, "rb") as fh:
                return fh.read()
        except OSError as exc:
            raise StorageError(f"Could not read {key}: {exc}") from exc

    def remove(self, key: str) -> None:
        path = self._resolve(key)
        try:
            os.remove(path)
        except OSError as exc:
            raise StorageError(f"Could not remove {key}: {exc}") from exc
        # Drop the per-project directory once it is empty
        parent = path.parent
        if parent == self.root:
            return
        try:
            if not any(parent.iterdir()):
                parent.rmdir()
        except OSError as exc:
            logger.warning(f"Could not clean up directory for {key}: {exc}")
