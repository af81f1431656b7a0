"""Text blobs on the local filesystem, keyed by path."""

from __future__ import annotations
import os
import tempfile
from pathlib import Path
from typing import Optional, Union


class FileBlobStore:

    def __init__(self, root: Union[str, Path, None] = None):
        self.root = Path(root) if root is not None else Path.cwd()

    def _path(self, key: str) -> Path:
        path = Path(key)
        return path if path.is_absolute() else self.root / path

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def read(self, key: str) -> Optional[str]:
        """Blob contents, or None when no blob is stored under key."""
        path = self._path(key)
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, text: str):
        """Replace the blob atomically so readers never see a partial file."""
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(text)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
