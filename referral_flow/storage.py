"""Key-value blob storage for the persisted contact list.

``FileStorage`` keeps one file per key in a directory (the local-file
counterpart of browser local storage). ``MemoryStorage`` keeps blobs in a
dict and is used for tests and dry runs.
"""
from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol, Union


class BlobStorage(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, blob: str) -> None: ...


class MemoryStorage:
    """Dict-backed storage; contents live as long as the object."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._blobs: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._blobs.get(key)

    def set(self, key: str, blob: str) -> None:
        self._blobs[key] = blob


class FileStorage:
    """One UTF-8 text file per key inside ``directory``."""

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self.directory / f"{safe_key}.blob"

    def get(self, key: str) -> Optional[str]:
        filepath = self._path(key)
        if not filepath.exists():
            return None
        return filepath.read_text(encoding="utf-8")

    def set(self, key: str, blob: str) -> None:
        """Write ``blob`` atomically: temp file in the same directory, then replace."""
        self.directory.mkdir(parents=True, exist_ok=True)
        filepath = self._path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".tmp-", suffix=".blob")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(blob)
            os.replace(tmp_name, filepath)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
