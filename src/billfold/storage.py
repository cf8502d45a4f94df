"""JSON document storage rooted at a data directory.

Layout::

    <base>/entities/bills.json
    <base>/entities/incomes.json
    <base>/entities/payment-sources.json
    <base>/months/2025-01.json
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from billfold.errors import StorageError

logger = logging.getLogger("billfold.storage")


class JsonStore:
    """Reads and writes JSON documents addressed by paths relative to *base*.

    Writes to the same document are serialised and land atomically
    (temp file + ``os.replace``).
    """

    def __init__(self, base: str | Path) -> None:
        self.base = Path(base)
        self.entities_dir = self.base / "entities"
        self.months_dir = self.base / "months"
        self._locks: dict[Path, asyncio.Lock] = {}

    def ensure_layout(self) -> None:
        for directory in (self.entities_dir, self.months_dir):
            directory.mkdir(parents=True, exist_ok=True)
        logger.info("Storage ready at %s", self.base)

    def _resolve(self, relpath: str) -> Path:
        path = (self.base / relpath).resolve()
        if not path.is_relative_to(self.base.resolve()):
            msg = f"Path escapes the data directory: {relpath}"
            raise StorageError(msg, path=relpath)
        return path

    def _lock(self, path: Path) -> asyncio.Lock:
        lock = self._locks.get(path)
        if lock is None:
            lock = self._locks[path] = asyncio.Lock()
        return lock

    async def read(self, relpath: str) -> Any | None:
        """Return the decoded document, or ``None`` if it does not exist."""
        path = self._resolve(relpath)
        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            msg = f"Failed to read {relpath}: {exc}"
            raise StorageError(msg, path=relpath) from exc
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            msg = f"Corrupt JSON in {relpath}: {exc.msg}"
            raise StorageError(msg, path=relpath) from exc

    async def write(self, relpath: str, data: Any) -> None:
        path = self._resolve(relpath)
        payload = json.dumps(data, indent=2)
        async with self._lock(path):
            try:
                await asyncio.to_thread(_atomic_write, path, payload)
            except OSError as exc:
                msg = f"Failed to write {relpath}: {exc}"
                raise StorageError(msg, path=relpath) from exc
        logger.debug("Wrote %s", relpath)

    async def delete(self, relpath: str) -> bool:
        """Delete a document. Returns ``False`` if it was already gone."""
        path = self._resolve(relpath)
        async with self._lock(path):
            try:
                await asyncio.to_thread(path.unlink)
            except FileNotFoundError:
                return False
            except OSError as exc:
                msg = f"Failed to delete {relpath}: {exc}"
                raise StorageError(msg, path=relpath) from exc
        return True

    async def exists(self, relpath: str) -> bool:
        return await asyncio.to_thread(self._resolve(relpath).is_file)

    async def list_names(self, reldir: str, suffix: str = ".json") -> list[str]:
        """Return sorted file stems in *reldir* that end with *suffix*."""
        directory = self._resolve(reldir)
        if not directory.is_dir():
            return []
        names = await asyncio.to_thread(os.listdir, directory)
        return sorted(name.removesuffix(suffix) for name in names if name.endswith(suffix))


def _atomic_write(path: Path, payload: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(payload)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise
