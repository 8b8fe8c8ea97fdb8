"""Filesystem capability used by the extraction engine.

The engine never touches ``os`` or ``pathlib`` directly: it lists, reads, and
probes root-relative POSIX paths through a :class:`FileSystem`. Two adapters
ship here, one over the local disk and one over an in-memory mapping.
"""

from __future__ import annotations

import logging
import os
import posixpath
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Set

from .errors import InputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Entry:
    name: str
    is_dir: bool


class FileSystem(ABC):
    """Abstract capability: every path is relative to the scan root ("" is the root)."""

    root: str

    @abstractmethod
    def list_entries(self, dir_rel: str) -> List[Entry]:
        """Return the entries of *dir_rel* sorted by name, or ``[]`` if unreadable."""
        ...

    @abstractmethod
    def read_text(self, rel_path: str) -> Optional[str]:
        """Return file text, or ``None`` when the file cannot be read."""
        ...

    @abstractmethod
    def is_dir(self, rel_path: str) -> bool:
        ...

    @abstractmethod
    def is_file(self, rel_path: str) -> bool:
        ...


# ===================================================================
# Local disk
# ===================================================================

class LocalFileSystem(FileSystem):
    """Adapter over a real directory tree."""

    def __init__(self, root: Path | str) -> None:
        root_path = Path(root).expanduser()
        try:
            resolved = root_path.resolve()
        except (OSError, RuntimeError):
            raise InputError("Selected path is not a readable directory.")
        if not resolved.is_dir() or not os.access(resolved, os.R_OK | os.X_OK):
            raise InputError("Selected path is not a readable directory.")
        self._root_path = resolved
        self.root = str(resolved)

    def _abs(self, rel_path: str) -> Path:
        return self._root_path / rel_path if rel_path else self._root_path

    def _is_within_root(self, path: Path) -> bool:
        try:
            path.resolve().relative_to(self._root_path)
            return True
        except (ValueError, OSError, RuntimeError):
            return False

    def list_entries(self, dir_rel: str) -> List[Entry]:
        entries: List[Entry] = []
        try:
            with os.scandir(self._abs(dir_rel)) as it:
                for item in it:
                    try:
                        entries.append(Entry(item.name, item.is_dir(follow_symlinks=False)))
                    except OSError:
                        continue
        except OSError as exc:
            logger.debug("Cannot list %s: %s", dir_rel or ".", exc)
            return []
        entries.sort(key=lambda e: e.name)
        return entries

    def read_text(self, rel_path: str) -> Optional[str]:
        try:
            return self._abs(rel_path).read_text(encoding="utf-8", errors="ignore")
        except OSError as exc:
            logger.debug("Cannot read %s: %s", rel_path, exc)
            return None

    def is_dir(self, rel_path: str) -> bool:
        path = self._abs(rel_path)
        try:
            return path.is_dir() and self._is_within_root(path)
        except OSError:
            return False

    def is_file(self, rel_path: str) -> bool:
        path = self._abs(rel_path)
        try:
            return path.is_file() and self._is_within_root(path)
        except OSError:
            return False


# ===================================================================
# In-memory tree
# ===================================================================

class MemoryFileSystem(FileSystem):
    """Adapter over ``{"src/a.ts": "...", ...}``; directories are implied by file paths.

    A value of ``None`` marks a file that exists but cannot be read.
    """

    def __init__(self, files: Mapping[str, Optional[str]], root: str = "memory://") -> None:
        self.root = root
        self._files: Dict[str, Optional[str]] = {}
        self._dirs: Set[str] = {""}
        for raw_path, text in files.items():
            rel = posixpath.normpath(raw_path.strip("/"))
            if rel in (".", "") or rel.startswith("../"):
                continue
            self._files[rel] = text
            parent = posixpath.dirname(rel)
            while parent:
                self._dirs.add(parent)
                parent = posixpath.dirname(parent)

    def list_entries(self, dir_rel: str) -> List[Entry]:
        prefix = f"{dir_rel}/" if dir_rel else ""
        names: Dict[str, bool] = {}
        for path in list(self._files) + list(self._dirs):
            if not path or not path.startswith(prefix):
                continue
            rest = path[len(prefix):]
            if not rest or "/" in rest:
                continue
            names[rest] = path in self._dirs
        return [Entry(name, names[name]) for name in sorted(names)]

    def read_text(self, rel_path: str) -> Optional[str]:
        return self._files.get(rel_path)

    def is_dir(self, rel_path: str) -> bool:
        return rel_path in self._dirs

    def is_file(self, rel_path: str) -> bool:
        return rel_path in self._files
