"""Depth-first traversal producing the candidate files for one extraction pass."""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .config import ALWAYS_IGNORE, IGNORE_FILE_NAME, SUPPORTED_EXTENSIONS
from .errors import CapacityError
from .filesystem import FileSystem
from .ignore import IgnoreRules, default_patterns, patterns_from_ignore_file

logger = logging.getLogger(__name__)


def is_supported_file(rel_path: str) -> bool:
    return posixpath.splitext(rel_path)[1] in SUPPORTED_EXTENSIONS


@dataclass
class WalkResult:
    files: List[str] = field(default_factory=list)
    ignored_files: List[str] = field(default_factory=list)
    ignore_patterns: Dict[str, List[str]] = field(default_factory=dict)
    total_files: int = 0
    ignored_count: int = 0


def walk_tree(
    fs: FileSystem,
    max_files: int,
    always_ignore: Iterable[str] = ALWAYS_IGNORE,
) -> WalkResult:
    """Walk *fs* from its root, applying layered ignore files as they are found.

    Args:
        fs: Filesystem capability rooted at the scan root.
        max_files: Hard ceiling on non-ignored files; exceeding it aborts the walk.
        always_ignore: Built-in patterns applied at every depth.

    Returns:
        WalkResult with supported files queued for extraction (in traversal
        order), ignored supported files, and the running counters.

    Raises:
        CapacityError: as soon as more than *max_files* files have been seen.
    """
    result = WalkResult()
    rules = IgnoreRules(default_patterns(always_ignore))

    def _walk(dir_rel: str, inherited: IgnoreRules) -> None:
        entries = fs.list_entries(dir_rel)

        current = inherited
        if any(e.name == IGNORE_FILE_NAME and not e.is_dir for e in entries):
            ignore_path = posixpath.join(dir_rel, IGNORE_FILE_NAME) if dir_rel else IGNORE_FILE_NAME
            content = fs.read_text(ignore_path)
            if content is None:
                logger.warning("Unreadable ignore file %s treated as absent", ignore_path)
            else:
                extra = patterns_from_ignore_file(dir_rel, content)
                if extra:
                    result.ignore_patterns[dir_rel] = extra
                    current = inherited.extend(extra)

        for entry in entries:
            rel_path = posixpath.join(dir_rel, entry.name) if dir_rel else entry.name

            # Ancestors were already checked on the way down.
            if current.ignores(rel_path, is_dir=entry.is_dir, check_parents=False):
                result.ignored_count += 1
                if not entry.is_dir and is_supported_file(rel_path):
                    result.ignored_files.append(rel_path)
                continue

            if entry.is_dir:
                _walk(rel_path, current)
                continue

            result.total_files += 1
            if result.total_files > max_files:
                logger.warning("Scan of %s aborted after %d files", fs.root, max_files)
                raise CapacityError(max_files)

            if is_supported_file(rel_path):
                result.files.append(rel_path)

    _walk("", rules)
    return result
