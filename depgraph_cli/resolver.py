"""Module-path resolution: specifier + importing file -> in-tree file or external."""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from .config import DEFAULT_ALIASES, IMPORT_EXTENSIONS
from .filesystem import FileSystem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    external: bool
    resolved: Optional[str] = None


EXTERNAL = Resolution(external=True)


def normalize_relative(path: str) -> Tuple[str, bool]:
    """Collapse ``.``/``..`` segments of a root-relative path.

    Returns:
        ``(normalized, escaped_root)``; *escaped_root* is True when a ``..``
        would climb above the root.
    """
    stack = []
    escaped = False
    for part in path.split("/"):
        if not part or part == ".":
            continue
        if part == "..":
            if stack:
                stack.pop()
            else:
                escaped = True
            continue
        stack.append(part)
    return "/".join(stack), escaped


def probe(fs: FileSystem, base: str) -> Optional[str]:
    """Find the file *base* refers to: itself, ``base.*``, or ``base/index.*``.

    A sibling file beats a directory index, so ``./x`` picks ``x.ts`` over
    ``x/index.ts`` when both exist.
    """
    if fs.is_file(base):
        return base

    if base and not posixpath.splitext(base)[1]:
        for ext in IMPORT_EXTENSIONS:
            candidate = f"{base}{ext}"
            if fs.is_file(candidate):
                return candidate

    if fs.is_dir(base):
        for ext in IMPORT_EXTENSIONS:
            index_path = posixpath.join(base, f"index{ext}") if base else f"index{ext}"
            if fs.is_file(index_path):
                return index_path

    return None


def _candidate_path(
    from_file: str,
    specifier: str,
    aliases: Mapping[str, str],
) -> Optional[str]:
    # Longest alias prefix first so "@/lib/" beats "@/".
    for prefix in sorted(aliases, key=len, reverse=True):
        if specifier.startswith(prefix):
            return posixpath.join(aliases[prefix], specifier[len(prefix):])
    if specifier.startswith("/"):
        return specifier[1:]
    if specifier.startswith("."):
        return posixpath.join(posixpath.dirname(from_file), specifier)
    return None


def resolve_import(
    fs: FileSystem,
    from_file: str,
    specifier: str,
    aliases: Optional[Mapping[str, str]] = None,
) -> Optional[Resolution]:
    """Resolve *specifier* written in *from_file* (both root-relative).

    Returns:
        ``None`` when the specifier is dropped (empty or a URL),
        :data:`EXTERNAL` for package-style specifiers, misses, and anything
        outside the root, otherwise ``Resolution(False, <root-relative path>)``.
    """
    if not specifier or specifier.startswith("http"):
        return None

    clean = specifier.split("?", 1)[0].split("#", 1)[0]
    candidate = _candidate_path(from_file, clean, DEFAULT_ALIASES if aliases is None else aliases)
    if candidate is None:
        return EXTERNAL

    normalized, escaped = normalize_relative(candidate)
    if escaped:
        logger.debug("%s: %r escapes the root", from_file, specifier)
        return EXTERNAL

    resolved = probe(fs, normalized)
    if resolved is None:
        return EXTERNAL
    return Resolution(external=False, resolved=resolved)
