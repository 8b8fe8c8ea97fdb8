"""Layered ignore-rule evaluation.

Patterns from every ignore file are rewritten relative to the tree root when
they are read, so one flat, ordered list can be evaluated against any
root-relative path:

- ``!`` keeps its negating sense after rewriting;
- a leading ``/`` anchors the pattern to the declaring directory;
- a pattern without an internal ``/`` may match at any depth below the
  declaring directory (``base/**/pattern``);
- a trailing ``/`` keeps the pattern directory-only.

Later rules win, and a path inside an ignored directory stays ignored.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, List, Optional, Pattern, Sequence, Tuple

from .config import ALWAYS_IGNORE

logger = logging.getLogger(__name__)


def _join(*parts: str) -> str:
    return "/".join(p.strip("/") for p in parts if p and p.strip("/"))


def normalize_pattern(dir_rel: str, raw_pattern: str) -> Optional[str]:
    """Rewrite one ignore-file line declared in *dir_rel* into a root-relative pattern.

    Returns ``None`` for blank lines, comments, and patterns with no body.
    """
    pattern = raw_pattern.strip()
    if not pattern or pattern.startswith("#"):
        return None

    negated = pattern.startswith("!")
    if negated:
        pattern = pattern[1:]
    elif pattern.startswith(("\\#", "\\!")):
        pattern = pattern[1:]
    if not pattern:
        return None

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    dir_only = pattern.endswith("/")
    body = pattern.rstrip("/")
    if not body:
        return None

    base = dir_rel.strip("/")
    if anchored or "/" in body:
        prefixed = _join(base, body)
    else:
        prefixed = _join(base, "**", body)

    if dir_only:
        prefixed += "/"
    return f"!{prefixed}" if negated else prefixed


def patterns_from_ignore_file(dir_rel: str, content: str) -> List[str]:
    """Normalize every line of an ignore file found in *dir_rel*."""
    patterns: List[str] = []
    for line in content.splitlines():
        normalized = normalize_pattern(dir_rel, line)
        if normalized:
            patterns.append(normalized)
    return patterns


def default_patterns(always_ignore: Iterable[str] = ALWAYS_IGNORE) -> List[str]:
    """The built-in list, normalized so it applies at every depth."""
    return [p for p in (normalize_pattern("", raw) for raw in always_ignore) if p]


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class _Rule:
    source: str
    regex: Pattern[str]
    negated: bool
    dir_only: bool


def _translate(body: str) -> str:
    """Translate a gitignore-style glob into a regular expression body."""
    out: List[str] = []
    i, n = 0, len(body)
    while i < n:
        c = body[i]
        if c == "*":
            if body.startswith("**", i):
                j = i + 2
                at_start = i == 0 or body[i - 1] == "/"
                at_end = j == n or body[j] == "/"
                if at_start and at_end:
                    if j == n:
                        out.append(".*")
                    else:
                        # "**/" also matches zero directories
                        out.append("(?:.*/)?")
                        j += 1
                    i = j
                    continue
                out.append("[^/]*")
                i = j
                continue
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "[":
            close = body.find("]", i + 2 if body[i + 1:i + 2] in ("!", "^") else i + 1)
            if close == -1:
                out.append(re.escape(c))
            else:
                content = body[i + 1:close]
                if content[:1] in ("!", "^"):
                    content = "^" + content[1:]
                out.append("[" + content.replace("\\", "\\\\") + "]")
                i = close
        elif c == "\\" and i + 1 < n:
            out.append(re.escape(body[i + 1]))
            i += 2
            continue
        else:
            out.append(re.escape(c))
        i += 1
    return "".join(out)


@lru_cache(maxsize=4096)
def _compile(pattern: str) -> Optional[_Rule]:
    negated = pattern.startswith("!")
    body = pattern[1:] if negated else pattern
    dir_only = body.endswith("/")
    body = body.rstrip("/")
    if not body:
        return None
    try:
        regex = re.compile(_translate(body))
    except re.error as exc:
        logger.debug("Skipping malformed ignore pattern %r: %s", pattern, exc)
        return None
    return _Rule(source=pattern, regex=regex, negated=negated, dir_only=dir_only)


class IgnoreRules:
    """An ordered, immutable set of root-relative ignore patterns."""

    def __init__(self, patterns: Sequence[str] = ()) -> None:
        self._patterns: Tuple[str, ...] = tuple(patterns)
        self._rules: Tuple[_Rule, ...] = tuple(
            rule for rule in (_compile(p) for p in self._patterns) if rule is not None
        )

    @property
    def patterns(self) -> Tuple[str, ...]:
        return self._patterns

    def extend(self, patterns: Sequence[str]) -> "IgnoreRules":
        """Return a new rule set with *patterns* appended (ancestors first)."""
        if not patterns:
            return self
        return IgnoreRules(self._patterns + tuple(patterns))

    def _matches(self, rel_path: str, is_dir: bool) -> bool:
        ignored = False
        for rule in self._rules:
            if rule.dir_only and not is_dir:
                continue
            if rule.regex.fullmatch(rel_path):
                ignored = not rule.negated
        return ignored

    def ignores(self, rel_path: str, is_dir: bool = False, check_parents: bool = True) -> bool:
        rel_path = rel_path.strip("/")
        if not rel_path:
            return False
        if check_parents:
            parts = rel_path.split("/")
            for i in range(1, len(parts)):
                if self._matches("/".join(parts[:i]), True):
                    return True
        return self._matches(rel_path, is_dir)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"IgnoreRules(patterns={len(self._patterns)})"


def is_ignored(rel_path: str, patterns: Sequence[str], is_dir: bool = False) -> bool:
    """Answer whether *rel_path* is ignored by an already-normalized pattern list."""
    return IgnoreRules(patterns).ignores(rel_path, is_dir=is_dir)
