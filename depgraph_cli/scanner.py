"""Graph assembly and the top-level extraction pipeline.

Pipeline for one pass::

    walk_tree -> [extract_symbols] -> extract_dependencies -> resolve_import -> GraphAssembler

Every structure here lives for a single call; nothing is cached across passes.
"""

from __future__ import annotations

import hashlib
import logging
import posixpath
import re
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Set

from .config import (
    DEFAULT_GRANULARITY,
    DEFAULT_MAX_FILES,
    EXTERNAL_NODE_ID,
    EXTERNAL_NODE_LABEL,
    GRANULARITIES,
    ROOT_MARKER,
    STATEMENT_MAX_CHARS,
    STYLE_EXTENSIONS,
)
from .filesystem import FileSystem, LocalFileSystem
from .models import Dependency, GraphData, GraphEdge, GraphNode, Location, SymbolInfo
from .parser import ScriptParser
from .resolver import Resolution, resolve_import
from .walker import walk_tree

logger = logging.getLogger(__name__)

ROUTE_APP_RE = re.compile(r"(^|/)app/(.*/)?(page|route)\.(t|j)sx?$")
ROUTE_PAGES_RE = re.compile(r"(^|/)pages/.+\.(t|j)sx?$")


def hash_id(key: str) -> str:
    """Stable edge identifier derived from the edge's dedup key."""
    return hashlib.sha1(key.encode("utf-8")).hexdigest()


def node_type_from_path(rel_path: str) -> str:
    if rel_path == EXTERNAL_NODE_ID:
        return "external"
    if ROUTE_APP_RE.search(rel_path) or ROUTE_PAGES_RE.search(rel_path):
        in_pages = rel_path.startswith("pages/") or "/pages/" in rel_path
        if in_pages and posixpath.basename(rel_path).startswith("_"):
            return "module"
        return "route"
    if posixpath.splitext(rel_path)[1] in STYLE_EXTENSIONS:
        return "style"
    return "module"


def _truncate(statement: Optional[str]) -> Optional[str]:
    return statement[:STATEMENT_MAX_CHARS] if statement is not None else None


class GraphAssembler:
    """Accumulates nodes and deduplicated edges for one extraction pass."""

    def __init__(self, root: str, include_external: bool = False) -> None:
        self.root = root
        self.include_external = include_external
        self.external_count = 0
        self._nodes: Dict[str, GraphNode] = {}
        self._edges: List[GraphEdge] = []
        self._edge_keys: Set[str] = set()
        self._symbols: Dict[str, Dict[str, SymbolInfo]] = {}

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def add_file(self, rel_path: str, ignored: bool = False) -> GraphNode:
        node = self._nodes.get(rel_path)
        if node is None:
            node = GraphNode(
                id=rel_path,
                path=rel_path,
                label=posixpath.basename(rel_path),
                type=node_type_from_path(rel_path),
                ignored=ignored,
            )
            self._nodes[rel_path] = node
        return node

    def _ensure_external(self) -> None:
        if EXTERNAL_NODE_ID not in self._nodes:
            self._nodes[EXTERNAL_NODE_ID] = GraphNode(
                id=EXTERNAL_NODE_ID,
                path=EXTERNAL_NODE_ID,
                label=EXTERNAL_NODE_LABEL,
                type="external",
            )

    def add_symbols(self, file_rel: str, symbols: List[SymbolInfo]) -> None:
        """Register a file's exported symbols as child nodes with ``contains`` edges."""
        if not symbols:
            return
        table = self._symbols.setdefault(file_rel, {})
        for symbol in symbols:
            symbol_id = f"{file_rel}::{symbol.name}"
            table.setdefault(symbol.name, symbol)
            if symbol_id not in self._nodes:
                self._nodes[symbol_id] = GraphNode(
                    id=symbol_id,
                    path=f"{file_rel}#{symbol.name}",
                    label=symbol.name,
                    type="symbol",
                    symbol_kind=symbol.kind,
                    parent=file_rel,
                    display_name=symbol.display_name,
                )
            self._add_edge(f"{file_rel}|{symbol_id}|contains", file_rel, symbol_id, "contains")

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    def _add_edge(
        self,
        key: str,
        source: str,
        target: str,
        edge_type: str,
        statement: Optional[str] = None,
        loc: Optional[Location] = None,
    ) -> bool:
        if key in self._edge_keys:
            return False
        self._edge_keys.add(key)
        self._edges.append(GraphEdge(
            id=hash_id(key),
            source=source,
            target=target,
            type=edge_type,
            statement=_truncate(statement),
            loc=loc,
        ))
        return True

    def add_dependency(self, source: str, dep: Dependency, resolution: Resolution) -> None:
        """Turn one resolved dependency of *source* into edges.

        Symbol retargeting relies on :meth:`add_symbols` having been called
        for every file first.
        """
        if resolution.external:
            self.external_count += 1
            if not self.include_external:
                return
            self._ensure_external()
            self._add_edge(
                f"{source}|{EXTERNAL_NODE_ID}|external|{dep.specifier}",
                source, EXTERNAL_NODE_ID, "external", dep.statement, dep.loc,
            )
            return

        target = resolution.resolved
        if target is None:
            return
        self.add_file(target)

        if dep.imports and self._add_symbol_edges(source, target, dep):
            return

        edge_type = "style" if posixpath.splitext(target)[1] in STYLE_EXTENSIONS else dep.type
        self._add_edge(
            f"{source}|{target}|{edge_type}|{dep.statement or ''}",
            source, target, edge_type, dep.statement, dep.loc,
        )

    def _add_symbol_edges(self, source: str, target: str, dep: Dependency) -> bool:
        target_symbols = self._symbols.get(target)
        if not target_symbols:
            return False

        created = False
        for binding in dep.imports:
            if binding.kind == "namespace":
                continue
            import_name = "default" if binding.kind == "default" else binding.imported
            if import_name not in target_symbols:
                continue
            symbol_id = f"{target}::{import_name}"
            key = f"{source}|{symbol_id}|{dep.type}|{dep.statement or ''}"
            if key in self._edge_keys:
                # Already drawn earlier in this pass.
                created = True
                continue
            self._add_edge(key, source, symbol_id, dep.type, dep.statement, dep.loc)
            created = True
        return created

    # ------------------------------------------------------------------
    # Result
    # ------------------------------------------------------------------

    def build(self, total_files: int, ignored_count: int) -> GraphData:
        return GraphData(
            root=self.root,
            nodes=list(self._nodes.values()),
            edges=list(self._edges),
            total_files=total_files,
            ignored_count=ignored_count,
            external_count=self.external_count,
        )


# ===================================================================
# Entry points
# ===================================================================

def extract_from(
    fs: FileSystem,
    max_files: int = DEFAULT_MAX_FILES,
    include_external: bool = False,
    granularity: str = DEFAULT_GRANULARITY,
    aliases: Optional[Mapping[str, str]] = None,
) -> GraphData:
    """Run one extraction pass over any filesystem capability."""
    if granularity not in GRANULARITIES:
        raise ValueError(f"granularity must be one of {GRANULARITIES}, got {granularity!r}")

    walk = walk_tree(fs, max_files)
    assembler = GraphAssembler(fs.root, include_external=include_external)
    parser = ScriptParser()

    for rel_path in walk.files:
        assembler.add_file(rel_path)
    for rel_path in walk.ignored_files:
        assembler.add_file(rel_path, ignored=True)

    contents: Dict[str, Optional[str]] = {}

    def read(rel_path: str) -> Optional[str]:
        if rel_path not in contents:
            contents[rel_path] = fs.read_text(rel_path)
        return contents[rel_path]

    if granularity == "symbol":
        for rel_path in walk.files:
            text = read(rel_path)
            if text:
                assembler.add_symbols(rel_path, parser.extract_symbols(rel_path, text))

    for rel_path in walk.files:
        text = read(rel_path)
        if not text:
            continue
        for dep in parser.extract_dependencies(rel_path, text):
            resolution = resolve_import(fs, rel_path, dep.specifier, aliases)
            if resolution is not None:
                assembler.add_dependency(rel_path, dep, resolution)

    graph = assembler.build(walk.total_files, walk.ignored_count)
    logger.info(
        "Scanned %s: %d files, %d nodes, %d edges (%d ignored, %d external)",
        fs.root, graph.total_files, len(graph.nodes), len(graph.edges),
        graph.ignored_count, graph.external_count,
    )
    return graph


def extract(
    root: Path | str,
    max_files: int = DEFAULT_MAX_FILES,
    include_external: bool = False,
    granularity: str = DEFAULT_GRANULARITY,
    aliases: Optional[Mapping[str, str]] = None,
) -> GraphData:
    """Extract the dependency graph of the directory tree at *root*.

    Raises:
        InputError: *root* is not a readable directory.
        CapacityError: more than *max_files* non-ignored files were found.
    """
    return extract_from(
        LocalFileSystem(root),
        max_files=max_files,
        include_external=include_external,
        granularity=granularity,
        aliases=aliases,
    )


def find_root_marker(start_path: Path | str) -> Optional[Path]:
    """Walk upward from *start_path* to the nearest directory containing ``.git/``."""
    current = Path(start_path).expanduser().resolve()
    while True:
        if (current / ROOT_MARKER).is_dir():
            return current
        if current.parent == current:
            return None
        current = current.parent
