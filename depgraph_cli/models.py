"""Core data models shared by the extraction engine, exporters, and CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

NODE_TYPES = ("route", "module", "style", "external", "symbol")
EDGE_TYPES = ("static", "dynamic", "style", "external", "contains")


@dataclass(frozen=True)
class Location:
    line: int
    column: int

    def to_dict(self) -> Dict[str, int]:
        return {"line": self.line, "column": self.column}


@dataclass
class GraphNode:
    id: str
    path: str
    label: str
    type: str
    ignored: bool = False
    symbol_kind: Optional[str] = None
    parent: Optional[str] = None
    display_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "path": self.path,
            "label": self.label,
            "type": self.type,
        }
        if self.ignored:
            data["ignored"] = True
        if self.symbol_kind is not None:
            data["symbolKind"] = self.symbol_kind
        if self.parent is not None:
            data["parent"] = self.parent
        if self.display_name is not None:
            data["displayName"] = self.display_name
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GraphNode":
        return cls(
            id=data["id"],
            path=data.get("path", data["id"]),
            label=data.get("label", data["id"]),
            type=data["type"],
            ignored=bool(data.get("ignored", False)),
            symbol_kind=data.get("symbolKind"),
            parent=data.get("parent"),
            display_name=data.get("displayName"),
        )


@dataclass
class GraphEdge:
    id: str
    source: str
    target: str
    type: str
    statement: Optional[str] = None
    loc: Optional[Location] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "type": self.type,
        }
        if self.statement is not None:
            data["statement"] = self.statement
        if self.loc is not None:
            data["loc"] = self.loc.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GraphEdge":
        loc = data.get("loc")
        return cls(
            id=data["id"],
            source=data["source"],
            target=data["target"],
            type=data["type"],
            statement=data.get("statement"),
            loc=Location(int(loc["line"]), int(loc["column"])) if loc else None,
        )


@dataclass
class GraphData:
    """Result of one extraction pass. Callers own it once returned."""

    root: str
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)
    total_files: int = 0
    ignored_count: int = 0
    external_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root": self.root,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "totalFiles": self.total_files,
            "ignoredCount": self.ignored_count,
            "externalCount": self.external_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GraphData":
        return cls(
            root=data.get("root", ""),
            nodes=[GraphNode.from_dict(n) for n in data.get("nodes", [])],
            edges=[GraphEdge.from_dict(e) for e in data.get("edges", [])],
            total_files=int(data.get("totalFiles", 0)),
            ignored_count=int(data.get("ignoredCount", 0)),
            external_count=int(data.get("externalCount", 0)),
        )

    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]


# ---------------------------------------------------------------------------
# Transient extractor output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ImportBinding:
    kind: str  # default | named | namespace
    imported: str
    local: str


@dataclass
class Dependency:
    specifier: str
    type: str
    statement: Optional[str] = None
    loc: Optional[Location] = None
    imports: List[ImportBinding] = field(default_factory=list)


@dataclass(frozen=True)
class SymbolInfo:
    name: str
    kind: str
    display_name: Optional[str] = None
