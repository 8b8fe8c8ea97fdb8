"""JSON snapshot export and import for extracted graphs."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from .errors import InputError
from .models import EDGE_TYPES, NODE_TYPES, GraphData

logger = logging.getLogger(__name__)


def graph_to_json(graph: GraphData, indent: int = 2) -> str:
    """Serialise *graph* exactly as returned by the engine."""
    return json.dumps(graph.to_dict(), indent=indent, ensure_ascii=False)


def graph_from_json(text: str) -> GraphData:
    """Rebuild a graph from a snapshot without re-running extraction."""
    try:
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("snapshot must be a JSON object")
        graph = GraphData.from_dict(data)
    except (ValueError, KeyError, TypeError) as exc:
        raise InputError(f"Invalid graph JSON: {exc}") from exc

    bad_nodes = sorted({n.type for n in graph.nodes} - set(NODE_TYPES))
    bad_edges = sorted({e.type for e in graph.edges} - set(EDGE_TYPES))
    if bad_nodes or bad_edges:
        raise InputError(f"Invalid graph JSON: unknown types {bad_nodes + bad_edges}")
    return graph


def export_json(graph: GraphData, output_file: Path) -> None:
    output_file.write_text(graph_to_json(graph), encoding="utf-8")
    logger.debug("Wrote snapshot %s", output_file)


def import_json(input_file: Path) -> GraphData:
    try:
        text = input_file.read_text(encoding="utf-8")
    except OSError as exc:
        raise InputError(f"Cannot read snapshot '{input_file}': {exc}") from exc
    return graph_from_json(text)
