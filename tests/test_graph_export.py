"""Tests for JSON snapshot export and import."""

import json
from pathlib import Path

import pytest

from depgraph_cli.errors import InputError
from depgraph_cli.filesystem import MemoryFileSystem
from depgraph_cli.graph_export import export_json, graph_from_json, graph_to_json, import_json
from depgraph_cli.scanner import extract, extract_from


def test_snapshot_uses_camel_case_keys():
    fs = MemoryFileSystem({
        "a.ts": 'import { f } from "./b";\nimport "react";\n',
        "b.ts": "export default function f() {}\nexport function g() {}\n",
        ".gitignore": "c.ts\n",
        "c.ts": "",
    })
    graph = extract_from(fs, include_external=True, granularity="symbol")
    data = json.loads(graph_to_json(graph))

    assert set(data) == {"root", "nodes", "edges", "totalFiles", "ignoredCount", "externalCount"}
    symbol = next(n for n in data["nodes"] if n["id"] == "b.ts::default")
    assert symbol["symbolKind"] == "function"
    assert symbol["parent"] == "b.ts"
    assert symbol["displayName"] == "f"
    ignored = next(n for n in data["nodes"] if n["id"] == "c.ts")
    assert ignored["ignored"] is True
    edge = next(e for e in data["edges"] if e["type"] == "external")
    assert edge["loc"] == {"line": 2, "column": 0}
    assert "ignored" not in next(n for n in data["nodes"] if n["id"] == "a.ts")


def test_round_trip_reconstructs_equal_graph(sample_project_path: Path, temp_dir: Path):
    graph = extract(sample_project_path, include_external=True, granularity="symbol")
    path = temp_dir / "snapshot.json"

    export_json(graph, path)
    restored = import_json(path)

    assert restored == graph
    assert graph_to_json(restored) == path.read_text(encoding="utf-8")


def test_snapshot_is_unicode_preserving():
    fs = MemoryFileSystem({"a.ts": 'import "./bé";\n', "bé.ts": ""})
    text = graph_to_json(extract_from(fs))

    assert "bé.ts" in text
    assert graph_from_json(text).edges[0].target == "bé.ts"


@pytest.mark.parametrize("text", ["not json", "[1, 2]", '{"nodes": [{"label": "x"}]}'])
def test_invalid_snapshots(text):
    with pytest.raises(InputError, match="Invalid graph JSON"):
        graph_from_json(text)


def test_unknown_node_type_is_rejected():
    text = json.dumps({"root": "/r", "nodes": [{"id": "a.ts", "type": "widget"}], "edges": []})

    with pytest.raises(InputError, match="widget"):
        graph_from_json(text)


def test_missing_snapshot_file(temp_dir: Path):
    with pytest.raises(InputError):
        import_json(temp_dir / "missing.json")
