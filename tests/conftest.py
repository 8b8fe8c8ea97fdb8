"""Pytest configuration and fixtures for DepGraph CLI tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator

import pytest


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def make_tree(temp_dir: Path) -> Callable[[Dict[str, str]], Path]:
    """Write ``{"rel/path": "text"}`` under a fresh project root and return the root."""

    def _make(files: Dict[str, str]) -> Path:
        root = temp_dir / "project"
        root.mkdir(exist_ok=True)
        for rel, text in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        return root

    return _make


@pytest.fixture
def sample_project_path() -> Path:
    """Get path to sample test project."""
    return Path(__file__).parent / "fixtures" / "sample_project"


@pytest.fixture
def temp_config(temp_dir: Path, monkeypatch) -> Path:
    """Point the config file at a temporary location."""
    config_file = temp_dir / "home" / "config.toml"
    monkeypatch.setattr("depgraph_cli.config.CONFIG_FILE", config_file)
    return config_file


@pytest.fixture
def sample_script_code() -> str:
    """Sample TypeScript module exercising every dependency form."""
    return '''import React, { useState as useLocalState } from "react";
import * as utils from "./utils";
import "./styles.css";
export { helper } from "./helper";
export * from "./types";

const config = require("./config");

export function App() {
  const Lazy = import("./lazy");
  return <div>{utils.name}</div>;
}

export default App;
'''
