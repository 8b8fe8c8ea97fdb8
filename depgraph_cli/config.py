"""Engine constants and paths for local DepGraph configuration."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("DEPGRAPH_HOME", str(Path.home() / ".depgraph"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"

IGNORE_FILE_NAME = ".gitignore"
ROOT_MARKER = ".git"

# Applied at every depth, before any ignore file is read.
ALWAYS_IGNORE = [
    ".git/",
    "node_modules/",
    ".next/",
    "dist/",
    "build/",
    "out/",
    "coverage/",
    ".turbo/",
    ".cache/",
    ".DS_Store",
]

SCRIPT_EXTENSIONS = {".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs"}
STYLE_EXTENSIONS = {".css", ".scss", ".sass"}
SUPPORTED_EXTENSIONS = SCRIPT_EXTENSIONS | STYLE_EXTENSIONS

# Probe order used when a specifier omits the extension or names a directory.
IMPORT_EXTENSIONS = [
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    ".mjs",
    ".cjs",
    ".css",
    ".scss",
    ".sass",
]

DEFAULT_ALIASES = {"@/": ""}

EXTERNAL_NODE_ID = "__external__"
EXTERNAL_NODE_LABEL = "External"

DEFAULT_MAX_FILES = 5000
DEFAULT_GRANULARITY = "file"
GRANULARITIES = ("file", "symbol")

# Statement text kept on edges (display only).
STATEMENT_MAX_CHARS = 200

# Write-stabilization delay of the watch primitive, and the caller-side quiet
# period before a re-scan.
WATCH_STABILITY_SECONDS = 0.2
DEFAULT_DEBOUNCE_SECONDS = 0.5

