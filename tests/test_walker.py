"""Tests for the depth-first tree walker."""

import pytest

from depgraph_cli.errors import CapacityError
from depgraph_cli.filesystem import MemoryFileSystem
from depgraph_cli.walker import is_supported_file, walk_tree


def test_supported_extensions():
    for name in ["a.js", "a.jsx", "a.ts", "a.tsx", "a.mjs", "a.cjs", "a.css", "a.scss", "a.sass"]:
        assert is_supported_file(name)
    for name in ["README.md", "a.json", "Makefile", "a.d"]:
        assert not is_supported_file(name)


def test_queues_supported_files_in_traversal_order():
    fs = MemoryFileSystem({
        "src/b.ts": "",
        "src/a.ts": "",
        "index.js": "",
        "README.md": "# readme",
        "styles/main.css": "",
    })
    result = walk_tree(fs, max_files=100)

    assert result.files == ["index.js", "src/a.ts", "src/b.ts", "styles/main.css"]
    assert result.total_files == 5
    assert result.ignored_count == 0


def test_ignored_entries_are_counted_and_recorded():
    fs = MemoryFileSystem({
        ".gitignore": "b.ts\nnotes.txt\ngenerated/\n",
        "a.ts": "",
        "b.ts": "",
        "notes.txt": "",
        "generated/x.ts": "",
        "generated/y.ts": "",
    })
    result = walk_tree(fs, max_files=100)

    assert result.files == ["a.ts"]
    assert result.ignored_files == ["b.ts"]
    # b.ts, notes.txt and the pruned directory
    assert result.ignored_count == 3
    assert result.total_files == 2  # .gitignore and a.ts
    assert result.ignore_patterns[""] == ["**/b.ts", "**/notes.txt", "**/generated/"]


def test_always_ignored_directories_are_pruned():
    fs = MemoryFileSystem({
        "node_modules/react/index.js": "",
        "web/node_modules/x/index.js": "",
        ".git/HEAD": "",
        "web/app.ts": "",
    })
    result = walk_tree(fs, max_files=100)

    assert result.files == ["web/app.ts"]
    assert result.ignored_count == 3


def test_nested_ignore_files_accumulate():
    fs = MemoryFileSystem({
        ".gitignore": "*.gen.ts\n",
        "pkg/.gitignore": "!keep.gen.ts\nlocal.ts\n",
        "pkg/keep.gen.ts": "",
        "pkg/drop.gen.ts": "",
        "pkg/local.ts": "",
        "local.ts": "",
    })
    result = walk_tree(fs, max_files=100)

    assert sorted(result.files) == ["local.ts", "pkg/keep.gen.ts"]
    assert sorted(result.ignored_files) == ["pkg/drop.gen.ts", "pkg/local.ts"]


def test_unreadable_ignore_file_is_treated_as_absent():
    fs = MemoryFileSystem({".gitignore": None, "a.ts": ""})
    result = walk_tree(fs, max_files=100)

    assert result.files == ["a.ts"]
    assert result.ignore_patterns == {}


def test_capacity_is_a_hard_stop():
    fs = MemoryFileSystem({"a.ts": "", "b.ts": "", "c.ts": "", "d.ts": ""})
    with pytest.raises(CapacityError) as excinfo:
        walk_tree(fs, max_files=3)

    assert excinfo.value.limit == 3
    assert str(excinfo.value) == "File limit exceeded (3). Adjust the max files setting to continue."


def test_unsupported_files_count_toward_capacity():
    fs = MemoryFileSystem({"a.ts": "", "b.md": "", "c.txt": ""})
    with pytest.raises(CapacityError):
        walk_tree(fs, max_files=2)


def test_ignored_files_do_not_count_toward_capacity():
    fs = MemoryFileSystem({".gitignore": "*.log\n", "a.ts": "", "x.log": "", "y.log": ""})
    result = walk_tree(fs, max_files=2)

    assert result.total_files == 2
