"""Tests for the Tree-sitter dependency and symbol extractor."""

from depgraph_cli.models import ImportBinding, Location
from depgraph_cli.parser import (
    ScriptParser,
    extract_dependencies,
    extract_style_imports,
    extract_symbols,
)


def _by_specifier(deps):
    return {d.specifier: d for d in deps}


def test_parser_initialization():
    """Grammars load lazily on first parse."""
    parser = ScriptParser()
    assert parser.parse("a.ts", "export const x = 1;\n") is not None
    assert parser.parse("a.py", "x = 1\n") is None


def test_extracts_every_dependency_form(sample_script_code: str):
    deps = extract_dependencies("src/app.tsx", sample_script_code)
    by_spec = _by_specifier(deps)

    assert [d.specifier for d in deps] == [
        "react", "./utils", "./styles.css", "./helper", "./types", "./config", "./lazy",
    ]
    assert by_spec["react"].type == "static"
    assert by_spec["./config"].type == "static"
    assert by_spec["./lazy"].type == "dynamic"
    assert by_spec["./helper"].statement == 'export { helper } from "./helper";'
    assert by_spec["./config"].statement == 'require("./config")'


def test_import_bindings(sample_script_code: str):
    by_spec = _by_specifier(extract_dependencies("src/app.tsx", sample_script_code))

    assert by_spec["react"].imports == [
        ImportBinding("default", "default", "React"),
        ImportBinding("named", "useState", "useLocalState"),
    ]
    assert by_spec["./utils"].imports == [ImportBinding("namespace", "*", "utils")]
    assert by_spec["./styles.css"].imports == []


def test_locations_are_one_based_lines_zero_based_columns():
    code = 'const a = 1;\nfunction f() {\n    return require("./x");\n}\n'
    deps = extract_dependencies("f.js", code)

    assert len(deps) == 1
    assert deps[0].loc == Location(line=3, column=11)


def test_columns_count_utf16_code_units():
    """Characters outside the BMP take two columns, matching JS tooling."""
    deps = extract_dependencies("e.js", 'const s = "😀"; require("./x");\n')
    assert deps[0].loc == Location(line=1, column=16)

    deps = extract_dependencies("e.js", 'const s = "é"; require("./x");\n')
    assert deps[0].loc == Location(line=1, column=15)


def test_require_and_import_need_a_single_string_literal():
    code = (
        'require(name);\n'
        'require(`./tpl`);\n'
        'require("./a", "./b");\n'
        'import("./ok");\n'
        'loader.require("./method");\n'
    )
    deps = extract_dependencies("m.js", code)

    assert [d.specifier for d in deps] == ["./ok"]


def test_nested_calls_are_found():
    code = 'export const load = () => Promise.all([import("./a"), require("./b")]);\n'
    deps = extract_dependencies("m.ts", code)

    assert {(d.specifier, d.type) for d in deps} == {("./a", "dynamic"), ("./b", "static")}


def test_mixed_module_styles_and_jsx_in_js():
    code = (
        'import React from "react";\n'
        'const path = require("path");\n'
        'export default () => <div className="x" />;\n'
    )
    deps = extract_dependencies("component.jsx", code)

    assert [d.specifier for d in deps] == ["react", "path"]


def test_type_annotations_parse():
    code = (
        'import type { Props } from "./types";\n'
        'export function f<T extends object>(value: T): Props | null {\n'
        '  return null;\n'
        '}\n'
    )
    deps = extract_dependencies("f.ts", code)

    assert [d.specifier for d in deps] == ["./types"]
    assert deps[0].imports == [ImportBinding("named", "Props", "Props")]


def test_syntax_error_yields_nothing():
    """An unparseable file is skipped, not fatal."""
    assert extract_dependencies("broken.ts", 'import { from "./x";\nfunction (') == []
    assert extract_symbols("broken.ts", "export function ( {") == []


def test_unsupported_extension_yields_nothing():
    assert extract_dependencies("README.md", 'import "./x";') == []


class TestStyleImports:
    def test_plain_and_url_forms(self):
        css = '@import "./a.css";\n@import url(\'./b.css\');\n@import url("c.css") screen;\n'
        deps = extract_style_imports(css)

        assert [d.specifier for d in deps] == ["./a.css", "./b.css", "c.css"]
        assert all(d.type == "style" for d in deps)
        assert deps[0].statement == '@import "./a.css"'

    def test_scss_files_use_the_style_scanner(self):
        deps = extract_dependencies("theme.scss", '@import "./vars";\n.a { color: red; }\n')

        assert [(d.specifier, d.type) for d in deps] == [("./vars", "style")]


class TestSymbols:
    def test_exported_declarations(self):
        code = (
            "export function run() {}\n"
            "export class Runner {}\n"
            "export const A = 1, B = 2;\n"
            "export let counter = 0;\n"
            "export var legacy = true;\n"
            "export interface Shape { id: string }\n"
            "export type Id = string;\n"
            "export enum Color { Red }\n"
            "function hidden() {}\n"
        )
        symbols = {s.name: s.kind for s in extract_symbols("m.ts", code)}

        assert symbols == {
            "run": "function",
            "Runner": "class",
            "A": "const",
            "B": "const",
            "counter": "let",
            "legacy": "var",
            "Shape": "interface",
            "Id": "type",
            "Color": "enum",
        }

    def test_export_specifiers_take_local_kind(self):
        code = (
            "function make() {}\n"
            "class Store {}\n"
            "const value = 1;\n"
            "export { make, Store as DataStore, value, missing };\n"
        )
        symbols = {s.name: s.kind for s in extract_symbols("m.ts", code)}

        assert symbols == {
            "make": "function",
            "DataStore": "class",
            "value": "const",
            "missing": "export",
        }

    def test_default_export_of_identifier_inherits_kind(self):
        code = "class Widget {}\nexport default Widget;\n"
        symbols = extract_symbols("w.ts", code)

        assert len(symbols) == 1
        assert symbols[0].name == "default"
        assert symbols[0].kind == "class"
        assert symbols[0].display_name == "Widget"

    def test_default_function_declaration(self):
        symbols = extract_symbols("p.tsx", "export default function Page() { return <main />; }\n")

        assert [(s.name, s.kind, s.display_name) for s in symbols] == [("default", "function", "Page")]

    def test_default_anonymous_function(self):
        symbols = extract_symbols("p.js", "export default function () {}\n")

        assert [(s.name, s.kind, s.display_name) for s in symbols] == [("default", "function", None)]

    def test_default_expression_falls_back_to_export(self):
        symbols = extract_symbols("c.ts", "export default { port: 3000 };\n")

        assert [(s.name, s.kind, s.display_name) for s in symbols] == [("default", "export", None)]

    def test_nested_declarations_are_not_symbols(self):
        code = "export function outer() {\n  function inner() {}\n  return inner;\n}\n"
        assert [s.name for s in extract_symbols("n.ts", code)] == ["outer"]

    def test_duplicate_names_keep_first(self):
        code = "export const a = 1;\nconst b = 2;\nexport { b as a };\n"
        symbols = extract_symbols("d.ts", code)

        assert [(s.name, s.kind) for s in symbols] == [("a", "const")]

    def test_style_files_have_no_symbols(self):
        assert extract_symbols("s.css", ".a { color: red; }") == []
