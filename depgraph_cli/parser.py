"""Dependency and symbol extraction for script and style files.

Script files are parsed with Tree-sitter (TypeScript grammar for ``.ts``, the
TSX grammar for everything else so JSX, type annotations, ESM and CommonJS all
parse). The syntax tree is walked once with a dispatch table keyed by node
type; node kinds without a handler are descended into and otherwise ignored.

Style files never reach the parser: ``@import`` directives are matched with a
regular expression.

A file that does not parse cleanly contributes nothing (it is still a node in
the graph); the scan carries on.
"""

from __future__ import annotations

import logging
import posixpath
import re
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

import tree_sitter_typescript as tsts
from tree_sitter import Language, Parser as TSParser

from .config import SCRIPT_EXTENSIONS, STYLE_EXTENSIONS
from .models import Dependency, ImportBinding, Location, SymbolInfo

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Extension <-> grammar mapping
# ---------------------------------------------------------------------------
GRAMMAR_MAP: Dict[str, str] = {
    ".ts": "typescript",
    ".tsx": "tsx",
    ".js": "tsx",
    ".jsx": "tsx",
    ".mjs": "tsx",
    ".cjs": "tsx",
}

STYLE_IMPORT_RE = re.compile(r"""@import\s+(?:url\()?['"]([^'"]+)['"]""")

_FUNCTION_DECLARATIONS = {"function_declaration", "generator_function_declaration"}
_CLASS_DECLARATIONS = {"class_declaration", "abstract_class_declaration"}
_ANONYMOUS_FUNCTIONS = {"function_expression", "function", "generator_function"}
_ANONYMOUS_CLASSES = {"class"}
_SIMPLE_DECLARATIONS = {
    "interface_declaration": "interface",
    "type_alias_declaration": "type",
    "enum_declaration": "enum",
}


class ScriptParser:
    """Holds one Tree-sitter parser per grammar, created on first use.

    Instances are cheap but not thread-safe; use one per worker.
    """

    _GRAMMAR_LOADERS: Dict[str, Callable[[], Any]] = {
        "typescript": tsts.language_typescript,
        "tsx": tsts.language_tsx,
    }

    def __init__(self) -> None:
        self._parsers: Dict[str, TSParser] = {}

    def _parser_for(self, grammar: str) -> TSParser:
        parser = self._parsers.get(grammar)
        if parser is None:
            parser = TSParser(Language(self._GRAMMAR_LOADERS[grammar]()))
            self._parsers[grammar] = parser
            logger.debug("Loaded tree-sitter grammar %s", grammar)
        return parser

    def parse(self, file_path: str, source: str) -> Optional[Any]:
        """Return the root node of *source*, or ``None`` if it does not parse cleanly."""
        grammar = GRAMMAR_MAP.get(posixpath.splitext(file_path)[1])
        if grammar is None:
            return None
        tree = self._parser_for(grammar).parse(source.encode("utf-8"))
        root = tree.root_node
        if root.has_error:
            logger.debug("Skipping %s: syntax error", file_path)
            return None
        return root

    # ------------------------------------------------------------------
    # Dependencies
    # ------------------------------------------------------------------

    def extract_dependencies(self, file_path: str, source: str) -> List[Dependency]:
        ext = posixpath.splitext(file_path)[1]
        if ext in STYLE_EXTENSIONS:
            return extract_style_imports(source)
        if ext not in SCRIPT_EXTENSIONS:
            return []

        root = self.parse(file_path, source)
        if root is None:
            return []
        return _DependencyVisitor(source.encode("utf-8")).run(root)

    # ------------------------------------------------------------------
    # Symbols
    # ------------------------------------------------------------------

    def extract_symbols(self, file_path: str, source: str) -> List[SymbolInfo]:
        if posixpath.splitext(file_path)[1] not in SCRIPT_EXTENSIONS:
            return []
        root = self.parse(file_path, source)
        if root is None:
            return []
        return _collect_exported_symbols(root)


# ===================================================================
# Style files
# ===================================================================

def extract_style_imports(source: str) -> List[Dependency]:
    """Find ``@import "x"`` and ``@import url("x")`` directives."""
    return [
        Dependency(specifier=m.group(1), type="style", statement=m.group(0))
        for m in STYLE_IMPORT_RE.finditer(source)
    ]


# ===================================================================
# Script dependency visitor
# ===================================================================

def _text(node: Any) -> str:
    return node.text.decode("utf-8", errors="replace")


def _string_value(node: Any) -> Optional[str]:
    """Return the literal value of a ``string`` node (quotes removed)."""
    if node is None or node.type != "string":
        return None
    raw = _text(node)
    if len(raw) >= 2 and raw[0] in "'\"" and raw[-1] == raw[0]:
        return raw[1:-1]
    return None


def _name_value(node: Any) -> str:
    """Identifier text, or the literal value for ``import {"a-b" as c}`` forms."""
    value = _string_value(node)
    return value if value is not None else _text(node)


class _DependencyVisitor:
    """Single pre-order walk; one handler per recognised node kind."""

    def __init__(self, source_bytes: bytes) -> None:
        self.source_bytes = source_bytes
        self.dependencies: List[Dependency] = []
        self._handlers: Dict[str, Callable[[Any], bool]] = {
            "import_statement": self._visit_import,
            "export_statement": self._visit_export,
            "call_expression": self._visit_call,
        }

    def run(self, root: Any) -> List[Dependency]:
        stack = [root]
        while stack:
            node = stack.pop()
            handler = self._handlers.get(node.type)
            descend = handler(node) if handler is not None else True
            if descend:
                stack.extend(reversed(node.children))
        return self.dependencies

    # -- helpers --------------------------------------------------------

    def _location(self, node: Any) -> Location:
        """1-based line; 0-based column in UTF-16 code units, as JS tooling reports it."""
        row = node.start_point[0]
        line_start = self.source_bytes.rfind(b"\n", 0, node.start_byte) + 1
        prefix = self.source_bytes[line_start:node.start_byte].decode("utf-8", errors="ignore")
        return Location(line=row + 1, column=len(prefix.encode("utf-16-le")) // 2)

    def _statement(self, node: Any) -> str:
        return self.source_bytes[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    def _add(self, node: Any, specifier: str, dep_type: str,
             imports: Optional[List[ImportBinding]] = None) -> None:
        self.dependencies.append(Dependency(
            specifier=specifier,
            type=dep_type,
            statement=self._statement(node),
            loc=self._location(node),
            imports=imports or [],
        ))

    # -- handlers (return True to descend) -------------------------------

    def _visit_import(self, node: Any) -> bool:
        specifier = _string_value(node.child_by_field_name("source"))
        bindings: List[ImportBinding] = []
        for child in node.named_children:
            if child.type == "import_clause":
                bindings.extend(_import_bindings(child))
            elif child.type == "import_require_clause" and specifier is None:
                # import x = require("y")
                specifier = _string_value(child.child_by_field_name("source"))
        if specifier is not None:
            self._add(node, specifier, "static", bindings)
        return False

    def _visit_export(self, node: Any) -> bool:
        specifier = _string_value(node.child_by_field_name("source"))
        if specifier is None:
            return True
        self._add(node, specifier, "static")
        return False

    def _visit_call(self, node: Any) -> bool:
        func = node.child_by_field_name("function")
        if func is None:
            return True
        if func.type == "import":
            dep_type = "dynamic"
        elif func.type == "identifier" and _text(func) == "require":
            dep_type = "static"
        else:
            return True

        args = node.child_by_field_name("arguments")
        if args is not None:
            values = [a for a in args.named_children if a.type != "comment"]
            if len(values) == 1 and values[0].type == "string":
                specifier = _string_value(values[0])
                if specifier is not None:
                    self._add(node, specifier, dep_type)
        return True


def _import_bindings(clause: Any) -> List[ImportBinding]:
    bindings: List[ImportBinding] = []
    for child in clause.named_children:
        if child.type == "identifier":
            bindings.append(ImportBinding("default", "default", _text(child)))
        elif child.type == "namespace_import":
            local = next((c for c in child.named_children if c.type == "identifier"), None)
            bindings.append(ImportBinding("namespace", "*", _text(local) if local else "*"))
        elif child.type == "named_imports":
            for spec in child.named_children:
                if spec.type != "import_specifier":
                    continue
                name = spec.child_by_field_name("name")
                if name is None:
                    continue
                alias = spec.child_by_field_name("alias")
                imported = _name_value(name)
                bindings.append(ImportBinding(
                    "named", imported, _text(alias) if alias is not None else imported,
                ))
    return bindings


# ===================================================================
# Exported symbols
# ===================================================================

def _unwrap_ambient(node: Any) -> Any:
    if node is not None and node.type == "ambient_declaration":
        inner = next((c for c in node.named_children if c.type != "comment"), None)
        return inner if inner is not None else node
    return node


def _variable_kind(decl: Any) -> str:
    if decl.type == "variable_declaration":
        return "var"
    kind = decl.child_by_field_name("kind")
    if kind is not None:
        return _text(kind)
    return decl.children[0].type if decl.children else "const"


def _declared_names(decl: Any) -> List[Tuple[str, str]]:
    """``(name, kind)`` pairs introduced by one top-level declaration node."""
    decl = _unwrap_ambient(decl)
    if decl is None:
        return []
    if decl.type in _FUNCTION_DECLARATIONS or decl.type in _CLASS_DECLARATIONS:
        name = decl.child_by_field_name("name")
        kind = "function" if decl.type in _FUNCTION_DECLARATIONS else "class"
        return [(_text(name), kind)] if name is not None else []
    if decl.type in ("lexical_declaration", "variable_declaration"):
        kind = _variable_kind(decl)
        out = []
        for declarator in decl.named_children:
            if declarator.type != "variable_declarator":
                continue
            name = declarator.child_by_field_name("name")
            if name is not None and name.type == "identifier":
                out.append((_text(name), kind))
        return out
    if decl.type in _SIMPLE_DECLARATIONS:
        name = decl.child_by_field_name("name")
        return [(_text(name), _SIMPLE_DECLARATIONS[decl.type])] if name is not None else []
    return []


def _is_default_export(node: Any) -> bool:
    return any(child.type == "default" for child in node.children)


def _collect_exported_symbols(root: Any) -> List[SymbolInfo]:
    local_kinds: Dict[str, str] = {}
    for child in root.named_children:
        target = child.child_by_field_name("declaration") if child.type == "export_statement" else child
        for name, kind in _declared_names(target):
            local_kinds.setdefault(name, kind)

    symbols: List[SymbolInfo] = []
    seen: Set[str] = set()

    def add(symbol: SymbolInfo) -> None:
        if symbol.name in seen:
            return
        seen.add(symbol.name)
        symbols.append(symbol)

    for child in root.named_children:
        if child.type != "export_statement":
            continue

        declaration = child.child_by_field_name("declaration")
        if _is_default_export(child):
            add(_default_symbol(child, declaration, local_kinds))
            continue

        if declaration is not None:
            for name, kind in _declared_names(declaration):
                add(SymbolInfo(name=name, kind=kind))
            continue

        for clause in child.named_children:
            if clause.type != "export_clause":
                continue
            for spec in clause.named_children:
                if spec.type != "export_specifier":
                    continue
                name = spec.child_by_field_name("name")
                if name is None:
                    continue
                alias = spec.child_by_field_name("alias")
                local = _name_value(name)
                exported = _name_value(alias) if alias is not None else local
                add(SymbolInfo(name=exported, kind=local_kinds.get(local, "export")))

    return symbols


def _default_symbol(node: Any, declaration: Any, local_kinds: Dict[str, str]) -> SymbolInfo:
    target = declaration if declaration is not None else node.child_by_field_name("value")
    if target is None:
        return SymbolInfo(name="default", kind="export")

    if target.type in _FUNCTION_DECLARATIONS or target.type in _ANONYMOUS_FUNCTIONS:
        name = target.child_by_field_name("name")
        return SymbolInfo("default", "function", _text(name) if name is not None else None)
    if target.type in _CLASS_DECLARATIONS or target.type in _ANONYMOUS_CLASSES:
        name = target.child_by_field_name("name")
        return SymbolInfo("default", "class", _text(name) if name is not None else None)
    if target.type == "identifier":
        name = _text(target)
        return SymbolInfo("default", local_kinds.get(name, "export"), name)
    return SymbolInfo(name="default", kind="export")


# ===================================================================
# Module-level convenience API
# ===================================================================

_default_parser: Optional[ScriptParser] = None


def _shared_parser() -> ScriptParser:
    global _default_parser
    if _default_parser is None:
        _default_parser = ScriptParser()
    return _default_parser


def extract_dependencies(file_path: str, source: str) -> List[Dependency]:
    """Dependency records for one file, in source order."""
    return _shared_parser().extract_dependencies(file_path, source)


def extract_symbols(file_path: str, source: str) -> List[SymbolInfo]:
    """Exported top-level symbols for one script file."""
    return _shared_parser().extract_symbols(file_path, source)
