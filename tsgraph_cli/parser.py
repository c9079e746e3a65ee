"""Tree-sitter parsing and flattening of TypeScript/JavaScript sources.

The flattener turns the concrete syntax tree into a pre-order list of
:class:`FlatNode` records that carry a reconstructed depth instead of
parent/child pointers. Everything downstream (the attention walker, the
raw tree reports) works on that flat list.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import FlatNode

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Language <-> file-extension mapping
# ---------------------------------------------------------------------------
LANGUAGE_MAP: Dict[str, str] = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".js": "tsx",
    ".jsx": "tsx",
    ".mjs": "tsx",
    ".cjs": "tsx",
}

# Kinds whose inner structure is never flattened; they are emitted as
# terminals carrying their full text.
LEAF_KINDS = frozenset({"comment", "html_comment", "string", "regex"})


class GrammarNotAvailable(RuntimeError):
    """Raised when a tree-sitter grammar for the requested language is not installed."""


class TypeScriptParser:
    """Tree-sitter front end for TypeScript, TSX and JavaScript sources.

    Uses the per-language ``tree-sitter-typescript`` package, which ships
    both the ``typescript`` and the ``tsx`` grammar. JavaScript files are
    parsed with the ``tsx`` grammar since it accepts plain JS plus JSX.
    """

    # Map language name -> function of tree_sitter_typescript returning the grammar
    _GRAMMAR_FUNCTIONS: Dict[str, str] = {
        "typescript": "language_typescript",
        "tsx": "language_tsx",
    }

    def __init__(self, languages: Optional[List[str]] = None) -> None:
        self._parsers: Dict[str, Any] = {}
        self._requested_languages = languages or list(self._GRAMMAR_FUNCTIONS)
        self._init_parsers()

    # ------------------------------------------------------------------
    # Initialisation
    # ------------------------------------------------------------------

    def _init_parsers(self) -> None:
        try:
            from tree_sitter import Language, Parser as TSParser  # type: ignore[import-untyped]
            import tree_sitter_typescript  # type: ignore[import-untyped]
        except ImportError:
            logger.warning(
                "tree-sitter grammars are not installed -- "
                "Install with: pip install tree-sitter tree-sitter-typescript"
            )
            return

        for lang in self._requested_languages:
            func_name = self._GRAMMAR_FUNCTIONS.get(lang)
            if func_name is None:
                logger.warning("No grammar mapped for language '%s'", lang)
                continue
            try:
                ts_lang = Language(getattr(tree_sitter_typescript, func_name)())
                self._parsers[lang] = TSParser(ts_lang)
                logger.debug("Loaded tree-sitter parser for %s", lang)
            except (AttributeError, TypeError, ValueError) as exc:
                logger.warning("Could not load tree-sitter grammar for %s: %s", lang, exc)

    def supports_language(self, language: str) -> bool:
        return language in self._parsers

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @staticmethod
    def language_for(file_path: Path | str) -> Optional[str]:
        return LANGUAGE_MAP.get(Path(file_path).suffix.lower())

    def parse_source(self, source: str, language: str = "tsx") -> Any:
        parser = self._parsers.get(language)
        if parser is None:
            raise GrammarNotAvailable(f"No tree-sitter grammar loaded for '{language}'")
        return parser.parse(source.encode("utf-8"))

    def parse_file(self, file_path: Path | str, source: Optional[str] = None) -> Any:
        if source is None:
            source = Path(file_path).read_text(encoding="utf-8", errors="ignore")
        language = self.language_for(file_path) or "tsx"
        return self.parse_source(source, language)

    def flatten_source(self, source: str, language: str = "tsx") -> List[FlatNode]:
        return flatten(self.parse_source(source, language))

    def flatten_file(self, file_path: Path | str, source: Optional[str] = None) -> List[FlatNode]:
        return flatten(self.parse_file(file_path, source))


# ===================================================================
# Flattening
# ===================================================================

def flatten(tree: Any) -> List[FlatNode]:
    """Flatten a tree-sitter tree into pre-order :class:`FlatNode` records.

    The walk uses a ``TreeCursor`` so very deep trees never hit the
    interpreter's recursion limit. Comment extras already sit in front of
    the node they lead, as siblings, so they come out at that node's depth.
    """
    nodes: List[FlatNode] = []
    cursor = tree.walk()
    depth = 0
    while True:
        node = cursor.node
        stop = node.type in LEAF_KINDS
        nodes.append(_flat_node(node, cursor.field_name, depth, len(nodes), stop))

        if not stop and cursor.goto_first_child():
            depth += 1
            continue

        while not cursor.goto_next_sibling():
            if not cursor.goto_parent():
                return nodes
            depth -= 1


def _flat_node(node: Any, field: Optional[str], depth: int, index: int, stop: bool) -> FlatNode:
    text = node.text.decode("utf-8", errors="replace") if node.text is not None else ""
    return FlatNode(
        index=index,
        depth=depth,
        kind=node.type,
        text=text,
        start_line=node.start_point[0] + 1,
        end_line=node.end_point[0] + 1,
        start_col=node.start_point[1],
        end_col=node.end_point[1],
        has_children=node.child_count > 0 and not stop,
        field=field,
    )


def reconstruct_source(nodes: List[FlatNode]) -> str:
    """Rebuild source text from the terminal nodes, re-spaced by their positions."""
    out: List[str] = []
    line, col = 1, 0
    for node in nodes:
        if not node.is_terminal or not node.text:
            continue
        if node.start_line > line:
            out.append("\n" * (node.start_line - line))
            col = 0
        if node.start_col > col:
            out.append(" " * (node.start_col - col))
        out.append(node.text)
        line, col = node.end_line, node.end_col
    return "".join(out)
