"""Raw syntax-tree dumps of a single file (tree, json, element, src, jsx outlines)."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import List, Optional, Sequence

from .attention import AttentionWalker
from .models import FlatNode
from .parser import reconstruct_source

TREE_MODES = ("tree", "json", "element", "src", "jsx-component", "jsx-element")

JSX_OUTLINE_KINDS = ("return_statement", "function_declaration", "lexical_declaration", "jsx_element", "jsx_self_closing_element")


def _indent(level: int) -> str:
    return "  " * level


def tree_text(nodes: Sequence[FlatNode], source_path: str) -> str:
    lines = [f"### {source_path}"]
    for node in nodes:
        if node.kind == "comment":
            text = node.text.replace("\n", "\\n")
        elif node.kind.startswith("jsx_element"):
            text = node.text
        else:
            text = node.text if node.is_terminal else ""
        lines.append(f"{_indent(node.depth)}{node.kind} {text}".rstrip())
    return "\n".join(lines)


def nodes_json(nodes: Sequence[FlatNode], terminals_only: bool = False) -> str:
    selected = [asdict(n) for n in nodes if n.is_terminal or not terminals_only]
    return json.dumps(selected, indent=2, ensure_ascii=False)


def jsx_components(nodes: Sequence[FlatNode], source_path: str) -> str:
    """Names of the functions and arrow-bound variables that return JSX."""
    walker = AttentionWalker(nodes)
    walker.walk()
    lines = [f"### {source_path}"]
    for index in walker.components:
        name = walker.nodes[index]
        lines.append(f"{'export ' if name.is_exported else ''}{name.text}")
    return "\n".join(lines)


@dataclass
class OutlineEntry:
    level: int
    kind: str
    name: Optional[str] = None
    export: str = ""


def jsx_elements(nodes: Sequence[FlatNode]) -> List[OutlineEntry]:
    """Outline of returns, component declarations and JSX elements, with compressed levels."""
    walker = AttentionWalker(nodes)
    entries: List[OutlineEntry] = []
    for node in walker.nodes:
        if node.kind not in JSX_OUTLINE_KINDS:
            continue
        if node.kind == "return_statement":
            entries.append(OutlineEntry(node.depth, node.kind))
        elif node.kind == "function_declaration":
            name = walker.child_by_field(node.index, "name")
            parent = walker.parent(node.index)
            exported = parent is not None and parent.kind == "export_statement"
            entries.append(OutlineEntry(node.depth, node.kind, name.text if name else None, "export " if exported else ""))
        elif node.kind == "lexical_declaration":
            entry = _arrow_declaration(walker, node.index)
            if entry is not None:
                entries.append(entry)
        else:
            element = node.index
            if node.kind == "jsx_element":
                opening = next((c for c in walker.children(node.index) if c.kind == "jsx_opening_element"), None)
                element = opening.index if opening is not None else element
            name = walker.child_by_field(element, "name")
            entries.append(OutlineEntry(node.depth, node.kind, walker.chain_text(name.index) or name.text if name else None))
    return _compress_levels(entries)


def _arrow_declaration(walker: AttentionWalker, index: int) -> Optional[OutlineEntry]:
    node = walker.nodes[index]
    parent = walker.parent(index)
    export = "export " if parent is not None and parent.kind == "export_statement" else ""
    for declarator in walker.children(index):
        if declarator.kind != "variable_declarator":
            continue
        value = walker.child_by_field(declarator.index, "value")
        if value is None or value.kind != "arrow_function":
            continue
        name = walker.child_by_field(declarator.index, "name")
        return OutlineEntry(node.depth, value.kind, name.text if name is not None else None, export)
    return None


def _compress_levels(entries: List[OutlineEntry]) -> List[OutlineEntry]:
    """Renumber depths so nested entries sit exactly one level below their outline parent."""
    levels: List[int] = []
    for entry in entries:
        while levels and levels[-1] > entry.level:
            levels.pop()
        if not levels or levels[-1] < entry.level:
            levels.append(entry.level)
        entry.level = len(levels) - 1
    return entries


def jsx_element_text(nodes: Sequence[FlatNode], source_path: str) -> str:
    lines = [f"### {source_path}"]
    for entry in jsx_elements(nodes):
        name = f' "{entry.name}"' if entry.name is not None else ""
        lines.append(f"{_indent(entry.level)}{entry.export}{entry.kind}{name}")
    return "\n".join(lines)


def render_tree(nodes: Sequence[FlatNode], source_path: str, mode: str = "tree") -> str:
    if mode == "tree":
        return tree_text(nodes, source_path)
    if mode == "json":
        return nodes_json(nodes)
    if mode == "element":
        return nodes_json(nodes, terminals_only=True)
    if mode == "src":
        return reconstruct_source(nodes)
    if mode == "jsx-component":
        return jsx_components(nodes, source_path)
    if mode == "jsx-element":
        return jsx_element_text(nodes, source_path)
    raise ValueError(f"Unknown tree mode '{mode}'. Use one of: {', '.join(TREE_MODES)}")
