"""Report emitters for dependency edges and attention nodes (CSV, PlantUML, JSON, log)."""

from __future__ import annotations

import json
import posixpath
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from . import csv_format
from .config import UML_FOOTER, UML_HEADER
from .csv_format import CSVItem
from .models import AnnotatedNode, Category, FileReport, ResolvedImportEdge

ATTENTION_COLUMNS = ["line", "kind", "text", "export", "note", "path"]


def _spaces(level: int) -> str:
    return "  " * level


def _uml_header(title: str) -> str:
    return "\n".join(UML_HEADER).replace("<title> ", f"{title} " if title else "")


def _root_is_root(path: Optional[str]) -> str:
    if path is None:
        return "undefined"
    return "root" if path == "." else path


def _alias(path: str) -> str:
    return path.replace("/", "_")


# ===================================================================
# Dependency reports
# ===================================================================

def dependency_csv(edges: Sequence[ResolvedImportEdge]) -> str:
    """``source,import`` rows, one per edge; a file without imports gets an empty import."""
    rows: List[List[CSVItem]] = [csv_format.items(["source", "import"])]
    for edge in edges:
        if edge.imports:
            rows.extend(csv_format.items([edge.source, dep]) for dep in edge.imports)
        else:
            rows.append(csv_format.items([edge.source, ""]))
    return csv_format.stringify(rows)


@dataclass
class DirectoryGroup:
    """Files of one directory plus its sub-directories, keyed by name."""

    alias: str = ""
    dirs: Dict[str, "DirectoryGroup"] = field(default_factory=dict)
    files: Dict[str, ResolvedImportEdge] = field(default_factory=dict)


def group_by_directory(edges: Sequence[ResolvedImportEdge]) -> DirectoryGroup:
    root = DirectoryGroup()
    for edge in edges:
        dirs = posixpath.dirname(edge.source).split("/") if "/" in edge.source else ["."]
        group = root
        for i, name in enumerate(dirs):
            if name not in group.dirs:
                group.dirs[name] = DirectoryGroup(alias="_".join(dirs[: i + 1]))
            group = group.dirs[name]
        group.files[posixpath.basename(edge.source)] = edge
    return root


def file_dependency_uml(edges: Sequence[ResolvedImportEdge], title: str = "") -> str:
    """PlantUML: one ``package`` per directory, one ``rectangle`` per file, an arrow per import."""
    groups = group_by_directory(edges)
    lines = [_uml_header(title)]

    def print_group(group: DirectoryGroup, level: int) -> None:
        for dirname, sub in group.dirs.items():
            lines.append(f'{_spaces(level)}package "{dirname}" as {_alias(_root_is_root(sub.alias))} {{')
            print_group(sub, level + 1)
            lines.append(f"{_spaces(level)}}}")
        for filename, edge in group.files.items():
            lines.append(f'{_spaces(level)}rectangle "{filename}" as {_alias(edge.source)}')

    def print_dependency(group: DirectoryGroup) -> None:
        for sub in group.dirs.values():
            print_dependency(sub)
        for edge in group.files.values():
            for dep in edge.imports:
                lines.append(f"{_alias(edge.source)} ---> {_alias(dep)}")

    print_group(groups, 0)
    print_dependency(groups)
    lines.extend(UML_FOOTER)
    return "\n".join(lines)


def directory_dependencies(groups: DirectoryGroup) -> Dict[str, List[str]]:
    """Directory-level edges: ``dir -> [imported dirs]``, skipping imports within a directory."""
    dependencies: Dict[str, List[str]] = {}

    def collect(group: DirectoryGroup) -> None:
        for sub in group.dirs.values():
            collect(sub)
        for edge in group.files.values():
            src_dir = _alias(posixpath.dirname(edge.source) or ".")
            for dep in edge.imports:
                dep_dir = _alias(posixpath.dirname(dep) or ".")
                if src_dir == dep_dir:
                    continue
                dependencies.setdefault(src_dir, []).append(dep_dir)

    collect(groups)
    return dependencies


def directory_dependency_csv(edges: Sequence[ResolvedImportEdge], title: str = "") -> str:
    dependencies = directory_dependencies(group_by_directory(edges))
    rows = [
        csv_format.items([_root_is_root(src), _root_is_root(dst)])
        for src, imports in dependencies.items()
        for dst in imports
    ]
    return f"{title}\n{csv_format.stringify(rows)}" if rows else title


def directory_dependency_uml(edges: Sequence[ResolvedImportEdge], title: str = "") -> str:
    groups = group_by_directory(edges)
    lines = [_uml_header(title)]

    def print_group(group: DirectoryGroup, level: int) -> None:
        for dirname, sub in group.dirs.items():
            lines.append(f'{_spaces(level)}package "{dirname}" as {_alias(_root_is_root(sub.alias))} {{')
            print_group(sub, level + 1)
            lines.append(f"{_spaces(level)}}}")

    print_group(groups, 0)
    for src, imports in directory_dependencies(groups).items():
        for dst in imports:
            lines.append(f"{_root_is_root(src)} ---> {_root_is_root(dst)}")
    lines.extend(UML_FOOTER)
    return "\n".join(lines)


# ===================================================================
# Attention reports
# ===================================================================

def display_text(node: AnnotatedNode) -> str:
    """Text shown for *node*; JSX tags are rendered as tags."""
    if node.category == Category.COMPONENT:
        if node.note.startswith("jsx-fragment-open"):
            return "<>"
        if node.note.startswith("jsx-fragment-close"):
            return "</>"
        if node.note.startswith("jsx-close"):
            return f"</{node.label}>"
        if node.note.startswith("jsx-self"):
            return f"<{node.label} />"
        return f"<{node.label}>"
    return node.label


def attention_rows(nodes: Sequence[AnnotatedNode]) -> List[Dict[str, object]]:
    """One row per node; indentation follows the open/close notes."""
    rows: List[Dict[str, object]] = []
    level = 0
    for node in nodes:
        if "close" in node.note:
            level = max(level - 1, 0)
        rows.append({
            "line": node.start_line,
            "kind": node.category.value if node.category else "",
            "text": display_text(node),
            "indent": level,
            "export": node.is_exported,
            "note": node.note,
            "path": node.resolved_import_path or "",
        })
        if "open" in node.note:
            level += 1
    return rows


def attention_csv(reports: Sequence[FileReport]) -> str:
    """One CSV block per file: a title row, the header, then the rows."""
    blocks = []
    for report in reports:
        rows: List[List[CSVItem]] = [[CSVItem(report.source)], csv_format.items(ATTENTION_COLUMNS)]
        for row in attention_rows(report.nodes):
            rows.append(csv_format.items([
                str(row["line"]),
                str(row["kind"]),
                _spaces(int(row["indent"])) + str(row["text"]),
                "export" if row["export"] else "",
                str(row["note"]),
                str(row["path"]),
            ]))
        blocks.append(csv_format.stringify(rows))
    return "\n\n".join(blocks)


def attention_json(reports: Sequence[FileReport]) -> str:
    payload = [
        {
            "source": report.source,
            "base": report.base,
            "nodes": [
                {key: row[key] for key in ("line", "kind", "text", "indent", "export", "path")}
                for row in attention_rows(report.nodes)
            ],
        }
        for report in reports
    ]
    return json.dumps(payload, indent=2, ensure_ascii=False)


def attention_log(reports: Sequence[FileReport], edges: Sequence[ResolvedImportEdge] = ()) -> str:
    """Human-readable listing: imports per file, then the indented attention nodes."""
    imports_by_source = {edge.source: edge.imports for edge in edges}
    lines: List[str] = []
    for report in reports:
        lines.append(f"# {report.source}")
        lines.append("")
        lines.append("## imports")
        for dep in imports_by_source.get(report.source, []):
            lines.append(f"- {dep}")
        lines.append("")
        lines.append("## attentions")
        for row in attention_rows(report.nodes):
            marker = "export " if row["export"] else ""
            text = str(row["text"]).replace("\n", "\\n")
            lines.append(
                f"{row['line']:>5} {_spaces(int(row['indent']))}{marker}{row['kind']}: {text} #{row['note']}"
            )
        lines.append("")
    return "\n".join(lines)
