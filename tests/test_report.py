"""Tests for dependency and attention report emitters."""

import json

from tsgraph_cli.models import AnnotatedNode, Category, FileReport, ResolvedImportEdge
from tsgraph_cli.report import (
    attention_csv,
    attention_json,
    attention_log,
    attention_rows,
    dependency_csv,
    directory_dependency_csv,
    directory_dependency_uml,
    display_text,
    file_dependency_uml,
    group_by_directory,
)

EDGES = [
    ResolvedImportEdge("index.ts", ["libs/a.ts", "components/view.tsx"]),
    ResolvedImportEdge("libs/a.ts", ["libs/b.ts"]),
    ResolvedImportEdge("libs/b.ts", []),
    ResolvedImportEdge("components/view.tsx", ["libs/a.ts"]),
]


def _attention(index, line, category, note, label, exported=False, path=None) -> AnnotatedNode:
    node = AnnotatedNode(index=index, depth=1, kind="identifier", text=label, start_line=line, end_line=line)
    node.category = category
    node.note = note
    node.label = label
    node.is_exported = exported
    node.resolved_import_path = path
    return node


NODES = [
    _attention(1, 1, Category.IMPORT, "import-name", "hello"),
    _attention(2, 1, Category.IMPORT, "import-path", "./libs/a", path="libs/a.ts"),
    _attention(3, 3, Category.FUNCTION, "function", "App", exported=True),
    _attention(4, 3, Category.BLOCK, "block-open", "{"),
    _attention(5, 5, Category.COMPONENT, "jsx-open-return", "div"),
    _attention(6, 6, Category.COMPONENT, "jsx-self", "Header"),
    _attention(7, 7, Category.COMPONENT, "jsx-fragment-open", "Fragment"),
    _attention(8, 7, Category.COMPONENT, "jsx-fragment-close", "Fragment"),
    _attention(9, 8, Category.COMPONENT, "jsx-close", "div"),
    _attention(10, 10, Category.BLOCK, "block-close", "}"),
]


class TestDependencyReports:
    """CSV and PlantUML dependency output."""

    def test_dependency_csv(self):
        """One row per edge and an empty import for leaves."""
        assert dependency_csv(EDGES).splitlines() == [
            "source,import",
            "index.ts,libs/a.ts",
            "index.ts,components/view.tsx",
            "libs/a.ts,libs/b.ts",
            "libs/b.ts,",
            "components/view.tsx,libs/a.ts",
        ]

    def test_group_by_directory(self):
        """Top-level files land in the '.' group."""
        groups = group_by_directory(EDGES)

        assert list(groups.dirs) == [".", "libs", "components"]
        assert list(groups.dirs["."].files) == ["index.ts"]
        assert list(groups.dirs["libs"].files) == ["a.ts", "b.ts"]

    def test_file_uml(self):
        """Files are rectangles inside directory packages, edges are arrows."""
        uml = file_dependency_uml(EDGES, "Demo").splitlines()

        assert uml[0] == "@startuml dependencies"
        assert uml[1] == "' title Demo Dependency Graph"
        assert 'package "." as root {' in uml
        assert '  rectangle "index.ts" as index.ts' in uml
        assert '  rectangle "a.ts" as libs_a.ts' in uml
        assert "index.ts ---> libs_a.ts" in uml
        assert "components_view.tsx ---> libs_a.ts" in uml
        assert uml[-1] == "@enduml"

    def test_directory_csv(self):
        """Directory edges skip imports within one directory; '.' prints as root."""
        assert directory_dependency_csv(EDGES, "Demo").splitlines() == [
            "Demo",
            "root,libs",
            "root,components",
            "components,libs",
        ]

    def test_directory_uml(self):
        """Directory PlantUML has packages and directory arrows only."""
        uml = directory_dependency_uml(EDGES, "Demo").splitlines()

        assert "root ---> libs" in uml
        assert "components ---> libs" in uml
        assert not any("rectangle" in line for line in uml)

    def test_untitled_uml_header(self):
        """Without a title the header line has no doubled space."""
        assert file_dependency_uml(EDGES).splitlines()[1] == "' title Dependency Graph"
        assert directory_dependency_uml(EDGES, "").splitlines()[1] == "' title Dependency Graph"

    def test_nested_directories(self):
        """Nested directories become nested packages with joined aliases."""
        uml = file_dependency_uml([ResolvedImportEdge("src/ui/button.tsx", [])]).splitlines()

        assert 'package "src" as src {' in uml
        assert '  package "ui" as src_ui {' in uml
        assert '    rectangle "button.tsx" as src_ui_button.tsx' in uml


class TestAttentionReports:
    """Rows, CSV, JSON and log output for attention nodes."""

    def test_display_text(self):
        """JSX tags are rendered as tags."""
        assert [display_text(n) for n in NODES[4:9]] == ["<div>", "<Header />", "<>", "</>", "</div>"]
        assert display_text(NODES[2]) == "App"

    def test_rows_follow_open_and_close(self):
        """Open notes indent what follows, close notes outdent themselves."""
        rows = attention_rows(NODES)

        assert [r["indent"] for r in rows] == [0, 0, 0, 0, 1, 2, 2, 2, 1, 0]
        assert rows[1]["path"] == "libs/a.ts"
        assert rows[2]["export"] is True
        assert rows[2]["kind"] == "function"

    def test_attention_csv(self):
        """A title row, the header, then indented rows."""
        lines = attention_csv([FileReport("components/App.tsx", ".", NODES)]).splitlines()

        assert lines[0] == "components/App.tsx"
        assert lines[1] == "line,kind,text,export,note,path"
        assert lines[3] == "1,import,./libs/a,,import-path,libs/a.ts"
        assert lines[4] == "3,function,App,export,function,"
        assert lines[7] == '6,component,"    <Header />",,jsx-self,'

    def test_csv_blocks_are_separated(self):
        """Each file gets its own block."""
        reports = [FileReport("a.ts", ".", NODES[:1]), FileReport("b.ts", ".", NODES[:1])]

        assert "\n\nb.ts\n" in attention_csv(reports)

    def test_attention_json(self):
        """JSON groups nodes per file."""
        payload = json.loads(attention_json([FileReport("App.tsx", "src", NODES)]))

        assert payload[0]["source"] == "App.tsx"
        assert payload[0]["base"] == "src"
        assert payload[0]["nodes"][5] == {
            "line": 6,
            "kind": "component",
            "text": "<Header />",
            "indent": 2,
            "export": False,
            "path": "",
        }

    def test_attention_log(self):
        """The log lists imports then indented attentions."""
        log = attention_log([FileReport("index.ts", ".", NODES[2:4])], EDGES)

        assert "# index.ts" in log
        assert "- libs/a.ts" in log
        assert "    3 export function: App #function" in log
        assert "    3 block: { #block-open" in log
