"""Tests for tree-sitter parsing and flattening."""

from pathlib import Path

import pytest

from tsgraph_cli.parser import LANGUAGE_MAP, GrammarNotAvailable, TypeScriptParser, reconstruct_source


SAMPLE = """import { a } from './a';

/* block
   comment */
export function add(x: number, y = "s p a c e") {
  return x + a.b(y);
}
"""


def test_language_for_extensions():
    """Extensions map onto the typescript or tsx grammar."""
    assert TypeScriptParser.language_for("a.ts") == "typescript"
    assert TypeScriptParser.language_for("a.tsx") == "tsx"
    assert TypeScriptParser.language_for("a.jsx") == "tsx"
    assert TypeScriptParser.language_for("A.JS") == "tsx"
    assert TypeScriptParser.language_for("a.py") is None
    assert set(LANGUAGE_MAP.values()) == {"typescript", "tsx"}


def test_unknown_language_raises(ts_parser):
    """Asking for a grammar that was never loaded raises GrammarNotAvailable."""
    with pytest.raises(GrammarNotAvailable):
        ts_parser.parse_source("let a = 1;", "python")


def test_flatten_is_preorder(ts_parser):
    """The root comes first at depth 0 and indices follow list order."""
    nodes = ts_parser.flatten_source(SAMPLE, "typescript")

    assert nodes[0].kind == "program"
    assert nodes[0].depth == 0
    assert [n.index for n in nodes] == list(range(len(nodes)))
    assert all(b.depth <= a.depth + 1 for a, b in zip(nodes, nodes[1:]))


def test_flatten_records_fields(ts_parser):
    """Field names from the grammar are carried on each node."""
    nodes = ts_parser.flatten_source("const answer = 42;", "typescript")

    name = next(n for n in nodes if n.kind == "identifier")
    value = next(n for n in nodes if n.kind == "number")
    assert name.field == "name"
    assert value.field == "value"


def test_lines_are_one_based(ts_parser):
    """Line numbers start at 1."""
    nodes = ts_parser.flatten_source("let a = 1;\nlet b = 2;", "typescript")

    b = next(n for n in nodes if n.kind == "identifier" and n.text == "b")
    assert b.start_line == 2
    assert nodes[0].start_line == 1


def test_strings_and_comments_are_terminals(ts_parser):
    """Strings and comments are not descended into."""
    nodes = ts_parser.flatten_source(SAMPLE, "typescript")

    for node in nodes:
        if node.kind in ("string", "comment"):
            assert not node.has_children
    assert not any(n.kind == "string_fragment" for n in nodes)


def test_round_trip_reconstructs_source(ts_parser):
    """Terminal texts re-spaced by position rebuild the source."""
    nodes = ts_parser.flatten_source(SAMPLE, "typescript")

    assert reconstruct_source(nodes) == SAMPLE.rstrip("\n")


def test_flatten_file_picks_grammar(ts_parser, temp_dir: Path):
    """A .tsx file is parsed with the JSX-aware grammar."""
    path = temp_dir / "view.tsx"
    path.write_text("const v = <div />;\n")

    nodes = ts_parser.flatten_file(path)

    assert any(n.kind == "jsx_self_closing_element" for n in nodes)
