"""Core data models shared by the scanner, the flattener, the walker and the emitters."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


@dataclass
class ResolvedImportEdge:
    source: str
    imports: List[str] = field(default_factory=list)


@dataclass
class FlatNode:
    """One syntax-tree node in pre-order, with its nesting depth instead of pointers."""

    index: int
    depth: int
    kind: str
    text: str
    start_line: int
    end_line: int
    start_col: int = 0
    end_col: int = 0
    has_children: bool = False
    field: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return not self.has_children


class Category(str, Enum):
    IMPORT = "import"
    VARIABLE = "variable"
    FUNCTION = "function"
    CLASS = "class"
    CALL = "call"
    COMPONENT = "component"
    COMMENT = "comment"
    PROPERTY = "property"
    OBJECT = "object"
    BLOCK = "block"
    PARAMETER = "parameter"
    EXPORT = "export"
    ARROW = "arrow"
    PAREN = "paren"


@dataclass
class AnnotatedNode(FlatNode):
    category: Optional[Category] = None
    note: str = ""
    label: str = ""
    resolved_import_path: Optional[str] = None
    linked_identifier: Optional[int] = None
    is_exported: bool = False

    @property
    def sequence_index(self) -> int:
        return self.index

    @classmethod
    def from_flat(cls, node: FlatNode) -> "AnnotatedNode":
        return cls(
            index=node.index,
            depth=node.depth,
            kind=node.kind,
            text=node.text,
            start_line=node.start_line,
            end_line=node.end_line,
            start_col=node.start_col,
            end_col=node.end_col,
            has_children=node.has_children,
            field=node.field,
        )


@dataclass
class FileReport:
    source: str
    base: str
    nodes: List[AnnotatedNode] = field(default_factory=list)
