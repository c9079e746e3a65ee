"""Attention walker: annotate a flattened syntax tree with points of interest.

The walker visits the flat node list with an index cursor and an explicit
:class:`AncestorStack` rebuilt from depth deltas. At every node the stack's
``field:kind`` path is tested against an ordered table of rule groups.
Within one group the first matching alternative wins; separate groups are
independent concerns and may all fire on the same node.

Cross-node links (a declaration and its name, a returned JSX tag and the
component that returns it) are stored as integer indices into the node
arena, so either side can be discovered first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .ancestors import AncestorStack, Pattern, compile_pattern, path_suffix_matches
from .models import AnnotatedNode, Category, FlatNode

logger = logging.getLogger(__name__)

ImportResolver = Callable[[str], Optional[str]]

# Kinds a JSX tag name can take.
TAG = "identifier|member_expression|nested_identifier|jsx_namespace_name"
TAG_KINDS = frozenset(TAG.split("|"))

NAMED_HOSTS = ("function_declaration", "generator_function_declaration", "method_definition", "variable_declarator")
ANONYMOUS_HOSTS = ("arrow_function", "function_expression", "function", "generator_function")
CALLBACK_KINDS = frozenset({"arrow_function", "function_expression", "function"})
JSX_TAG_PARENTS = frozenset({"jsx_opening_element", "jsx_closing_element", "jsx_self_closing_element"})
CHAIN_PARENTS = frozenset({"member_expression", "nested_identifier"})
CHAIN_LEAVES = frozenset({
    "identifier", "property_identifier", "private_property_identifier",
    "shorthand_property_identifier", "this", "super", "import", "type_identifier",
})
CHAIN_DOTS = frozenset({".", "?.", "optional_chain"})
CHAIN_WRAPPERS = frozenset({"parenthesized_expression", "non_null_expression"})


def compact(text: str) -> str:
    """Strip every whitespace character for one-line display."""
    return "".join(text.split())


@dataclass
class PathRule:
    """Alternatives sharing one action; ``options[i]`` goes with ``patterns[i]``."""

    patterns: Tuple[Pattern, ...]
    action: Callable[[Any], None]
    options: Tuple[Any, ...] = ()
    when: Optional[Callable[[], bool]] = None

    @classmethod
    def of(
        cls,
        expressions: Sequence[str],
        action: Callable[[Any], None],
        options: Sequence[Any] = (),
        when: Optional[Callable[[], bool]] = None,
    ) -> "PathRule":
        return cls(tuple(compile_pattern(e) for e in expressions), action, tuple(options), when)

    def try_match(self, path: Sequence[Tuple[Optional[str], str]]) -> bool:
        for i, pattern in enumerate(self.patterns):
            if not path_suffix_matches(path, pattern):
                continue
            if self.when is not None and not self.when():
                continue
            self.action(self.options[i] if i < len(self.options) else None)
            return True
        return False


@dataclass
class _Binding:
    name: str
    category: Category
    note: str
    exported: bool = False


class AttentionWalker:
    """Single-pass, stack-based pattern matcher over flat syntax nodes."""

    def __init__(self, nodes: Sequence[FlatNode], resolve_import: Optional[ImportResolver] = None) -> None:
        self.nodes: List[AnnotatedNode] = [
            n if isinstance(n, AnnotatedNode) else AnnotatedNode.from_flat(n) for n in nodes
        ]
        self.resolve_import = resolve_import
        self.stack = AncestorStack()
        self.current: Optional[AnnotatedNode] = None
        self.components: List[int] = []
        self._attention: Dict[int, AnnotatedNode] = {}
        self._bindings: Dict[int, _Binding] = {}
        self._ends, self._parents = self._index_subtrees(self.nodes)
        self._groups = self._build_rules()

    # ------------------------------------------------------------------
    # Arena navigation
    # ------------------------------------------------------------------

    @staticmethod
    def _index_subtrees(nodes: Sequence[FlatNode]) -> Tuple[List[int], List[Optional[int]]]:
        """Subtree end (exclusive) and parent index of every node, from depths alone."""
        ends = [len(nodes)] * len(nodes)
        parents: List[Optional[int]] = [None] * len(nodes)
        open_nodes: List[int] = []
        for i, node in enumerate(nodes):
            while open_nodes and nodes[open_nodes[-1]].depth >= node.depth:
                ends[open_nodes.pop()] = i
            parents[i] = open_nodes[-1] if open_nodes else None
            open_nodes.append(i)
        return ends, parents

    def children(self, index: int) -> List[AnnotatedNode]:
        result = []
        j = index + 1
        while j < self._ends[index]:
            result.append(self.nodes[j])
            j = self._ends[j]
        return result

    def child_by_field(self, index: int, field: str) -> Optional[AnnotatedNode]:
        for child in self.children(index):
            if child.field == field:
                return child
        return None

    def parent(self, index: int) -> Optional[AnnotatedNode]:
        parent = self._parents[index]
        return self.nodes[parent] if parent is not None else None

    def chain_text(self, index: int) -> str:
        """Rebuild a dotted access chain (``a.b?.c``) from its tokens."""
        node = self.nodes[index]
        if node.kind in CHAIN_PARENTS:
            return "".join(
                child.text if child.kind in CHAIN_DOTS else self.chain_text(child.index)
                for child in self.children(index)
            )
        if node.kind == "call_expression":
            callee = self.child_by_field(index, "function")
            return f"{self.chain_text(callee.index)}()" if callee is not None else ""
        if node.kind == "subscript_expression":
            obj = self.child_by_field(index, "object")
            key = self.child_by_field(index, "index")
            if obj is None:
                return ""
            return f"{self.chain_text(obj.index)}[{compact(key.text) if key is not None else ''}]"
        if node.kind == "parenthesized_expression":
            inner = next((c for c in self.children(index) if c.kind not in ("(", ")")), None)
            return f"({self.chain_text(inner.index)})" if inner is not None else ""
        if node.kind == "non_null_expression":
            inner = next((c for c in self.children(index) if c.kind != "!"), None)
            return f"{self.chain_text(inner.index)}!" if inner is not None else ""
        if node.kind in CHAIN_LEAVES:
            return compact(node.text)
        return ""

    # ------------------------------------------------------------------
    # Walk
    # ------------------------------------------------------------------

    def walk(self) -> List[AnnotatedNode]:
        """Annotate every node and return the attention nodes in discovery order."""
        for node in self.nodes:
            self.stack.enter(node)
            self.current = node
            path = self.stack.steps()
            for group in self._groups:
                for rule in group:
                    if rule.try_match(path):
                        break
            if logger.isEnabledFor(logging.DEBUG):
                self._debug_log(node)
        return self.attention_nodes()

    def attention_nodes(self) -> List[AnnotatedNode]:
        ordered = sorted(self._attention.values(), key=lambda n: n.sequence_index)
        return [n for n in ordered if n.label]

    def _debug_log(self, node: AnnotatedNode) -> None:
        if (
            node.kind.endswith(("declaration", "declarator"))
            or node.kind in ("identifier", "comment", ")")
            or node.kind.startswith("jsx_")
        ):
            logger.debug("%s %s", self.stack.ancestor_path, compact(node.text))

    def _attend(self, node: AnnotatedNode, category: Category, note: str, label: Optional[str] = None) -> None:
        node.category = category
        node.note = note
        node.label = compact(node.text) if label is None else label
        self._attention[node.index] = node

    # ------------------------------------------------------------------
    # Rule table
    # ------------------------------------------------------------------

    def _build_rules(self) -> List[List[PathRule]]:
        return [
            # Import declarations
            [
                PathRule.of(["import_statement"], self._tag_import_statement),
                PathRule.of(
                    [
                        "import_statement/import_clause/identifier",
                        "import_statement/import_require_clause/identifier",
                        "import_statement/import_clause/named_imports/import_specifier/alias:identifier",
                        "import_statement/import_clause/named_imports/import_specifier/name:identifier",
                        "import_statement/import_clause/namespace_import/identifier",
                    ],
                    self._tag_import_name,
                    options=["import-default", "import-default", "import-alias", "import-name", "import-namespace"],
                ),
                PathRule.of(
                    [
                        "import_statement/source:string",
                        "import_statement/import_require_clause/source:string",
                    ],
                    self._tag_import_path,
                ),
            ],
            # Variable / function names
            [
                PathRule.of(["variable_declarator/name:identifier"], self._tag_declared_name,
                            options=[(Category.VARIABLE, "variable", -2)]),
                PathRule.of(
                    [
                        "function_declaration|generator_function_declaration/name:identifier",
                        "method_definition/name:*",
                    ],
                    self._tag_declared_name,
                    options=[(Category.FUNCTION, "function", -1), (Category.FUNCTION, "method", -1)],
                ),
            ],
            # Class names
            [
                PathRule.of(
                    ["class_declaration|abstract_class_declaration|class/name:type_identifier|identifier"],
                    self._tag_declared_name,
                    options=[(Category.CLASS, "class", -1)],
                ),
            ],
            # Call expressions
            [
                PathRule.of(["call_expression", "new_expression"], self._tag_call,
                            options=[("function", "call"), ("constructor", "new")]),
            ],
            # Components: return shapes first, then plain JSX usage
            [
                PathRule.of(
                    [
                        f"return_statement/parenthesized_expression?/jsx_element/jsx_opening_element/{TAG}",
                        f"return_statement/parenthesized_expression?/jsx_self_closing_element/{TAG}",
                        f"arrow_function/parenthesized_expression?/jsx_element/jsx_opening_element/{TAG}",
                        f"arrow_function/parenthesized_expression?/jsx_self_closing_element/{TAG}",
                    ],
                    self._tag_returned_component,
                    options=["jsx-open-return", "jsx-self-return", "jsx-open", "jsx-self"],
                ),
                PathRule.of(
                    [
                        "return_statement/parenthesized_expression?/jsx_element/jsx_opening_element",
                        "arrow_function/parenthesized_expression?/jsx_element/jsx_opening_element",
                    ],
                    self._tag_returned_component,
                    options=["jsx-fragment-open-return", "jsx-fragment-open"],
                    when=self._is_fragment,
                ),
                PathRule.of(
                    [
                        f"jsx_opening_element/{TAG}",
                        f"jsx_self_closing_element/{TAG}",
                        f"jsx_closing_element/{TAG}",
                    ],
                    self._tag_component,
                    options=["jsx-open", "jsx-self", "jsx-close"],
                ),
                PathRule.of(
                    ["jsx_opening_element", "jsx_closing_element"],
                    self._tag_component,
                    options=["jsx-fragment-open", "jsx-fragment-close"],
                    when=self._is_fragment,
                ),
            ],
            # Property access outside JSX tags and callees
            [
                PathRule.of(["member_expression"], self._tag_property, when=self._is_outer_property_chain),
            ],
            # Parameters, including destructured ones
            [
                PathRule.of(
                    [
                        "formal_parameters/required_parameter|optional_parameter/pattern:identifier",
                        "arrow_function/parameter:identifier",
                    ],
                    self._tag_parameter,
                    options=["param", "param"],
                ),
                PathRule.of(
                    ["formal_parameters/required_parameter|optional_parameter/pattern:rest_pattern/identifier"],
                    self._tag_parameter,
                    options=["rest-param"],
                ),
                PathRule.of(["object_pattern"], self._bind_object_pattern),
                PathRule.of(
                    [
                        "object_pattern/shorthand_property_identifier_pattern",
                        "object_pattern/object_assignment_pattern/left:shorthand_property_identifier_pattern",
                        "object_pattern/pair_pattern/value:identifier",
                    ],
                    self._tag_binding_field,
                    options=[-1, -2, -2],
                ),
            ],
            # Arrow function punctuation
            [
                PathRule.of(
                    ["arrow_function/formal_parameters/(", "arrow_function/formal_parameters/)"],
                    self._tag_punctuation,
                    options=[(Category.PAREN, "paren-open"), (Category.PAREN, "paren-close")],
                ),
                PathRule.of(["arrow_function/=>"], self._tag_punctuation, options=[(Category.ARROW, "arrow")]),
                PathRule.of(
                    ["call_expression/arguments/(", "call_expression/arguments/)"],
                    self._tag_punctuation,
                    options=[(Category.PAREN, "call-paren-open"), (Category.PAREN, "call-paren-close")],
                    when=self._arguments_have_callback,
                ),
            ],
            # Functions bound to variables
            [
                PathRule.of(
                    [
                        "variable_declarator/value:arrow_function",
                        "variable_declarator/value:function_expression|function|generator_function",
                    ],
                    self._bind_function_value,
                    options=["arrow-bound", "function-bound"],
                ),
            ],
            # Object literals
            [
                PathRule.of(
                    ["object/{", "object/}"],
                    self._tag_punctuation,
                    options=[(Category.OBJECT, "object-open"), (Category.OBJECT, "object-close")],
                ),
                PathRule.of(
                    ["object/pair/key:property_identifier", "object/shorthand_property_identifier"],
                    self._tag_object_property,
                ),
            ],
            # Export markers
            [
                PathRule.of(["export_statement/export"], self._mark_exported, options=[-2]),
                PathRule.of(
                    [
                        "export_statement/export_clause/export_specifier/alias:identifier",
                        "export_statement/export_clause/export_specifier/name:identifier",
                        "export_statement/value:identifier",
                    ],
                    self._tag_export_name,
                    options=["export-alias", "export-name", "export-default"],
                ),
            ],
            # Block delimiters
            [
                PathRule.of(
                    ["statement_block|class_body/{", "statement_block|class_body/}"],
                    self._tag_punctuation,
                    options=[(Category.BLOCK, "block-open"), (Category.BLOCK, "block-close")],
                ),
            ],
            # Comments
            [
                PathRule.of(["comment", "html_comment"], self._tag_comment),
            ],
        ]

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def _is_fragment(self) -> bool:
        return not any(c.kind in TAG_KINDS for c in self.children(self.current.index))

    def _is_outer_property_chain(self) -> bool:
        # Climb through wrappers that can sit inside a longer chain.
        node = self.current
        offset = -1
        parent = self.stack.last(offset)
        while parent is not None and (
            parent.kind in CHAIN_WRAPPERS or (parent.kind == "subscript_expression" and node.field == "object")
        ):
            node = parent
            offset -= 1
            parent = self.stack.last(offset)
        if parent is None:
            return True
        if parent.kind in CHAIN_PARENTS or parent.kind in JSX_TAG_PARENTS:
            return False
        if parent.kind == "call_expression" and node.field == "function":
            return False
        if parent.kind == "new_expression" and node.field == "constructor":
            return False
        return True

    def _arguments_have_callback(self) -> bool:
        arguments = self.stack.last(-1)
        return any(c.kind in CALLBACK_KINDS for c in self.children(arguments.index))

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _tag_import_statement(self, _option: Any) -> None:
        node = self.current
        source = self.child_by_field(node.index, "source")
        if source is None:
            clause = next((c for c in self.children(node.index) if c.kind == "import_require_clause"), None)
            if clause is not None:
                source = self.child_by_field(clause.index, "source")
        if source is not None:
            node.linked_identifier = source.index
        # Non-terminal: no display label of its own, the path and names carry it.
        self._attend(node, Category.IMPORT, "import-declaration", label="")

    def _tag_import_name(self, note: str) -> None:
        node = self.current
        statement = self.stack.find_from_last(("import_statement",))
        if statement is not None:
            node.linked_identifier = statement.index
        self._attend(node, Category.IMPORT, note)

    def _tag_import_path(self, _option: Any) -> None:
        node = self.current
        specifier = node.text.strip()[1:-1] if len(node.text.strip()) >= 2 else node.text
        if self.resolve_import is not None:
            node.resolved_import_path = self.resolve_import(specifier)
            statement = self.stack.find_from_last(("import_statement",))
            if statement is not None:
                statement.resolved_import_path = node.resolved_import_path
        self._attend(node, Category.IMPORT, "import-path", label=specifier)

    def _tag_declared_name(self, option: Tuple[Category, str, int]) -> None:
        category, note, statement_offset = option
        node = self.current
        declaration = self.stack.last(-1)
        declaration.linked_identifier = node.index
        exported = self._statement_exported(statement_offset)
        if exported:
            for i in range(statement_offset, 0):
                self.stack.last(i).is_exported = True
        node.is_exported = exported
        self._attend(node, category, note)

    def _statement_exported(self, statement_offset: int) -> bool:
        """Whether the statement at *statement_offset* sits in an exported ``export_statement``."""
        statement = self.stack.last(statement_offset)
        if statement is None:
            return False
        if statement.is_exported:
            return True
        parent = self.stack.last(statement_offset - 1)
        return parent is not None and parent.kind == "export_statement" and parent.is_exported

    def _tag_call(self, option: Tuple[str, str]) -> None:
        field, note = option
        callee = self.child_by_field(self.current.index, field)
        label = self.chain_text(callee.index) if callee is not None else ""
        self._attend(self.current, Category.CALL, note, label=label)

    def _tag_returned_component(self, note: str) -> None:
        self._tag_component(note)
        name_index = self._enclosing_declaration_name()
        if name_index is None:
            return
        self.current.linked_identifier = name_index
        if name_index not in self.components:
            self.components.append(name_index)

    def _tag_component(self, note: str) -> None:
        node = self.current
        if "fragment" in note:
            label = "Fragment"
        elif node.kind in CHAIN_PARENTS:
            label = self.chain_text(node.index)
        else:
            label = compact(node.text)
        self._attend(node, Category.COMPONENT, note, label=label)

    def _enclosing_declaration_name(self) -> Optional[int]:
        for i in range(len(self.stack) - 1, -1, -1):
            node = self.stack[i]
            if node.kind in NAMED_HOSTS:
                return node.linked_identifier
            if node.kind in ANONYMOUS_HOSTS:
                parent = self.stack[i - 1] if i > 0 else None
                if parent is not None and parent.kind == "variable_declarator":
                    return parent.linked_identifier
                return None
        return None

    def _tag_property(self, _option: Any) -> None:
        self._attend(self.current, Category.PROPERTY, "property", label=self.chain_text(self.current.index))

    def _tag_parameter(self, note: str) -> None:
        self._attend(self.current, Category.PARAMETER, note)

    def _bind_object_pattern(self, _option: Any) -> None:
        node = self.current
        parent = self.stack.last(-1)
        if parent is None:
            return
        if parent.kind in ("required_parameter", "optional_parameter"):
            self._bindings[node.index] = _Binding(self._parameter_binding_name(parent), Category.PARAMETER, "param-field")
        elif parent.kind == "variable_declarator" and node.field == "name":
            value = self.child_by_field(parent.index, "value")
            name = compact(value.text) if value is not None else "_"
            self._bindings[node.index] = _Binding(
                name, Category.VARIABLE, "destructured", exported=self._statement_exported(-2)
            )
        elif parent.kind == "pair_pattern" and node.field == "value":
            outer = self._bindings.get(self.stack.last(-2).index)
            key = self.child_by_field(parent.index, "key")
            if outer is not None and key is not None:
                self._bindings[node.index] = _Binding(
                    f"{outer.name}.{compact(key.text)}", outer.category, outer.note, outer.exported
                )

    def _parameter_binding_name(self, parameter: AnnotatedNode) -> str:
        annotation = next((c for c in self.children(parameter.index) if c.kind == "type_annotation"), None)
        if annotation is not None:
            name = compact(annotation.text).lstrip(":")
            if name:
                return name
        formal = self.parent(parameter.index)
        siblings = [c for c in self.children(formal.index) if c.kind.endswith("_parameter")] if formal else []
        position = next((i for i, c in enumerate(siblings) if c.index == parameter.index), 0)
        return f"arg{position}"

    def _tag_binding_field(self, pattern_offset: int) -> None:
        node = self.current
        pattern = self.stack.last(pattern_offset)
        binding = self._bindings.get(pattern.index) if pattern is not None else None
        if binding is None:
            return
        if node.field == "value":
            key = self.child_by_field(self.stack.last(-1).index, "key")
            field_name = compact(key.text) if key is not None else compact(node.text)
        else:
            field_name = compact(node.text)
        node.is_exported = binding.exported
        self._attend(node, binding.category, binding.note, label=f"{binding.name}.{field_name}")

    def _tag_punctuation(self, option: Tuple[Category, str]) -> None:
        category, note = option
        self._attend(self.current, category, note)

    def _bind_function_value(self, note: str) -> None:
        declarator = self.stack.last(-1)
        if declarator.linked_identifier is None:
            return
        name = self.nodes[declarator.linked_identifier]
        name.note = note
        name.is_exported = name.is_exported or declarator.is_exported

    def _tag_object_property(self, _option: Any) -> None:
        self._attend(self.current, Category.PROPERTY, "object-prop")

    def _mark_exported(self, offset: int) -> None:
        for node in self.stack[offset:]:
            node.is_exported = True

    def _tag_export_name(self, note: str) -> None:
        self.current.is_exported = True
        self._attend(self.current, Category.EXPORT, note)

    def _tag_comment(self, _option: Any) -> None:
        text = self.current.text
        if text.startswith("/**"):
            note = "doc-comment"
        elif text.startswith(("/*", "<!--")):
            note = "block-comment"
        else:
            note = "line-comment"
        self._attend(self.current, Category.COMMENT, note, label=text)


def annotate(nodes: Sequence[FlatNode], resolve_import: Optional[ImportResolver] = None) -> List[AnnotatedNode]:
    """Run the walker over *nodes* and return the filtered, ordered attention nodes."""
    return AttentionWalker(nodes, resolve_import).walk()
