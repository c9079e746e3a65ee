"""Ancestor stack and path-suffix patterns used by the attention walker.

A pattern is written as ``/``-separated steps, matched against the *end*
of the ancestor path:

* ``kind`` matches a node of that tree-sitter kind,
* ``field:kind`` additionally requires the tree-sitter field name,
* ``a|b`` accepts either kind, ``*`` accepts any node,
* a trailing ``?`` makes the step optional.

Anonymous tokens are written literally, e.g. ``formal_parameters/(``.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import FrozenSet, List, Optional, Sequence, Tuple

from .models import AnnotatedNode


@dataclass(frozen=True)
class PathStep:
    kinds: Optional[FrozenSet[str]]
    field: Optional[str] = None
    optional: bool = False

    def accepts(self, field: Optional[str], kind: str) -> bool:
        if self.kinds is not None and kind not in self.kinds:
            return False
        if self.field is not None and field != self.field:
            return False
        return True


Pattern = Tuple[PathStep, ...]


@lru_cache(maxsize=None)
def compile_pattern(expression: str) -> Pattern:
    steps: List[PathStep] = []
    for raw in expression.split("/"):
        optional = raw.endswith("?") and len(raw) > 1
        if optional:
            raw = raw[:-1]
        field: Optional[str] = None
        # A bare ":" is a token, "name:identifier" is a field-qualified step.
        if ":" in raw and raw != ":" and not raw.startswith(":"):
            field, raw = raw.split(":", 1)
        kinds = None if raw == "*" else frozenset(raw.split("|"))
        steps.append(PathStep(kinds=kinds, field=field, optional=optional))
    return tuple(steps)


def path_suffix_matches(path: Sequence[Tuple[Optional[str], str]], pattern: Pattern) -> bool:
    """True when *pattern* matches the end of *path* (a list of ``(field, kind)`` steps)."""
    return _match_suffix(path, len(path), pattern, len(pattern))


def _match_suffix(
    path: Sequence[Tuple[Optional[str], str]],
    path_end: int,
    pattern: Pattern,
    pattern_end: int,
) -> bool:
    if pattern_end == 0:
        return True
    step = pattern[pattern_end - 1]
    if path_end > 0 and step.accepts(*path[path_end - 1]):
        if _match_suffix(path, path_end - 1, pattern, pattern_end - 1):
            return True
    if step.optional:
        return _match_suffix(path, path_end, pattern, pattern_end - 1)
    return False


class AncestorStack(list):
    """Nodes from the tree root down to the node currently being visited.

    The ``(field, kind)`` projection is kept alongside the nodes so that
    matching does not rebuild it for every pattern.
    """

    def __init__(self) -> None:
        super().__init__()
        self._path: List[Tuple[Optional[str], str]] = []

    def enter(self, node: AnnotatedNode) -> None:
        """Truncate back to *node*'s depth and push it."""
        del self[node.depth:]
        del self._path[node.depth:]
        self.append(node)
        self._path.append((node.field, node.kind))

    def last(self, offset: int = 0) -> Optional[AnnotatedNode]:
        index = len(self) - 1 + offset
        if 0 <= index < len(self):
            return self[index]
        return None

    def find_from_last(self, kinds: Sequence[str], start_offset: int = 0) -> Optional[AnnotatedNode]:
        for i in range(len(self) - 1 + start_offset, -1, -1):
            if self[i].kind in kinds:
                return self[i]
        return None

    def steps(self) -> List[Tuple[Optional[str], str]]:
        return self._path

    def matches(self, pattern: Pattern) -> bool:
        return path_suffix_matches(self._path, pattern)

    @property
    def ancestor_path(self) -> str:
        return "/".join(f"{field}:{kind}" if field else kind for field, kind in self._path)
