"""Import graph scanner: transitive closure of the files an entry file imports."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .models import ResolvedImportEdge
from .resolver import ModuleResolver, relative_to_base

logger = logging.getLogger(__name__)

# Import / require forms recognised without a full parse.
IMPORT_PATTERNS = [
    # ES module import: import x from 'mod', import { a } from 'mod', import * as m from 'mod'
    re.compile(r"""\bimport\s*(?:type\s+)?[\w$*{}\s,]+?\s*from\s*['"]([^'"\n]+)['"]"""),
    # Side-effect import: import 'mod'
    re.compile(r"""\bimport\s*['"]([^'"\n]+)['"]"""),
    # Re-export: export { a } from 'mod', export * from 'mod'
    re.compile(r"""\bexport\s*(?:type\s+)?(?:\*(?:\s+as\s+[\w$]+)?|\{[^}]*\})\s*from\s*['"]([^'"\n]+)['"]"""),
    # CommonJS require: require('mod'), including import x = require('mod')
    re.compile(r"""\brequire\s*\(\s*['"]([^'"\n]+)['"]\s*\)"""),
    # Dynamic import: import('mod')
    re.compile(r"""\bimport\s*\(\s*['"]([^'"\n]+)['"]\s*\)"""),
]

# String literals are matched so comment markers inside them are left alone.
_LEXEME_RE = re.compile(
    r"""'(?:\\.|[^'\\\n])*'"""
    r'''|"(?:\\.|[^"\\\n])*"'''
    r"""|`(?:\\.|[^`\\])*`"""
    r"""|/\*.*?(?:\*/|\Z)"""
    r"""|//[^\n]*""",
    re.DOTALL,
)


def _blank_comments(source: str) -> str:
    """Replace comments with whitespace, keeping offsets, line breaks and string literals."""

    def blank(match: "re.Match[str]") -> str:
        text = match.group(0)
        if text.startswith(("//", "/*")):
            return re.sub(r"[^\n]", " ", text)
        return text

    return _LEXEME_RE.sub(blank, source)


def preprocess_imports(source: str) -> List[str]:
    """Return the raw import specifiers of *source* in source order."""
    text = _blank_comments(source)
    found: List[Tuple[int, str]] = []
    seen_offsets = set()
    for pattern in IMPORT_PATTERNS:
        for match in pattern.finditer(text):
            offset = match.start(1)
            if offset in seen_offsets:
                continue
            seen_offsets.add(offset)
            found.append((offset, match.group(1)))
    found.sort()
    return [specifier for _, specifier in found]


class ImportScanner:
    """A scanning session; its memo guarantees each file is read at most once.

    The memo is keyed by absolute path and kept in discovery order, so
    cycles and diamond-shaped graphs terminate without re-parsing.
    """

    def __init__(self, base_dir: str = "", resolver: Optional[ModuleResolver] = None) -> None:
        self.base_dir = base_dir
        self.resolver = resolver or ModuleResolver()
        self.visited: Dict[str, List[str]] = {}

    def scan(self, entry_file: str | Path) -> List[ResolvedImportEdge]:
        pending = [os.path.abspath(entry_file)]
        while pending:
            path = pending.pop()
            if path in self.visited:
                continue
            imports = self._read_imports(path)
            if imports is None:
                continue
            self.visited[path] = imports
            # Reversed so the first import is visited first (recursive pre-order).
            pending.extend(reversed([p for p in imports if p not in self.visited]))
        return self.edges()

    def edges(self) -> List[ResolvedImportEdge]:
        return [
            ResolvedImportEdge(
                source=relative_to_base(src, self.base_dir),
                imports=[relative_to_base(dst, self.base_dir) for dst in imports],
            )
            for src, imports in self.visited.items()
        ]

    def _read_imports(self, path: str) -> Optional[List[str]]:
        try:
            source = Path(path).read_text(encoding="utf-8", errors="ignore")
        except OSError as exc:
            logger.error("Could not read %s: %s", path, exc)
            return None

        logger.debug("Scanning %s", path)
        from_dir = os.path.dirname(path)
        resolved: List[str] = []
        for specifier in preprocess_imports(source):
            target = self.resolver.resolve(from_dir, self.base_dir, specifier)
            if target is None:
                continue
            target_path = str(target)
            if target_path not in resolved:
                resolved.append(target_path)
        return resolved


def scan(
    entry_file: str | Path,
    base_dir: str = "",
    session: Optional[ImportScanner] = None,
) -> List[ResolvedImportEdge]:
    """Scan the import closure of *entry_file*, relativized against *base_dir*."""
    scanner = session or ImportScanner(base_dir)
    return scanner.scan(entry_file)
