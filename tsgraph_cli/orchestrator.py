"""Orchestrator coordinating the scanner, the parser and the attention walker."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional, Tuple

from .attention import AttentionWalker, ImportResolver
from .models import FileReport, FlatNode, ResolvedImportEdge
from .parser import TypeScriptParser
from .resolver import ModuleResolver, relative_to_base
from .scanner import ImportScanner

logger = logging.getLogger(__name__)


class Orchestrator:
    """Runs the dependency scan and the per-file attention analysis."""

    def __init__(
        self,
        base_dir: str = "",
        parser: Optional[TypeScriptParser] = None,
        resolver: Optional[ModuleResolver] = None,
    ):
        self.base_dir = base_dir
        self.resolver = resolver or ModuleResolver()
        self._parser = parser

    @property
    def parser(self) -> TypeScriptParser:
        if self._parser is None:
            self._parser = TypeScriptParser()
        return self._parser

    def dependencies(self, entry_file: str | Path) -> List[ResolvedImportEdge]:
        return ImportScanner(self.base_dir, self.resolver).scan(entry_file)

    def import_resolver(self, file_path: str | Path) -> ImportResolver:
        from_dir = os.path.dirname(os.path.abspath(file_path))

        def resolve_import(specifier: str) -> Optional[str]:
            target = self.resolver.resolve(from_dir, self.base_dir, specifier)
            return relative_to_base(target, self.base_dir) if target is not None else None

        return resolve_import

    def analyze_file(self, file_path: str | Path, source_name: Optional[str] = None) -> Optional[FileReport]:
        """Annotate one file; ``None`` when it cannot be read or is not TypeScript/JavaScript."""
        if self.parser.language_for(file_path) is None:
            logger.debug("Skipping %s: not a TypeScript/JavaScript file", file_path)
            return None
        try:
            source = Path(file_path).read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Could not read %s: %s", file_path, exc)
            return None

        nodes = self.parser.flatten_file(file_path, source)
        walker = AttentionWalker(nodes, self.import_resolver(file_path))
        return FileReport(
            source=source_name or relative_to_base(file_path, self.base_dir),
            base=self.base_dir,
            nodes=walker.walk(),
        )

    def attention(self, entry_file: str | Path) -> Tuple[List[ResolvedImportEdge], List[FileReport]]:
        """Scan the import closure of *entry_file* and annotate every file in it."""
        edges = self.dependencies(entry_file)
        reports: List[FileReport] = []
        for source in dict.fromkeys(edge.source for edge in edges):
            report = self.analyze_file(os.path.join(self.base_dir, source), source_name=source)
            if report is not None:
                reports.append(report)
        return edges, reports

    def file_tree(self, file_path: str | Path) -> List[FlatNode]:
        source = Path(file_path).read_text(encoding="utf-8").strip()
        return self.parser.flatten_file(file_path, source)
