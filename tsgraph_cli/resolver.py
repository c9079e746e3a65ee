"""Module resolution for relative TypeScript/JavaScript import specifiers."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, List, Optional

from .config import EXTENSIONS

logger = logging.getLogger(__name__)


class ModuleResolver:
    """Find the file an import specifier refers to.

    Candidates are tried in a fixed order (literal path, extension list,
    ``index`` file) first as given, then rooted at the importing file's
    directory, then rooted at the base directory. Absolute specifiers are
    never followed.
    """

    def __init__(self, extensions: Optional[List[str]] = None) -> None:
        self.extensions = list(extensions) if extensions is not None else list(EXTENSIONS)

    def resolve(self, from_dir: str, base_dir: str, specifier: str) -> Optional[Path]:
        if specifier.startswith("/"):
            return None

        if specifier == ".":
            root = from_dir or "."
            return self._with_extensions(lambda ext: os.path.join(root, f"index{ext}"))

        if self._is_file(specifier):
            return self._absolute(specifier)

        found = self._with_index_fallback("", specifier)
        if found is not None:
            return found

        for root in (from_dir, base_dir):
            if not root:
                continue
            found = self._with_index_fallback(root, specifier)
            if found is not None:
                return found

        logger.debug("Unresolved import '%s' from %s", specifier, from_dir or ".")
        return None

    # ------------------------------------------------------------------
    # Candidate helpers
    # ------------------------------------------------------------------

    def _with_index_fallback(self, root: str, specifier: str) -> Optional[Path]:
        found = self._with_extensions(lambda ext: os.path.join(root, f"{specifier}{ext}"))
        if found is not None:
            return found
        return self._with_extensions(lambda ext: os.path.join(root, f"{specifier}/index{ext}"))

    def _with_extensions(self, make_path: Callable[[str], str]) -> Optional[Path]:
        for ext in self.extensions:
            candidate = os.path.normpath(make_path(ext))
            if self._is_file(candidate):
                return self._absolute(candidate)
        return None

    @staticmethod
    def _is_file(candidate: str) -> bool:
        try:
            return os.path.isfile(candidate)
        except OSError as exc:
            logger.warning("Could not stat %s: %s", candidate, exc)
            return False

    @staticmethod
    def _absolute(candidate: str) -> Path:
        return Path(os.path.abspath(candidate))


_default_resolver = ModuleResolver()


def resolve(from_dir: str, base_dir: str, specifier: str) -> Optional[Path]:
    """Resolve *specifier* with the default extension list."""
    return _default_resolver.resolve(from_dir, base_dir, specifier)


def relative_to_base(path: Path | str, base_dir: str) -> str:
    """Express *path* relative to *base_dir* (or the working directory) in POSIX form."""
    start = os.path.abspath(base_dir) if base_dir else os.getcwd()
    return Path(os.path.relpath(os.path.abspath(path), start)).as_posix()
