"""Tests for import specifier resolution."""

from pathlib import Path

from tsgraph_cli.resolver import ModuleResolver, relative_to_base, resolve


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("export {};\n")
    return path


def test_absolute_specifier_is_never_followed(temp_dir: Path):
    """Specifiers starting with '/' resolve to None even when the file exists."""
    target = _touch(temp_dir / "abs.ts")
    assert resolve(str(temp_dir), "", str(target)) is None


def test_dot_resolves_to_index(temp_dir: Path):
    """'.' resolves to the index file of the importing directory."""
    index = _touch(temp_dir / "index.ts")
    assert resolve(str(temp_dir), "", ".") == index


def test_extension_is_appended(temp_dir: Path):
    """A specifier without extension picks up the first matching extension."""
    target = _touch(temp_dir / "libs" / "a.ts")
    assert resolve(str(temp_dir), "", "./libs/a") == target


def test_extension_order(temp_dir: Path):
    """'.ts' wins over '.tsx' when both exist."""
    ts_file = _touch(temp_dir / "button.ts")
    _touch(temp_dir / "button.tsx")
    assert resolve(str(temp_dir), "", "./button") == ts_file


def test_directory_index_fallback(temp_dir: Path):
    """A directory specifier falls back to its index file."""
    index = _touch(temp_dir / "components" / "index.tsx")
    assert resolve(str(temp_dir), "", "./components") == index


def test_parent_relative_specifier(temp_dir: Path):
    """'../' specifiers are normalised against the importing directory."""
    target = _touch(temp_dir / "libs" / "util.js")
    from_dir = temp_dir / "components"
    from_dir.mkdir()
    assert resolve(str(from_dir), "", "../libs/util") == target


def test_base_dir_fallback(temp_dir: Path):
    """Bare specifiers are tried against the base directory last."""
    target = _touch(temp_dir / "shared" / "types.ts")
    from_dir = temp_dir / "deep" / "nested"
    from_dir.mkdir(parents=True)
    assert resolve(str(from_dir), str(temp_dir), "shared/types") == target


def test_package_import_is_unresolved(temp_dir: Path):
    """Package imports with no file on disk resolve to None."""
    assert resolve(str(temp_dir), str(temp_dir), "react") is None


def test_custom_extensions(temp_dir: Path):
    """A resolver only tries the extensions it was given."""
    _touch(temp_dir / "style.css")
    resolver = ModuleResolver(extensions=[".ts"])
    assert resolver.resolve(str(temp_dir), "", "./style") is None
    assert ModuleResolver(extensions=[".css"]).resolve(str(temp_dir), "", "./style") is not None


def test_relative_to_base(temp_dir: Path):
    """Paths are reported relative to the base directory in POSIX form."""
    target = temp_dir / "libs" / "a.ts"
    assert relative_to_base(target, str(temp_dir)) == "libs/a.ts"
