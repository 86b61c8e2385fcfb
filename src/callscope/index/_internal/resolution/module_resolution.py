"""Module path -> file path resolution, one resolver per language.

Every resolver has the same signature::

    resolver(source, importing_file, files) -> str | None

``source`` is the raw module path exactly as written in the import,
``importing_file`` is the repo-relative path of the file containing the
import, and ``files`` is the set of repo-relative paths known to the
project. Paths are POSIX-style. A result of None means the module is
outside the project (builtin, third-party package, std crate) or could
not be found.
"""

from __future__ import annotations

import posixpath
from functools import lru_cache

# ---------------------------------------------------------------------------
# Python
# ---------------------------------------------------------------------------


def path_to_module(path: str) -> str | None:
    """Convert a Python file path to a dotted module path.

    Examples:
        >>> path_to_module("src/app/services/user.py")
        'src.app.services.user'
        >>> path_to_module("src/app/__init__.py")
        'src.app'
        >>> path_to_module("README.md")
    """
    if not path.endswith((".py", ".pyi")):
        return None
    module = path.rsplit(".", 1)[0]
    if module.endswith("/__init__") or module == "__init__":
        module = module[: -len("__init__")].rstrip("/")
    return module.replace("/", ".").lstrip(".") or None


def module_to_candidate_paths(source_literal: str) -> list[str]:
    """Candidate module keys for a dotted import path.

    ``path_to_module`` keeps a ``src.`` prefix, so both spellings are tried.
    """
    return [source_literal, f"src.{source_literal}"]


@lru_cache(maxsize=16)
def build_module_index(files: frozenset[str]) -> dict[str, str]:
    """Map module key -> file path for every Python file.

    A package's ``__init__.py`` and a same-named ``.py`` module cannot both
    exist on disk; when the stub and the source both exist, ``.py`` wins.
    """
    index: dict[str, str] = {}
    for fp in sorted(files):
        module_key = path_to_module(fp)
        if module_key and (module_key not in index or fp.endswith(".py")):
            index[module_key] = fp
    return index


def resolve_python_module(source: str, importing_file: str, files: frozenset[str]) -> str | None:
    """Resolve ``pkg.mod`` or ``..mod`` to a file."""
    if not source:
        return None

    if source.startswith("."):
        level = len(source) - len(source.lstrip("."))
        rest = source[level:]
        base = posixpath.dirname(importing_file)
        for _ in range(level - 1):
            base = posixpath.dirname(base)
        parts = [p for p in rest.split(".") if p]
        if not parts:
            package_init = posixpath.join(base, "__init__.py")
            return package_init if package_init in files else None
        target = posixpath.join(base, *parts)
        for candidate in (f"{target}.py", f"{target}/__init__.py", f"{target}.pyi"):
            if candidate in files:
                return candidate
        return None

    index = build_module_index(files)
    for candidate in module_to_candidate_paths(source):
        if candidate in index:
            return index[candidate]
    return None


# ---------------------------------------------------------------------------
# JavaScript / TypeScript
# ---------------------------------------------------------------------------

_JS_EXTENSIONS: tuple[str, ...] = (".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx")
_TS_EXTENSIONS: tuple[str, ...] = (".ts", ".tsx", ".d.ts", ".js", ".jsx", ".mjs", ".cjs")

# Emitted-extension specifiers that TypeScript maps back to sources.
_TS_SOURCE_FOR_EMITTED: dict[str, tuple[str, ...]] = {
    ".js": (".ts", ".tsx"),
    ".jsx": (".tsx",),
    ".mjs": (".mts",),
    ".cjs": (".cts",),
}


def _is_relative_specifier(source: str) -> bool:
    return source.startswith(("./", "../", "/")) or source in (".", "..")


def _probe(base: str, extensions: tuple[str, ...], files: frozenset[str]) -> str | None:
    if base in files and posixpath.splitext(base)[1]:
        return base
    for ext in extensions:
        if f"{base}{ext}" in files:
            return f"{base}{ext}"
    for ext in extensions:
        index_file = f"{base}/index{ext}"
        if index_file in files:
            return index_file
    return None


def _resolve_es_module(
    source: str,
    importing_file: str,
    files: frozenset[str],
    extensions: tuple[str, ...],
    map_emitted: bool,
) -> str | None:
    # Bare specifiers are packages or node builtins (including node:fs)
    if not _is_relative_specifier(source):
        return None

    if source.startswith("/"):
        joined = posixpath.normpath(source.lstrip("/"))
    else:
        joined = posixpath.normpath(posixpath.join(posixpath.dirname(importing_file), source))
    if joined.startswith(".."):
        return None
    if joined == ".":
        joined = ""

    if map_emitted:
        stem, ext = posixpath.splitext(joined)
        for source_ext in _TS_SOURCE_FOR_EMITTED.get(ext, ()):
            if f"{stem}{source_ext}" in files:
                return f"{stem}{source_ext}"

    if not joined:
        return _probe("index", extensions, files)
    return _probe(joined, extensions, files)


def resolve_javascript_module(
    source: str, importing_file: str, files: frozenset[str]
) -> str | None:
    """Resolve a relative ES/CommonJS specifier, probing JS extensions first."""
    return _resolve_es_module(source, importing_file, files, _JS_EXTENSIONS, map_emitted=False)


def resolve_typescript_module(
    source: str, importing_file: str, files: frozenset[str]
) -> str | None:
    """Resolve a relative specifier, preferring TypeScript sources.

    ``./utils.js`` written in a ``.ts`` file refers to ``./utils.ts``.
    """
    return _resolve_es_module(source, importing_file, files, _TS_EXTENSIONS, map_emitted=True)


# ---------------------------------------------------------------------------
# Rust
# ---------------------------------------------------------------------------

RUST_STD_CRATES: frozenset[str] = frozenset({"std", "core", "alloc", "proc_macro", "test"})

_RUST_ROOT_FILES: tuple[str, ...] = ("lib.rs", "main.rs")


def _rust_crate_root(importing_file: str, files: frozenset[str]) -> str | None:
    """Nearest ``lib.rs``/``main.rs`` at or above the importing file."""
    current = posixpath.dirname(importing_file)
    while True:
        for name in _RUST_ROOT_FILES:
            for candidate in (posixpath.join(current, name), posixpath.join(current, "src", name)):
                if candidate in files:
                    return candidate
        if not current:
            return None
        current = posixpath.dirname(current)


def _rust_module_dir(file_path: str) -> str:
    """Directory holding a module's child modules."""
    directory, name = posixpath.split(file_path)
    if name in ("mod.rs", *_RUST_ROOT_FILES):
        return directory
    return posixpath.join(directory, name[: -len(".rs")])


def _rust_dir_module_file(
    directory: str, crate_root: str | None, files: frozenset[str]
) -> str | None:
    """The file that declares the module whose children live in ``directory``."""
    if crate_root and posixpath.dirname(crate_root) == directory:
        return crate_root
    for candidate in (posixpath.join(directory, "mod.rs"), f"{directory}.rs"):
        if candidate in files:
            return candidate
    return None


def _rust_find_module(base_dir: str, segments: list[str], files: frozenset[str]) -> str | None:
    if not segments:
        return None
    dir_path = posixpath.join(base_dir, *segments[:-1]) if len(segments) > 1 else base_dir
    last = segments[-1]
    candidates = (posixpath.join(dir_path, f"{last}.rs"), posixpath.join(dir_path, last, "mod.rs"))
    for candidate in candidates:
        if candidate in files:
            return candidate
    return None


def resolve_rust_module(source: str, importing_file: str, files: frozenset[str]) -> str | None:
    """Resolve a ``use`` path (``crate::a::b``, ``super::x``, ``self::y``).

    When the last segment names an item rather than a module, the module
    holding it is returned.
    """
    segments = [s for s in source.split("::") if s]
    if not segments or segments[0] in RUST_STD_CRATES:
        return None

    crate_root = _rust_crate_root(importing_file, files)
    explicit = segments[0] in ("crate", "self", "super")
    bases: list[str]
    if segments[0] == "crate":
        if crate_root is None:
            return None
        bases = [posixpath.dirname(crate_root)]
        segments = segments[1:]
    elif segments[0] in ("self", "super"):
        base = _rust_module_dir(importing_file)
        if segments[0] == "self":
            segments = segments[1:]
        while segments and segments[0] == "super":
            base = posixpath.dirname(base)
            segments = segments[1:]
        bases = [base]
    else:
        bases = [_rust_module_dir(importing_file)]
        if crate_root is not None:
            bases.append(posixpath.dirname(crate_root))

    for base in bases:
        if not segments:
            return _rust_dir_module_file(base, crate_root, files)
        found = _rust_find_module(base, segments, files)
        if found is None and len(segments) > 1:
            found = _rust_find_module(base, segments[:-1], files)
        if found is None and len(segments) == 1 and explicit:
            # `use super::item` names an item of the module itself
            found = _rust_dir_module_file(base, crate_root, files)
        if found is not None:
            return found
    return None
