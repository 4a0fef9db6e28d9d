from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from .errors import ImportResolutionError, NotFoundError
from .match import match
from .names import strip_version
from .paths import gomodcache as default_gomodcache
from .paths import goroot as default_goroot


@dataclass(frozen=True)
class Require:
    path: str
    version: str


@dataclass(frozen=True)
class ModInfo:
    """The parts of a go.mod manifest goifaces needs."""

    module_path: str
    requires: tuple[Require, ...] = ()
    gomod_path: Path | None = None

    @classmethod
    def parse(cls, data: str | bytes, gomod_path: str | Path | None = None) -> "ModInfo":
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        module_path = ""
        requires: list[Require] = []
        in_require = False
        for raw in data.splitlines():
            line = raw.split("//", 1)[0].strip()
            if not line:
                continue
            if in_require:
                if line == ")":
                    in_require = False
                    continue
                req = _require(line)
                if req is not None:
                    requires.append(req)
                continue
            fields = line.split()
            if fields[0] == "module" and len(fields) > 1:
                module_path = fields[1].strip('"`')
            elif fields[0] == "require":
                if line.endswith("("):
                    in_require = True
                    continue
                req = _require(line[len("require") :].strip())
                if req is not None:
                    requires.append(req)
        if not module_path:
            raise ImportResolutionError(f"failed to parse module path from {gomod_path or 'go.mod'}")
        return cls(
            module_path=module_path,
            requires=tuple(requires),
            gomod_path=Path(gomod_path) if gomod_path is not None else None,
        )

    @classmethod
    def load(cls, gomod_path: str | Path) -> "ModInfo":
        gomod_path = Path(gomod_path)
        try:
            data = gomod_path.read_bytes()
        except OSError as e:
            raise ImportResolutionError(f"can not read {gomod_path}: {e}") from e
        return cls.parse(data, gomod_path)

    @classmethod
    def load_from_parents(cls, start: str | Path) -> "ModInfo":
        return cls.load(find_gomod(start))

    def version(self, module: str) -> str:
        """Return the required version of the first module matching `module`."""
        for r in self.requires:
            if match(r.path, module):
                return r.version
        raise NotFoundError(f"module {module} is not required by {self.module_path}")

    def module_dir(self, module: str, *, modcache: Path | None = None) -> Path:
        """Return the module cache directory of `module` (`path` or `path@version`)."""
        modcache = modcache if modcache is not None else default_gomodcache()
        if module.endswith("@latest"):
            raise NotFoundError("@latest version currently not supported")
        if "@" not in module:
            module = f"{module}@{self.version(module)}"
        real = modcache.joinpath(*module.split("/"))
        if not real.exists():
            raise NotFoundError(f"module directory not found: {real}")
        return real


def _require(line: str) -> Require | None:
    fields = line.split()
    if len(fields) < 2:
        return None
    return Require(path=fields[0].strip('"`'), version=fields[1])


def find_gomod(start: str | Path) -> Path:
    """Return the nearest go.mod at or above `start`."""
    p = Path(os.path.abspath(start))
    while True:
        candidate = p / "go.mod"
        if candidate.is_file():
            return candidate
        if p.parent == p:
            break
        p = p.parent
    raise ImportResolutionError(f"go.mod not found in {start} or any parent directory")


def import_for_file(
    srcpath: str | Path,
    *,
    gomod_path: str | Path | None = None,
    gomod_data: str | bytes | None = None,
) -> str:
    """Return the import path of the package containing `srcpath`.

    The module path declared in go.mod is joined with the directories between
    the go.mod file and `srcpath`. When `gomod_path`/`gomod_data` are omitted the
    parent directories of `srcpath` are searched.
    """
    if not str(srcpath):
        raise ImportResolutionError("no source path given")
    src = Path(os.path.abspath(srcpath))
    if gomod_path is None:
        gomod_path = find_gomod(src.parent)
    gomod_path = Path(os.path.abspath(gomod_path))
    info = ModInfo.parse(gomod_data, gomod_path) if gomod_data is not None else ModInfo.load(gomod_path)
    try:
        rel = src.parent.relative_to(gomod_path.parent)
    except ValueError as e:
        raise ImportResolutionError(f"{srcpath} is not inside module {gomod_path.parent}") from e
    return str(PurePosixPath(info.module_path, *rel.parts))


class ImportResolver:
    """Derive an importable path for a Go source file.

    Files under the standard library root import as their path below it, files
    in the module cache as their path below it with the `@version` element
    removed; anything else is resolved through the nearest go.mod.
    """

    def __init__(self, *, goroot: Path | None = None, gomodcache: Path | None = None) -> None:
        self.goroot = goroot if goroot is not None else default_goroot()
        self.gomodcache = gomodcache if gomodcache is not None else default_gomodcache()

    def resolve(self, path: str | Path) -> str:
        p = Path(os.path.abspath(path))
        pkg_dir = p if p.is_dir() else p.parent

        if self.goroot is not None:
            rel = _relative(pkg_dir, Path(os.path.abspath(self.goroot)) / "src")
            if rel is not None:
                if not rel:
                    raise ImportResolutionError(f"invalid go source path: {path}")
                return rel

        rel = _relative(pkg_dir, Path(os.path.abspath(self.gomodcache)))
        if rel is not None:
            rel = strip_version(rel)
            if not rel:
                raise ImportResolutionError(f"invalid go source path: {path}")
            return rel

        return import_for_file(p if not p.is_dir() else p / "_")


def _relative(path: Path, root: Path) -> str | None:
    try:
        rel = path.relative_to(root)
    except ValueError:
        return None
    return "/".join(rel.parts)
