"""Interface synthesis.

A `Generator` turns the receiver methods of selected Go types (type mode) or
individual receiver methods (recv mode) into interface declarations, one
output text per destination. Each destination may carry the text it was
generated into previously; its interfaces are loaded first so that a re-run
merges into them instead of duplicating declarations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Protocol, Sequence

import structlog

from .errors import DuplicateError, GoIfacesError, ImportResolutionError, NotFoundError
from .match import capitalized, match
from .model import Import, Method, Model, Type, TypeKind
from .modinfo import ImportResolver
from .names import ex_pkg_path
from .parser import TOOL_NAME, parse, parse_files
from .query import Query
from .render import SourceFormatter, render
from .tdata import Interface, InterfaceMethod, TemplateData

logger = structlog.get_logger(__name__)

DEFAULT_COMMENT = f"DO NOT EDIT. GENERATED BY {TOOL_NAME}"


class Resolver(Protocol):
    def resolve(self, path: str) -> str: ...


@dataclass(frozen=True)
class Source:
    """An input file; `line` anchors line based selection (0 = none)."""

    file: str
    line: int = 0
    src: Any = None


@dataclass(frozen=True)
class Destination:
    """An output file; `current` is its previously generated text, if any."""

    file: str
    package: str = ""
    current: str | bytes | None = None


@dataclass(frozen=True)
class GenerateOptions:
    comment: str = DEFAULT_COMMENT
    iface: str = ""  # explicit interface name, applied to every candidate
    pkg: str = ""  # output package name
    pre: str = ""
    post: str = ""
    tdoc: str = ""  # replaces the source type's doc
    no_tdoc: bool = False
    no_fdoc: bool = False
    struct: bool = False  # type mode: every struct type
    match_type: str = ""  # type pattern; in recv mode filters receiver types
    match_func: str = ""  # recv mode: method name pattern


@dataclass(frozen=True)
class TargetResult:
    file: str
    output: str | None = None
    error: GoIfacesError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class Target:
    file: str
    data: TemplateData
    imports: dict[tuple[str, str], Import] = field(default_factory=dict)
    own_import_file: str = ""  # source file whose package must be imported

    def add_import(self, imp: Import) -> None:
        self.imports.setdefault(imp.key, imp)


class Generator:
    def __init__(
        self,
        options: GenerateOptions | None = None,
        *,
        formatter: SourceFormatter | None = None,
        resolver: Resolver | None = None,
    ) -> None:
        self.options = options if options is not None else GenerateOptions()
        self.formatter = formatter
        self.resolver = resolver

    def types(self, sources: Sequence[Source], destinations: Iterable[Destination]) -> list[TargetResult]:
        """Generate one interface per selected type."""
        return self._run(sources, destinations, self._populate_types)

    def recvs(self, sources: Sequence[Source], destinations: Iterable[Destination]) -> list[TargetResult]:
        """Generate interfaces from individually selected receiver methods."""
        return self._run(sources, destinations, self._populate_recvs)

    def _run(self, sources: Sequence[Source], destinations: Iterable[Destination], populate) -> list[TargetResult]:
        model = parse_files((s.file, s.src) for s in sources)
        anchor = next((s for s in sources if s.line > 0), None)
        results: list[TargetResult] = []
        for dest in destinations:
            try:
                target = self._seed(dest, model)
                populate(target, model, anchor)
                target.data.prune()
                if not target.data.interfaces:
                    raise NotFoundError(f"{dest.file or '<stdout>'}: no methods found for interface generation")
                output = self._finish(target, model)
            except GoIfacesError as e:
                logger.warning("target_failed", target=dest.file, error=str(e))
                results.append(TargetResult(file=dest.file, error=e))
                continue
            results.append(TargetResult(file=dest.file, output=output))
        return results

    def _seed(self, dest: Destination, model: Model) -> Target:
        seeded: Model | None = None
        if dest.current:
            seeded = parse(dest.file, dest.current)
        pkg = self.options.pkg or dest.package or (seeded.package if seeded else "") or model.package
        target = Target(file=dest.file, data=TemplateData(pkg=pkg, comment=self.options.comment))
        if seeded is None:
            return target
        for imp in seeded.imports:
            target.add_import(Import(alias=imp.alias, path=imp.path))
        q = Query(seeded)
        for typ in q.types_by_kind(TypeKind.INTERFACE):
            iface = target.data.interface(typ.name, typ.doc)
            for m in q.iface_methods(typ.name):
                self._add(iface, m, m.signature())
        return target

    def _add(self, iface: Interface, method: Method, signature: str) -> bool:
        try:
            iface.add(
                InterfaceMethod(name=method.name, signature=signature, doc=method.doc, no_doc=self.options.no_fdoc)
            )
        except DuplicateError:
            return False
        return True

    def _interface_name(self, type_name: str) -> str:
        o = self.options
        return o.pre + (o.iface or type_name) + o.post

    def _type_doc(self, typ: Type | None) -> str:
        if self.options.tdoc:
            return self.options.tdoc
        return typ.doc if typ is not None else ""

    def _populate_types(self, target: Target, model: Model, anchor: Source | None) -> None:
        q = Query(model)
        o = self.options
        candidates: list[Type] = []
        if o.struct:
            candidates.extend(q.types_by_kind(TypeKind.STRUCT))
        if o.match_type:
            if _is_pattern(o.match_type):
                candidates.extend(q.types_by_pattern(o.match_type))
            else:
                typ = q.type_by_name(o.match_type)
                if typ is not None:
                    candidates.append(typ)
        if not candidates and anchor is not None:
            typ = q.type_by_line(anchor.file, anchor.line)
            if typ is not None:
                candidates.append(typ)
        if not candidates:
            raise NotFoundError(_not_found("type", o.match_type, anchor))

        for typ in _unique(candidates):
            iface = target.data.interface(self._interface_name(typ.name), self._type_doc(typ), o.no_tdoc)
            methods = q.iface_methods(typ.name) if typ.kind is TypeKind.INTERFACE else q.recvs_by_type(typ.name)
            for m in methods:
                self._populate_method(target, iface, model, m)

    def _populate_recvs(self, target: Target, model: Model, anchor: Source | None) -> None:
        q = Query(model)
        o = self.options
        recvs: list[Method] = []
        if o.match_func:
            for m in q.recvs_by_name(o.match_func):
                if not o.match_type or (match(m.type_name, o.match_type) and capitalized(m.type_name)):
                    recvs.append(m)
        elif anchor is not None:
            m = q.recv_by_line(anchor.file, anchor.line)
            if m is not None:
                recvs.append(m)
        if not recvs:
            raise NotFoundError(_not_found("receiver", o.match_func, anchor))

        for m in recvs:
            typ = q.type_by_name(m.type_name)
            iface = target.data.interface(self._interface_name(m.type_name), self._type_doc(typ), o.no_tdoc)
            self._populate_method(target, iface, model, m)

    def _populate_method(self, target: Target, iface: Interface, model: Model, method: Method) -> None:
        if method.uses_type_params():
            logger.debug("skipping_generic_method", method=f"{method.type_name}.{method.name}", file=method.file)
            return
        if target.data.pkg != model.package:
            method = method.with_package(model.package)
        rendered = method.render(model)
        if not self._add(iface, method, rendered.text):
            return
        if rendered.needs_import and not target.own_import_file:
            target.own_import_file = method.file
        self._prefix_imports(target, model, method.file, rendered.prefixes)

    def _prefix_imports(self, target: Target, model: Model, file: str, prefixes: frozenset[str]) -> None:
        wanted = set(prefixes)
        for imp in model.imports_for(file):
            if not wanted:
                break
            if imp.alias in ("_", "."):
                continue
            name = imp.alias or ex_pkg_path(imp.path)
            if name in wanted:
                wanted.discard(name)
                target.add_import(Import(alias=imp.alias, path=imp.path))

    def _finish(self, target: Target, model: Model) -> str:
        if target.own_import_file:
            own = self._own_import(target.own_import_file, model.package)
            if own is not None:
                target.add_import(own)
        return render(target.data, target.file, list(target.imports.values()), self.formatter)

    def _own_import(self, file: str, package: str) -> Import | None:
        if self.resolver is None:
            self.resolver = ImportResolver()
        try:
            path = self.resolver.resolve(file)
        except ImportResolutionError as e:
            logger.warning("omitting_package_import", file=file, package=package, error=str(e))
            return None
        alias = package if ex_pkg_path(path) != package else ""
        return Import(alias=alias, path=path)


def _is_pattern(text: str) -> bool:
    return any(c in text for c in "*?")


def _unique(types: Iterable[Type]) -> list[Type]:
    seen: set[tuple[str, str]] = set()
    out: list[Type] = []
    for t in types:
        if (t.file, t.name) in seen:
            continue
        seen.add((t.file, t.name))
        out.append(t)
    return out


def _not_found(what: str, pattern: str, anchor: Source | None) -> str:
    if pattern:
        return f"could not match {what} {pattern!r}"
    if anchor is not None:
        return f"could not match {what} after {anchor.file}:{anchor.line}"
    return f"could not match {what}: no pattern and no line anchor given"
