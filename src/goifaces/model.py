from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace

from .signature import FuncDecl, HasType, Rendered


class TypeKind(enum.Enum):
    UNKNOWN = 0
    STRUCT = 1
    INTERFACE = 2


@dataclass(frozen=True)
class Type:
    name: str
    doc: str
    line: int
    kind: TypeKind = TypeKind.UNKNOWN
    file: str = ""


@dataclass(frozen=True)
class Method:
    """A receiver method, or a method declared inside an interface type."""

    name: str
    doc: str
    line: int
    type_name: str  # receiver base type (no leading '*') or interface name
    func: FuncDecl
    file: str = ""
    interface: bool = False
    # type parameters bound by a generic receiver, e.g. T in `func (l *List[T])`
    receiver_type_params: tuple[str, ...] = ()
    # origin package prefix applied when emitted into another package
    pkg: str = ""

    def with_package(self, pkg: str) -> "Method":
        return replace(self, pkg=pkg)

    def uses_type_params(self) -> bool:
        if self.func.uses_type_params():
            return True
        bound = set(self.receiver_type_params)
        return bool(bound) and any(n in bound for n in self.func.type_names())

    def render(self, has_type: HasType | None = None) -> Rendered:
        return self.func.render(self.pkg, has_type)

    def signature(self, has_type: HasType | None = None) -> str:
        return self.render(has_type).text


@dataclass(frozen=True)
class Import:
    alias: str  # "" when not aliased; may be "_" or "."
    path: str
    file: str = field(default="", compare=False)

    @property
    def key(self) -> tuple[str, str]:
        return (self.alias, self.path)


@dataclass(frozen=True)
class GeneratorComment:
    text: str
    line: int
    file: str = ""


@dataclass(frozen=True)
class Model:
    """Structural model of one or more Go source files of a single package."""

    package: str
    files: tuple[str, ...] = ()
    imports: tuple[Import, ...] = ()
    types: tuple[Type, ...] = ()
    receiver_methods: tuple[Method, ...] = ()
    interface_methods: tuple[Method, ...] = ()
    comments: tuple[GeneratorComment, ...] = ()

    def has_type(self, name: str) -> bool:
        return any(t.name == name for t in self.types)

    def merge(self, *others: "Model") -> "Model":
        """Combine models; the package name is taken from `self`."""
        imports: dict[tuple[str, str], Import] = {i.key: i for i in self.imports}
        files = list(self.files)
        types = list(self.types)
        recvs = list(self.receiver_methods)
        ifaces = list(self.interface_methods)
        comments = list(self.comments)
        for o in others:
            for i in o.imports:
                imports.setdefault(i.key, i)
            files.extend(o.files)
            types.extend(o.types)
            recvs.extend(o.receiver_methods)
            ifaces.extend(o.interface_methods)
            comments.extend(o.comments)
        return Model(
            package=self.package,
            files=tuple(files),
            imports=tuple(imports.values()),
            types=tuple(types),
            receiver_methods=tuple(recvs),
            interface_methods=tuple(ifaces),
            comments=tuple(comments),
        )

    def imports_for(self, file: str) -> list[Import]:
        """Imports declared in `file`, followed by those of the other files."""
        own = [i for i in self.imports if i.file == file]
        return own + [i for i in self.imports if i.file != file]
