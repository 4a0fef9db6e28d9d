"""Template data for generated interface files."""

from __future__ import annotations

import re
import textwrap
from dataclasses import dataclass, field

from .errors import DuplicateInterfaceError, DuplicateMethodError

WRAP_COLUMN = 76

_FIRST_WORD_RE = re.compile(r"^\w+")


def wrap_doc(doc: str) -> list[str]:
    """Wrap documentation into `// ` comment lines."""
    doc = doc.replace("\n", " ").strip()
    if not doc:
        return []
    lines = textwrap.wrap(doc, width=WRAP_COLUMN, break_long_words=False, break_on_hyphens=False)
    return ["// " + line for line in lines]


@dataclass
class InterfaceMethod:
    name: str
    signature: str
    doc: str = ""
    no_doc: bool = False

    def doc_lines(self) -> list[str]:
        return [] if self.no_doc else wrap_doc(self.doc)


@dataclass
class Interface:
    name: str
    doc: str = ""
    no_doc: bool = False
    methods: list[InterfaceMethod] = field(default_factory=list)
    _names: set[str] = field(default_factory=set, init=False, repr=False)

    def add(self, method: InterfaceMethod) -> None:
        if method.name in self._names:
            raise DuplicateMethodError(f"can not add duplicate method {method.name} to {self.name}")
        self._names.add(method.name)
        self.methods.append(method)

    def doc_lines(self) -> list[str]:
        if self.no_doc:
            return []
        # The source type's name leads its doc; swap in the interface name.
        return wrap_doc(_FIRST_WORD_RE.sub(self.name, self.doc, count=1))


@dataclass
class TemplateData:
    pkg: str = ""
    comment: str = ""
    interfaces: list[Interface] = field(default_factory=list)
    _by_name: dict[str, Interface] = field(default_factory=dict, init=False, repr=False)

    def add(self, iface: Interface) -> None:
        if iface.name in self._by_name:
            raise DuplicateInterfaceError(f"can not add duplicate interface {iface.name}")
        self._by_name[iface.name] = iface
        self.interfaces.append(iface)

    def interface(self, name: str, doc: str = "", no_doc: bool = False) -> Interface:
        """Return the named interface, creating it in first-seen order."""
        iface = self._by_name.get(name)
        if iface is None:
            iface = Interface(name=name, doc=doc, no_doc=no_doc)
            self.add(iface)
        return iface

    def prune(self) -> None:
        """Drop interfaces without methods."""
        self.interfaces = [i for i in self.interfaces if i.methods]
        self._by_name = {i.name: i for i in self.interfaces}
