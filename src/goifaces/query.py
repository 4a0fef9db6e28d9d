from __future__ import annotations

from typing import Sequence, TypeVar

from .match import capitalized, match
from .model import Method, Model, Type, TypeKind

_T = TypeVar("_T", Type, Method)


class Query:
    """Read-only lookups over a parsed `Model`.

    Line based lookups return the first declaration at or after a line in the
    given file, stopping at the next generator directive comment in that file.
    Ties resolve in declaration (top-down) order.
    """

    def __init__(self, model: Model) -> None:
        self.model = model

    def next_comment(self, file: str, line: int) -> int:
        """Return the nearest directive comment line after `line`, or 0."""
        lines = [c.line for c in self.model.comments if c.file == file and c.line > line]
        return min(lines, default=0)

    def type_by_line(self, file: str, line: int) -> Type | None:
        return self._by_line(self.model.types, file, line)

    def type_by_name(self, name: str) -> Type | None:
        for t in self.model.types:
            if t.name == name:
                return t
        return None

    def types_by_pattern(self, pattern: str) -> list[Type]:
        return [t for t in self.model.types if match(t.name, pattern) and capitalized(t.name)]

    def types_by_kind(self, kind: TypeKind) -> list[Type]:
        return [t for t in self.model.types if t.kind is kind]

    def recv_by_line(self, file: str, line: int) -> Method | None:
        return self._by_line(self.model.receiver_methods, file, line)

    def recvs_by_type(self, type_name: str) -> list[Method]:
        return [
            m for m in self.model.receiver_methods if m.type_name == type_name and capitalized(m.name)
        ]

    def recvs_by_name(self, pattern: str) -> list[Method]:
        return [m for m in self.model.receiver_methods if match(m.name, pattern) and capitalized(m.name)]

    def iface_methods(self, iface: str) -> list[Method]:
        return [m for m in self.model.interface_methods if m.type_name == iface]

    def _by_line(self, items: Sequence[_T], file: str, line: int) -> _T | None:
        end = self.next_comment(file, line)
        for item in items:
            if item.file != file or item.line < line:
                continue
            if end and item.line >= end:
                continue
            return item
        return None
