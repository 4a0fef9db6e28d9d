"""Parsed model of a Go method signature and its canonical re-printing.

A signature string has the shape `Name[TypeParams](Params) Results`, as
produced by the extractor. `parse_signature` decomposes it into a `FuncDecl`
made of `TypeExpr` values; `FuncDecl.reprint` turns it back into text.

When a signature is copied into a package other than the one it was declared
in, bare identifiers of types declared in the origin package are prefixed with
the origin package name (`Data` -> `originpkg.Data`). Whether a name is locally
declared is answered by a `HasType` capability supplied by the caller.

For every signature accepted by the parser, and absent re-qualification,
`parse_signature(s).reprint() == s` holds when `s` is canonical (gofmt
spacing).
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Iterator, Protocol, Union

from .errors import SignatureError

_NAME_RE = re.compile(r"\s*([A-Za-z_]\w*)\s*")
_NAMED_PARAM_RE = re.compile(r"([A-Za-z_]\w*)\s+(\S.*)$", re.S)
_NAMED_TYPE_RE = re.compile(r"([A-Za-z_]\w*)(?:\.([A-Za-z_]\w*))?", re.S)
_IDENT_ONLY_RE = re.compile(r"[A-Za-z_]\w*")
_INTERFACE_ANY_RE = re.compile(r"interface\s*\{\s*\}")
_KEYWORD_TYPE_RE = re.compile(r"(func|struct|interface)\b")
_FUNC_TYPE_RE = re.compile(r"func\s*\(")
_OPAQUE_NAME_RE = re.compile(r"(?<![\w.])([A-Za-z_]\w*)(?:\.([A-Za-z_]\w*))?")
_MAP_RE = re.compile(r"map\s*\[")
_CHAN_RE = re.compile(r"chan\b")

_TYPE_KEYWORDS = {"chan", "func", "interface", "map", "struct"}
_OPEN = "([{"
_CLOSE = ")]}"


class HasType(Protocol):
    def has_type(self, name: str) -> bool: ...


class ChanDir(enum.Enum):
    BOTH = "chan"
    SEND = "chan<-"
    RECV = "<-chan"


@dataclass(frozen=True)
class Named:
    name: str
    pkg: str = ""
    args: tuple["TypeExpr", ...] = ()
    pointer: int = 0
    variadic: bool = False


@dataclass(frozen=True)
class Slice:
    elem: "TypeExpr"
    length: str | None = None  # fixed-size array when set
    pointer: int = 0
    variadic: bool = False


@dataclass(frozen=True)
class Map:
    key: "TypeExpr"
    elem: "TypeExpr"
    pointer: int = 0
    variadic: bool = False


@dataclass(frozen=True)
class Channel:
    elem: "TypeExpr"
    direction: ChanDir = ChanDir.BOTH
    pointer: int = 0
    variadic: bool = False


@dataclass(frozen=True)
class InterfaceAny:
    pointer: int = 0
    variadic: bool = False


@dataclass(frozen=True)
class Func:
    params: tuple["ParamGroup", ...] = ()
    results: tuple["ParamGroup", ...] = ()
    pointer: int = 0
    variadic: bool = False


@dataclass(frozen=True)
class Opaque:
    # Struct and non-empty interface literals. Kept verbatim.
    text: str
    pointer: int = 0
    variadic: bool = False


TypeExpr = Union[Named, Slice, Map, Channel, InterfaceAny, Func, Opaque]


@dataclass(frozen=True)
class Term:
    type: TypeExpr
    tilde: bool = False


@dataclass(frozen=True)
class TypeParamGroup:
    names: tuple[str, ...]
    constraint: tuple[Term, ...]


@dataclass(frozen=True)
class ParamGroup:
    """Parameters sharing one type. `names` is empty for unnamed parameters."""

    names: tuple[str, ...]
    type: TypeExpr


@dataclass(frozen=True)
class Rendered:
    text: str
    prefixes: frozenset[str]
    needs_import: bool


@dataclass(frozen=True)
class FuncDecl:
    name: str
    params: tuple[ParamGroup, ...] = ()
    results: tuple[ParamGroup, ...] = ()
    type_params: tuple[TypeParamGroup, ...] = ()

    def uses_type_params(self) -> bool:
        return bool(self.type_params)

    def type_names(self) -> Iterator[str]:
        """Yield every bare (unqualified) type name referenced by the signature."""
        for g in (*self.params, *self.results):
            yield from _bare_names(g.type)
        for tp in self.type_params:
            for term in tp.constraint:
                yield from _bare_names(term.type)

    def reprint(self, pkg: str = "", has_type: HasType | None = None) -> str:
        return self.render(pkg, has_type).text

    def render(self, pkg: str = "", has_type: HasType | None = None) -> Rendered:
        p = _Printer(pkg, has_type)
        text = self.name + p.type_params(self.type_params) + p.params(self.params) + p.results(self.results)
        return Rendered(text=text, prefixes=frozenset(p.prefixes), needs_import=p.needs_import)


class _Printer:
    def __init__(self, pkg: str, has_type: HasType | None) -> None:
        self.pkg = pkg
        self.has_type = has_type
        self.prefixes: set[str] = set()
        self.needs_import = False

    def type_params(self, groups: tuple[TypeParamGroup, ...]) -> str:
        if not groups:
            return ""
        items = []
        for g in groups:
            terms = " | ".join(("~" if t.tilde else "") + self.type(t.type) for t in g.constraint)
            items.append(f"{', '.join(g.names)} {terms}")
        return "[" + ", ".join(items) + "]"

    def params(self, groups: tuple[ParamGroup, ...]) -> str:
        return "(" + ", ".join(self.group(g) for g in groups) + ")"

    def results(self, groups: tuple[ParamGroup, ...]) -> str:
        if not groups:
            return ""
        if len(groups) == 1 and not groups[0].names:
            return " " + self.type(groups[0].type)
        return " " + self.params(groups)

    def group(self, g: ParamGroup) -> str:
        if g.names:
            return f"{', '.join(g.names)} {self.type(g.type)}"
        return self.type(g.type)

    def type(self, t: TypeExpr) -> str:
        head = ("..." if t.variadic else "") + "*" * t.pointer
        if isinstance(t, Named):
            return head + self.named(t)
        if isinstance(t, Slice):
            return head + f"[{t.length or ''}]" + self.type(t.elem)
        if isinstance(t, Map):
            return head + f"map[{self.type(t.key)}]" + self.type(t.elem)
        if isinstance(t, Channel):
            return head + f"{t.direction.value} " + self.type(t.elem)
        if isinstance(t, InterfaceAny):
            return head + "interface{}"
        if isinstance(t, Func):
            return head + "func" + self.params(t.params) + self.results(t.results)
        for m in _OPAQUE_NAME_RE.finditer(t.text):
            if m.group(2):
                self.prefixes.add(m.group(1))
        return head + t.text

    def named(self, t: Named) -> str:
        name = t.name
        if t.pkg:
            self.prefixes.add(t.pkg)
            name = f"{t.pkg}.{t.name}"
        elif self.pkg and self.has_type is not None and self.has_type.has_type(t.name):
            self.needs_import = True
            name = f"{self.pkg}.{t.name}"
        if t.args:
            name += "[" + ", ".join(self.type(a) for a in t.args) + "]"
        return name


def _bare_names(t: TypeExpr) -> Iterator[str]:
    if isinstance(t, Named):
        if not t.pkg:
            yield t.name
        for a in t.args:
            yield from _bare_names(a)
    elif isinstance(t, (Slice, Channel)):
        yield from _bare_names(t.elem)
    elif isinstance(t, Map):
        yield from _bare_names(t.key)
        yield from _bare_names(t.elem)
    elif isinstance(t, Func):
        for g in (*t.params, *t.results):
            yield from _bare_names(g.type)
    elif isinstance(t, Opaque):
        for m in _OPAQUE_NAME_RE.finditer(t.text):
            if not m.group(2) and m.group(1) not in _TYPE_KEYWORDS:
                yield m.group(1)


def parse_signature(sig: str) -> FuncDecl:
    """Parse `Name[TypeParams](Params) Results` into a `FuncDecl`."""
    m = _NAME_RE.match(sig)
    if not m:
        raise SignatureError(f"missing method name in signature: {sig!r}")
    name = m.group(1)
    pos = m.end()

    type_params: tuple[TypeParamGroup, ...] = ()
    if sig.startswith("[", pos):
        end = _closing(sig, pos)
        type_params = _parse_type_params(sig[pos + 1 : end])
        pos = _skip_ws(sig, end + 1)

    if not sig.startswith("(", pos):
        raise SignatureError(f"missing parameter list in signature: {sig!r}")
    end = _closing(sig, pos)
    params = _parse_params(sig[pos + 1 : end])

    results = _parse_results(sig[end + 1 :])
    return FuncDecl(name=name, params=params, results=results, type_params=type_params)


def parse_type(text: str) -> TypeExpr:
    """Parse a single Go type expression."""
    t = text.strip()
    if not t:
        raise SignatureError("empty type expression")
    variadic = t.startswith("...")
    if variadic:
        t = t[3:].lstrip()
    pointer = 0
    while t.startswith("*"):
        pointer += 1
        t = t[1:].lstrip()
    if not t:
        raise SignatureError(f"missing type after modifiers in {text!r}")

    if t.startswith("["):
        end = _closing(t, 0)
        length = t[1:end].strip() or None
        return Slice(elem=parse_type(t[end + 1 :]), length=length, pointer=pointer, variadic=variadic)
    if _MAP_RE.match(t):
        start = t.index("[")
        end = _closing(t, start)
        return Map(
            key=parse_type(t[start + 1 : end]),
            elem=parse_type(t[end + 1 :]),
            pointer=pointer,
            variadic=variadic,
        )
    if t.startswith("<-"):
        rest = t[2:].lstrip()
        if not _CHAN_RE.match(rest):
            raise SignatureError(f"invalid channel type {text!r}")
        return Channel(elem=parse_type(rest[4:]), direction=ChanDir.RECV, pointer=pointer, variadic=variadic)
    if _CHAN_RE.match(t):
        rest = t[4:].lstrip()
        if rest.startswith("<-"):
            return Channel(elem=parse_type(rest[2:]), direction=ChanDir.SEND, pointer=pointer, variadic=variadic)
        return Channel(elem=parse_type(rest), pointer=pointer, variadic=variadic)
    if _INTERFACE_ANY_RE.fullmatch(t):
        return InterfaceAny(pointer=pointer, variadic=variadic)
    if _FUNC_TYPE_RE.match(t):
        start = t.index("(")
        end = _closing(t, start)
        return Func(
            params=_parse_params(t[start + 1 : end]),
            results=_parse_results(t[end + 1 :]),
            pointer=pointer,
            variadic=variadic,
        )
    if _KEYWORD_TYPE_RE.match(t) or t.startswith("("):
        return Opaque(text=" ".join(t.split()), pointer=pointer, variadic=variadic)

    m = _NAMED_TYPE_RE.match(t)
    if not m:
        raise SignatureError(f"invalid type expression {text!r}")
    pkg, name = (m.group(1), m.group(2)) if m.group(2) else ("", m.group(1))
    args: tuple[TypeExpr, ...] = ()
    rest = t[m.end() :].lstrip()
    if rest:
        if not rest.startswith("[") or _closing(rest, 0) != len(rest) - 1:
            raise SignatureError(f"invalid type expression {text!r}")
        args = tuple(parse_type(a) for a in _split_top(rest[1:-1], ","))
    return Named(name=name, pkg=pkg, args=args, pointer=pointer, variadic=variadic)


def _parse_results(text: str) -> tuple[ParamGroup, ...]:
    rest = text.strip()
    if not rest:
        return ()
    if rest.startswith("(") and _closing(rest, 0) == len(rest) - 1:
        return _parse_params(rest[1:-1])
    return (ParamGroup(names=(), type=parse_type(rest)),)


def _parse_params(text: str) -> tuple[ParamGroup, ...]:
    if not text.strip():
        return ()
    entries = [e.strip() for e in _split_top(text, ",")]
    split = [_split_name(e) for e in entries]
    if not any(name for name, _ in split):
        return tuple(ParamGroup(names=(), type=parse_type(e)) for e in entries)

    # Named form: bare identifiers share the type of the next typed entry.
    groups: list[ParamGroup] = []
    pending: list[str] = []
    for entry, (name, rest) in zip(entries, split):
        if name is None:
            if not _IDENT_ONLY_RE.fullmatch(entry):
                raise SignatureError(f"mixed named and unnamed parameters in {text!r}")
            pending.append(entry)
            continue
        groups.append(ParamGroup(names=(*pending, name), type=parse_type(rest)))
        pending = []
    if pending:
        raise SignatureError(f"parameters without a type in {text!r}")
    return tuple(groups)


def _parse_type_params(text: str) -> tuple[TypeParamGroup, ...]:
    groups: list[TypeParamGroup] = []
    pending: list[str] = []
    for entry in (e.strip() for e in _split_top(text, ",")):
        name, rest = _split_name(entry)
        if name is None:
            if not _IDENT_ONLY_RE.fullmatch(entry):
                raise SignatureError(f"invalid type parameter {entry!r}")
            pending.append(entry)
            continue
        terms = []
        for term in (x.strip() for x in _split_top(rest, "|")):
            tilde = term.startswith("~")
            terms.append(Term(type=parse_type(term[1:] if tilde else term), tilde=tilde))
        groups.append(TypeParamGroup(names=(*pending, name), constraint=tuple(terms)))
        pending = []
    if pending:
        raise SignatureError(f"type parameters without a constraint in [{text}]")
    return tuple(groups)


def _split_name(entry: str) -> tuple[str | None, str]:
    m = _NAMED_PARAM_RE.match(entry)
    if not m or m.group(1) in _TYPE_KEYWORDS:
        return None, entry
    return m.group(1), m.group(2)


def _split_top(text: str, sep: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    start = 0
    for i, ch in enumerate(text):
        if ch in _OPEN:
            depth += 1
        elif ch in _CLOSE:
            depth -= 1
        elif ch == sep and depth == 0:
            parts.append(text[start:i])
            start = i + 1
    parts.append(text[start:])
    return parts


def _closing(text: str, start: int) -> int:
    depth = 0
    for i in range(start, len(text)):
        ch = text[i]
        if ch in _OPEN:
            depth += 1
        elif ch in _CLOSE:
            depth -= 1
            if depth == 0:
                return i
    raise SignatureError(f"unbalanced brackets in {text!r}")


def _skip_ws(text: str, pos: int) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos
