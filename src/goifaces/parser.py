"""Extract a structural model from Go source files.

Source text is parsed with the tree-sitter Go grammar. Type declarations,
receiver methods, methods declared inside interface types and imports are
projected into the immutable values of `goifaces.model`. Generator directive
comments (`//go:generate goifaces ...`) are found by scanning raw lines, since
they only serve as scan boundaries for line based lookups.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Iterable

import structlog
from tree_sitter import Node
from tree_sitter_language_pack import get_parser

from .errors import NoSourceFileError, ParseError, SignatureError
from .model import GeneratorComment, Import, Method, Model, Type, TypeKind
from .signature import FuncDecl, parse_signature

logger = structlog.get_logger(__name__)

TOOL_NAME = "goifaces"
DIRECTIVE_RE = re.compile(r"^//go:generate\s*" + TOOL_NAME + r"\b")

# Comment lines Go treats as directives rather than documentation.
_DIRECTIVE_LINE_RE = re.compile(r"^(?:line |extern |export |[a-z0-9]+:[a-z0-9])")
_IDENT_RE = re.compile(r"[A-Za-z_]\w*")

_METHOD_ELEMS = {"method_elem", "method_spec"}


def parse(path: str | Path, src: Any = None) -> Model:
    """Parse one Go source file.

    `src` may be a `str`, `bytes`/`bytearray`, a readable stream, or None to
    read the file at `path`.
    """
    path = str(path)
    data = read_source(path, src)
    try:
        data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"{path}: invalid UTF-8 at byte {e.start}") from e
    tree = get_parser("go").parse(data)
    root = tree.root_node
    if root.has_error:
        line, col = _first_error(root)
        raise ParseError(f"{path}:{line}:{col}: syntax error")
    return _Extractor(path, data).extract(root)


def parse_files(sources: Iterable[tuple[str | Path, Any]]) -> Model:
    """Parse and merge several files of one package.

    Files that fail to parse are skipped with a warning. The package name is
    taken from the first file that parses.
    """
    models: list[Model] = []
    first_error: ParseError | None = None
    for path, src in sources:
        try:
            models.append(parse(path, src))
        except (OSError, ParseError) as e:
            logger.warning("skipping_source_file", file=str(path), error=str(e))
            if first_error is None and isinstance(e, ParseError):
                first_error = e
    if not models:
        raise NoSourceFileError(f"no source files processed: {first_error or 'no input files'}")
    return models[0].merge(*models[1:])


def read_source(path: str, src: Any) -> bytes:
    if src is None:
        return Path(path).read_bytes()
    if isinstance(src, str):
        return src.encode("utf-8")
    if isinstance(src, (bytes, bytearray)):
        return bytes(src)
    read = getattr(src, "read", None)
    if callable(read):
        out = read()
        return out.encode("utf-8") if isinstance(out, str) else bytes(out)
    raise TypeError(f"invalid source for {path}: {type(src).__name__}")


def generator_comments(path: str, data: bytes) -> list[GeneratorComment]:
    out: list[GeneratorComment] = []
    for n, line in enumerate(data.decode("utf-8", errors="replace").splitlines(), start=1):
        text = line.strip()
        if DIRECTIVE_RE.match(text):
            out.append(GeneratorComment(text=text, line=n, file=path))
    return out


def _first_error(node: Node) -> tuple[int, int]:
    stack = [node]
    while stack:
        n = stack.pop()
        if n.type == "ERROR" or n.is_missing:
            return n.start_point[0] + 1, n.start_point[1] + 1
        stack.extend(reversed(n.children))
    return node.start_point[0] + 1, node.start_point[1] + 1


class _Extractor:
    def __init__(self, path: str, data: bytes) -> None:
        self.path = path
        self.data = data
        self.package = ""
        self.imports: list[Import] = []
        self.types: list[Type] = []
        self.recvs: list[Method] = []
        self.iface_methods: list[Method] = []

    def extract(self, root: Node) -> Model:
        for node in root.named_children:
            if node.type == "package_clause":
                self.package = self.text(node.named_children[0]) if node.named_children else ""
            elif node.type == "import_declaration":
                self.import_decl(node)
            elif node.type == "type_declaration":
                self.type_decl(node)
            elif node.type == "method_declaration":
                self.method_decl(node)
        if not self.package:
            raise ParseError(f"{self.path}:1:1: missing package clause")
        return Model(
            package=self.package,
            files=(self.path,),
            imports=tuple(self.imports),
            types=tuple(self.types),
            receiver_methods=tuple(self.recvs),
            interface_methods=tuple(self.iface_methods),
            comments=tuple(generator_comments(self.path, self.data)),
        )

    def text(self, node: Node) -> str:
        return self.data[node.start_byte : node.end_byte].decode("utf-8")

    def type_text(self, node: Node) -> str:
        return " ".join(self.text(node).split())

    def import_decl(self, node: Node) -> None:
        specs: list[Node] = []
        for child in node.named_children:
            if child.type == "import_spec":
                specs.append(child)
            elif child.type == "import_spec_list":
                specs.extend(c for c in child.named_children if c.type == "import_spec")
        for spec in specs:
            name = spec.child_by_field_name("name")
            path = spec.child_by_field_name("path")
            if path is None:
                continue
            self.imports.append(
                Import(
                    alias=self.text(name) if name is not None else "",
                    path=self.text(path).strip('"`'),
                    file=self.path,
                )
            )

    def type_decl(self, node: Node) -> None:
        decl_doc = self.doc(node)
        for spec in node.named_children:
            if spec.type not in ("type_spec", "type_alias"):
                continue
            name_node = spec.child_by_field_name("name")
            type_node = spec.child_by_field_name("type")
            if name_node is None:
                continue
            name = self.text(name_node)
            kind = TypeKind.UNKNOWN
            if type_node is not None and type_node.type == "struct_type":
                kind = TypeKind.STRUCT
            elif type_node is not None and type_node.type == "interface_type":
                kind = TypeKind.INTERFACE
            self.types.append(
                Type(
                    name=name,
                    doc=self.doc(spec) or decl_doc,
                    line=name_node.start_point[0] + 1,
                    kind=kind,
                    file=self.path,
                )
            )
            if kind is TypeKind.INTERFACE:
                self.interface_members(name, type_node)

    def interface_members(self, iface: str, node: Node) -> None:
        for elem in node.named_children:
            if elem.type not in _METHOD_ELEMS:
                continue
            name_node = elem.child_by_field_name("name")
            if name_node is None:
                continue
            name = self.text(name_node)
            self.iface_methods.append(
                Method(
                    name=name,
                    doc=self.doc(elem),
                    line=name_node.start_point[0] + 1,
                    type_name=iface,
                    func=self.func(name, elem),
                    file=self.path,
                    interface=True,
                )
            )

    def method_decl(self, node: Node) -> None:
        name_node = node.child_by_field_name("name")
        receiver = node.child_by_field_name("receiver")
        if name_node is None or receiver is None:
            return
        type_name, type_params = self.receiver_type(receiver)
        name = self.text(name_node)
        self.recvs.append(
            Method(
                name=name,
                doc=self.doc(node),
                line=node.start_point[0] + 1,
                type_name=type_name,
                func=self.func(name, node),
                file=self.path,
                receiver_type_params=type_params,
            )
        )

    def receiver_type(self, receiver: Node) -> tuple[str, tuple[str, ...]]:
        decls = [c for c in receiver.named_children if c.type == "parameter_declaration"]
        if len(decls) != 1:
            return "", ()
        t = decls[0].child_by_field_name("type")
        while t is not None and t.type in ("pointer_type", "parenthesized_type"):
            inner = [c for c in t.named_children if c.type != "comment"]
            t = inner[0] if inner else None
        if t is None:
            return "", ()
        if t.type == "generic_type":
            base = t.child_by_field_name("type")
            args = t.child_by_field_name("type_arguments")
            params = tuple(_IDENT_RE.findall(self.text(args))) if args is not None else ()
            return (self.text(base) if base is not None else ""), params
        return self.text(t), ()

    def func(self, name: str, node: Node) -> FuncDecl:
        params = node.child_by_field_name("parameters")
        result = node.child_by_field_name("result")
        sig = name + (self.param_list(params) if params is not None else "()")
        if result is not None:
            if result.type == "parameter_list":
                sig += " " + self.param_list(result)
            else:
                sig += " " + self.type_text(result)
        try:
            return parse_signature(sig)
        except SignatureError as e:
            line = node.start_point[0] + 1
            raise SignatureError(f"{self.path}:{line}: {e}") from e

    def param_list(self, node: Node) -> str:
        parts: list[str] = []
        for child in node.named_children:
            if child.type == "parameter_declaration":
                names = [self.text(n) for n in child.children_by_field_name("name")]
                typ = self.type_text(child.child_by_field_name("type"))
                parts.append(f"{', '.join(names)} {typ}" if names else typ)
            elif child.type == "variadic_parameter_declaration":
                name = child.child_by_field_name("name")
                typ = "..." + self.type_text(child.child_by_field_name("type"))
                parts.append(f"{self.text(name)} {typ}" if name is not None else typ)
        return "(" + ", ".join(parts) + ")"

    def doc(self, node: Node) -> str:
        """Return the doc comment group directly above `node`."""
        comments: list[str] = []
        expected = node.start_point[0] - 1
        prev = node.prev_sibling
        while prev is not None and prev.type == "comment" and prev.end_point[0] == expected:
            before = prev.prev_sibling
            if before is not None and before.end_point[0] == prev.start_point[0]:
                break  # trailing comment of the previous line
            comments.append(self.text(prev))
            expected = prev.start_point[0] - 1
            prev = before
        comments.reverse()
        return comment_text(comments)


def comment_text(comments: list[str]) -> str:
    """Strip comment markers the way Go's CommentGroup.Text does."""
    lines: list[str] = []
    for c in comments:
        if c.startswith("//"):
            body = c[2:]
            if _DIRECTIVE_LINE_RE.match(body):
                continue
            lines.append(body[1:] if body.startswith(" ") else body)
        else:
            lines.extend(c[2:-2].splitlines())

    out: list[str] = []
    for line in (ln.rstrip() for ln in lines):
        if not line and (not out or not out[-1]):
            continue
        out.append(line)
    while out and not out[-1]:
        out.pop()
    return "\n".join(out)
