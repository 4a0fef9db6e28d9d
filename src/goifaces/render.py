"""Render template data into Go source text."""

from __future__ import annotations

import subprocess
from typing import Iterable, Protocol

from .errors import FormatError
from .model import Import
from .tdata import TemplateData


class SourceFormatter(Protocol):
    def format(self, filename: str, draft: str, imports: Iterable[Import]) -> str: ...


def apply_template(data: TemplateData) -> str:
    lines: list[str] = []
    if data.comment:
        for c in data.comment.splitlines():
            lines.append(f"// {c}".rstrip())
        lines.append("")
    lines.append(f"package {data.pkg}")
    for iface in data.interfaces:
        lines.append("")
        lines.extend(iface.doc_lines())
        lines.append(f"type {iface.name} interface {{")
        for m in iface.methods:
            lines.extend("\t" + d for d in m.doc_lines())
            lines.append(f"\t{m.signature}")
        lines.append("}")
    return "\n".join(lines) + "\n"


def is_std_path(path: str) -> bool:
    # Standard library paths have no dot in their first element.
    return "." not in path.split("/", 1)[0]


def import_block(imports: Iterable[Import]) -> str:
    unique = {i.key: i for i in imports}
    if not unique:
        return ""
    std = sorted((i for i in unique.values() if is_std_path(i.path)), key=lambda i: (i.path, i.alias))
    other = sorted((i for i in unique.values() if not is_std_path(i.path)), key=lambda i: (i.path, i.alias))
    lines = ["import ("]
    for group in (std, other):
        if not group:
            continue
        if len(lines) > 1:
            lines.append("")
        for i in group:
            lines.append(f'\t{i.alias} "{i.path}"' if i.alias else f'\t"{i.path}"')
    lines.append(")")
    return "\n".join(lines) + "\n"


class ImportBlockFormatter:
    """Insert a single import block after the package clause."""

    def format(self, filename: str, draft: str, imports: Iterable[Import]) -> str:
        block = import_block(imports)
        if not block:
            return draft
        lines = draft.splitlines(keepends=True)
        for n, line in enumerate(lines):
            if line.startswith("package "):
                return "".join(lines[: n + 1]) + "\n" + block + "".join(lines[n + 1 :])
        raise FormatError(f"{filename}: missing package clause")


class GofmtFormatter(ImportBlockFormatter):
    """Insert imports, then normalize through the `gofmt` binary."""

    def __init__(self, gofmt: str = "gofmt") -> None:
        self.gofmt = gofmt

    def format(self, filename: str, draft: str, imports: Iterable[Import]) -> str:
        text = super().format(filename, draft, imports)
        try:
            proc = subprocess.run(
                [self.gofmt],
                input=text,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            raise FormatError(f"{self.gofmt} not found on PATH; install Go and ensure `gofmt` is available") from e
        if proc.returncode != 0:
            raise FormatError(f"{filename}: gofmt failed:\n{proc.stderr.strip()}")
        return proc.stdout


def render(
    data: TemplateData,
    filename: str,
    imports: Iterable[Import] = (),
    formatter: SourceFormatter | None = None,
) -> str:
    formatter = formatter if formatter is not None else ImportBlockFormatter()
    return formatter.format(filename, apply_template(data), imports)
