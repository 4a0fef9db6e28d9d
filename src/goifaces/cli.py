from __future__ import annotations

import argparse
import importlib.metadata
import logging
import os
import sys
from pathlib import Path

import structlog

from .errors import GoIfacesError
from .generate import DEFAULT_COMMENT, Destination, GenerateOptions, Generator, Source
from .modinfo import ModInfo
from .names import ex_pkg, is_pkg
from .paths import gofile, goline
from .render import GofmtFormatter, ImportBlockFormatter


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("out", nargs="?", default=None, help="Output file. Truncated unless -a is set.")
    p.add_argument("-f", dest="srcs", action="append", default=[], metavar="SRC", help="Source file or directory to scan.")
    p.add_argument("-a", dest="append", action="store_true", help="Add to the output file instead of truncating.")
    p.add_argument("-p", dest="pkg", default="", help="Package name. Defaults to the output file's directory name.")
    p.add_argument(
        "-i",
        dest="iface",
        default="",
        help="Interface name. If omitted the type name is used with a prefix and/or suffix added.",
    )
    p.add_argument("-t", dest="match_type", default="", help="Match types by wildcard.")
    p.add_argument("--pre", default="", help="Add a prefix to the interface name.")
    p.add_argument("--post", default="", help="Add a suffix to the interface name.")
    p.add_argument("--tdoc", default="", help="Custom type document. Defaults to the source type's document.")
    p.add_argument("--no-tdoc", action="store_true", help="Do not copy the type document to the interface.")
    p.add_argument("--no-fdoc", action="store_true", help="Do not copy method documents to the interface.")
    p.add_argument("-c", dest="comment", default=DEFAULT_COMMENT, help="Comment at the top of the output file.")
    p.add_argument(
        "-m",
        dest="module",
        default=None,
        help="Scan a module from the module cache (path or path@version) instead of the file system.",
    )
    p.add_argument("--print", action="store_true", help="Print generated source to stdout (default without OUT).")
    p.add_argument("--gofmt", action="store_true", help="Format the output with gofmt.")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="goifaces")
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("version", help="Print goifaces version.")

    p_type = sub.add_parser(
        "type",
        help="Generate interfaces for all structs, types matching a wildcard, "
        "or the first type after a go:generate directive.",
    )
    _add_common(p_type)
    p_type.add_argument("-s", dest="struct", action="store_true", help="Generate an interface for every struct.")

    p_recv = sub.add_parser(
        "recv",
        help="Generate an interface from receivers matching a wildcard "
        "or the first receiver after a go:generate directive.",
    )
    _add_common(p_recv)
    p_recv.add_argument("-r", dest="match_func", default="", help="Match receiver methods by wildcard.")

    args = parser.parse_args(argv)
    if args.cmd == "version":
        try:
            print(importlib.metadata.version("goifaces"))
        except importlib.metadata.PackageNotFoundError:
            print("0.0.0")
        return

    if args.pkg and not is_pkg(args.pkg):
        raise SystemExit(f"goifaces: invalid package name {args.pkg!r}")

    _configure_logging(args.verbose)

    options = GenerateOptions(
        comment=args.comment,
        iface=args.iface,
        pkg=args.pkg,
        pre=args.pre,
        post=args.post,
        tdoc=args.tdoc,
        no_tdoc=args.no_tdoc,
        no_fdoc=args.no_fdoc,
        struct=getattr(args, "struct", False),
        match_type=args.match_type,
        match_func=getattr(args, "match_func", ""),
    )
    formatter = GofmtFormatter() if args.gofmt else ImportBlockFormatter()
    gen = Generator(options, formatter=formatter)

    try:
        sources = collect_sources(args.srcs, out=args.out, module=args.module)
        dest = destination(args.out, append=args.append)
        if args.cmd == "type":
            results = gen.types(sources, [dest])
        else:
            results = gen.recvs(sources, [dest])
    except GoIfacesError as e:
        raise SystemExit(f"goifaces: {e}") from e

    for r in results:
        if not r.ok:
            raise SystemExit(f"goifaces: {r.error}")
        if args.out:
            Path(args.out).write_text(r.output or "", encoding="utf-8")
        if args.print or not args.out:
            sys.stdout.write(r.output or "")


def _configure_logging(verbose: bool) -> None:
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if verbose else logging.INFO),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def collect_sources(srcs: list[str], *, out: str | None = None, module: str | None = None) -> list[Source]:
    """Expand `-f` arguments into the package's Go files.

    A directory contributes its `*.go` files. A file contributes itself first,
    then the other `*.go` files beside it. Without `-f` the file named by
    `GOFILE` is used, anchored at `GOLINE`.
    """
    anchor_line = 0
    if module:
        base = ModInfo.load_from_parents(Path.cwd()).module_dir(module)
        srcs = [str(base / s) for s in srcs] or [str(base)]
    elif not srcs:
        f = gofile()
        if not f:
            raise SystemExit("goifaces: no source given; use -f or run from go generate (GOFILE)")
        srcs = [f]
        anchor_line = max(goline(), 0)

    skip = {os.path.abspath(out)} if out else set()
    seen: set[str] = set()
    sources: list[Source] = []

    def add(path: Path, line: int = 0) -> None:
        key = os.path.abspath(path)
        if key in seen or key in skip:
            return
        seen.add(key)
        sources.append(Source(file=str(path), line=line))

    for i, s in enumerate(srcs):
        p = Path(s)
        if p.is_dir():
            for f in sorted(p.glob("*.go")):
                add(f)
            continue
        add(p, anchor_line if i == 0 else 0)
        for f in sorted(p.parent.glob("*.go")):
            add(f)
    return sources


def destination(out: str | None, *, append: bool = False) -> Destination:
    if not out:
        return Destination(file="")
    path = Path(out)
    current = path.read_bytes() if append and path.exists() else None
    return Destination(file=out, package=ex_pkg(path.resolve().parent.name), current=current)


if __name__ == "__main__":
    main()
