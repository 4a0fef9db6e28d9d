from __future__ import annotations

import re

_PKG_RE = re.compile(r"[a-z][a-z0-9]*")


def ex_pkg(text: str) -> str:
    """Extract a leading lowercase package name, or ""."""
    m = _PKG_RE.match(text)
    return m.group(0) if m else ""


def ex_pkg_path(path: str) -> str:
    """Guess the package name from the last segment of an import path.

    `github.com/author/pkg-go` -> `pkg`
    """
    return ex_pkg(path.rsplit("/", 1)[-1])


def is_pkg(text: str) -> bool:
    return bool(text) and ex_pkg(text) == text


def strip_version(path: str) -> str:
    """Strip the `@version` element from a module cache relative path.

    `github.com/a/b@v1.0.0/pkg` -> `github.com/a/b/pkg`
    """
    at = path.find("@")
    if at == -1:
        return path
    slash = path.find("/", at)
    if slash == -1:
        return path[:at]
    return path[:at] + path[slash:]
