from __future__ import annotations

import re


def capitalized(name: str) -> bool:
    """Return True if `name` is an exported Go identifier."""
    return name[:1].isupper()


def _translate(pattern: str) -> str:
    return "".join(".*" if c == "*" else "." if c == "?" else re.escape(c) for c in pattern)


def match(name: str, pattern: str) -> bool:
    """Return True if `pattern` matches the whole of `name`.

    `*` matches any run of characters (including none) and `?` matches exactly
    one character. Every other character, `[` included, matches itself.
    Matching is case-sensitive.
    """
    return re.fullmatch(_translate(pattern), name, re.S) is not None
