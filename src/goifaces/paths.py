from __future__ import annotations

import os
import subprocess
from pathlib import Path


def goroot() -> Path | None:
    """Return the Go standard library root.

    Override with `GOROOT`; otherwise ask the toolchain (`go env GOROOT`).
    Returns None when neither is available.
    """
    override = os.environ.get("GOROOT")
    if override:
        return Path(override)
    try:
        proc = subprocess.run(
            ["go", "env", "GOROOT"],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            check=False,
        )
    except FileNotFoundError:
        return None
    out = proc.stdout.strip()
    if proc.returncode != 0 or not out:
        return None
    return Path(out)


def gopath() -> Path:
    """Return the GOPATH. Override with `GOPATH` (first list element is used)."""
    override = os.environ.get("GOPATH")
    if override:
        return Path(override.split(os.pathsep)[0])
    return Path(os.path.expanduser("~/go"))


def gomodcache() -> Path:
    """Return the module cache root. Override with `GOMODCACHE`."""
    override = os.environ.get("GOMODCACHE")
    if override:
        return Path(override)
    return gopath() / "pkg" / "mod"


def gofile() -> str:
    """Source file set by `go generate`, or ""."""
    return os.environ.get("GOFILE", "")


def goline() -> int:
    """Directive line set by `go generate`, or -1."""
    try:
        return int(os.environ.get("GOLINE", ""))
    except ValueError:
        return -1
