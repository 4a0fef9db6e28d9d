"""goifaces: generate Go interface declarations from Go source."""

from __future__ import annotations

from . import errors
from .generate import Destination, GenerateOptions, Generator, Source, TargetResult
from .parser import parse, parse_files
from .query import Query
from .signature import parse_signature

__all__ = [
    "Destination",
    "GenerateOptions",
    "Generator",
    "Query",
    "Source",
    "TargetResult",
    "errors",
    "parse",
    "parse_files",
    "parse_signature",
]
