"""Domain-specific errors for goifaces."""

from __future__ import annotations


class GoIfacesError(Exception):
    """Base error for goifaces."""


class ParseError(GoIfacesError):
    """Raised when Go source cannot be parsed."""


class SignatureError(ParseError):
    """Raised when a method signature does not match the supported grammar."""


class NoSourceFileError(ParseError):
    """Raised when none of the input files could be parsed."""


class NotFoundError(GoIfacesError):
    """Raised when a requested type, method, line or pattern matched nothing."""


class DuplicateError(GoIfacesError):
    """Raised when adding an interface or method that is already present."""


class DuplicateInterfaceError(DuplicateError):
    """Raised when an interface with the same name is already present."""


class DuplicateMethodError(DuplicateError):
    """Raised when a method with the same name is already present in an interface."""


class ImportResolutionError(GoIfacesError):
    """Raised when no import path can be derived for a source file."""


class FormatError(GoIfacesError):
    """Raised when the source formatter fails."""
