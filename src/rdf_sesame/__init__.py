# Sesame RDF Client
# File: __init__.py
# Version: v2

"""Client for Sesame RDF servers over their HTTP protocol."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from .config import SesameConfig
from .connection import Connection, connect
from .errors import (
    DecodeError,
    ProtocolError,
    SesameError,
    TransportError,
    UnknownOutcome,
    ValidationError,
)
from .models import RepositoryInfo
from .repository import Repository
from .response import Response
from .table import TableResult
from .terms import StripPolicy, Term, TermKind, parse_term

__all__ = [
    "__version__",
    "Connection",
    "DecodeError",
    "ProtocolError",
    "Repository",
    "RepositoryInfo",
    "Response",
    "SesameConfig",
    "SesameError",
    "StripPolicy",
    "TableResult",
    "Term",
    "TermKind",
    "TransportError",
    "UnknownOutcome",
    "ValidationError",
    "connect",
    "parse_term",
]


def _resolve_version() -> str:
    """Resolve installed distribution version.

    Falls back to a reasonable default when running from source without an
    installed distribution.
    """
    try:
        return version("rdf-sesame-client")
    except PackageNotFoundError:
        return "0.10.0"


__version__ = _resolve_version()
