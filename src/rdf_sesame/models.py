# Sesame RDF Client
# File: models.py
# Version: v1

"""Domain models used by the Sesame client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class RepositoryInfo:
    """A repository entry as returned by the listRepositories command."""

    id: str
    title: Optional[str] = None
    readable: bool = True
    writeable: bool = False

    # Decoded entry from the server response, for debugging / advanced use.
    raw: Optional[Dict[str, Any]] = None
