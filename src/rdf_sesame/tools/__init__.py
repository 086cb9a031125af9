# Sesame RDF Client
# File: tools/__init__.py
# Version: v1

"""MCP tools exposing Sesame repository operations."""

from __future__ import annotations

from .tasks import register_tools

__all__ = ["register_tools"]
