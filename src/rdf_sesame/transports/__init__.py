# Sesame RDF Client
# File: transports/__init__.py
# Version: v1

"""Transports for serving the Sesame MCP tools."""
