# Sesame RDF Client
# File: errors.py
# Version: v1

"""Error taxonomy for the Sesame client.

Repository operations never raise these: they record the instance and
report failure through their return value. Connection setup raises them.
"""

from __future__ import annotations


class SesameError(RuntimeError):
    """Base class for every failure reported by this package."""

    code = "SESAME_ERROR"


class TransportError(SesameError):
    """The HTTP call could not be completed, or returned a failing status."""

    code = "TRANSPORT_ERROR"


class ProtocolError(SesameError):
    """The server answered, but its body carries an embedded error record."""

    code = "PROTOCOL_ERROR"


class ValidationError(SesameError):
    """A caller-supplied option was rejected before contacting the server."""

    code = "VALIDATION_ERROR"


class DecodeError(SesameError):
    """The response body was malformed or did not have the expected shape."""

    code = "DECODE_ERROR"


class UnknownOutcome(SesameError):
    """The server reported success but no known status message matched."""

    code = "UNKNOWN_OUTCOME"
