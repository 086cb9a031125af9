# Sesame RDF Client
# File: tests/conftest.py
# Version: v1

"""Shared fakes for the test-suite.

Nothing here talks to a real Sesame server: repository logic is driven
through ``FakeConnection`` and HTTP behaviour through ``httpx.MockTransport``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import pytest

from rdf_sesame.response import Response


def xml_response(body: str, status_code: int = 200, reason: str = "OK") -> Response:
    return Response.from_http(status_code, reason, "text/xml; charset=utf-8", body)


SCENARIO_RESULT_XML = """<?xml version="1.0" encoding="UTF-8"?>
<tableQueryResult>
  <header>
    <columnName>uri</columnName>
    <columnName>literal</columnName>
  </header>
  <tuple>
    <uri>http://purl.org/dc/terms/issued</uri>
    <literal>1999-07-02</literal>
  </tuple>
</tableQueryResult>
"""


def transaction_xml(*, statuses: Tuple[str, ...] = (), notifications: Tuple[str, ...] = ()) -> str:
    parts = ["<?xml version='1.0' encoding='UTF-8'?>", "<transaction>"]
    parts += [f"<status><msg>{m}</msg></status>" for m in statuses]
    parts += [f"<notification><msg>{m}</msg></notification>" for m in notifications]
    parts.append("</transaction>")
    return "\n".join(parts)


class FakeConnection:
    """Stands in for Connection: replays canned responses, records commands."""

    def __init__(self, *responses: Response, files: Optional[Dict[str, str]] = None) -> None:
        self.responses: List[Response] = list(responses)
        self.calls: List[Tuple[Optional[str], str, Dict[str, str]]] = []
        self.files = files or {}
        self.fetched: List[str] = []

    def command(self, repository_id: Optional[str], name: str, params: Dict[str, Any]) -> Response:
        self.calls.append((repository_id, name, dict(params)))
        if not self.responses:
            raise AssertionError(f"Unexpected command {name!r}")
        return self.responses.pop(0)

    def fetch(self, uri: str) -> Optional[str]:
        self.fetched.append(uri)
        return self.files.get(uri)


@pytest.fixture
def scenario_xml() -> str:
    return SCENARIO_RESULT_XML
