# Sesame RDF Client
# File: tests/test_response.py
# Version: v3

"""Tests for decoding server replies (tuple fix-up, errors, typed fields)."""

from __future__ import annotations

import httpx

from rdf_sesame.errors import DecodeError, ProtocolError, TransportError
from rdf_sesame.response import Response, decode_xml, fix_tuples
from rdf_sesame.terms import Term, TermKind

from conftest import transaction_xml, xml_response

XSD_INT = "http://www.w3.org/2001/XMLSchema#integer"

MIXED_RESULT_XML = f"""<?xml version="1.0" encoding="UTF-8"?>
<tableQueryResult>
  <header>
    <columnName>label</columnName>
    <columnName>thing</columnName>
    <columnName>missing</columnName>
    <columnName>node</columnName>
    <columnName>count</columnName>
  </header>
  <tuple>
    <literal xml:lang="en">Hello</literal>
    <uri>http://example.org/thing</uri>
    <null/>
    <bNode>node12</bNode>
    <literal datatype="{XSD_INT}">42</literal>
  </tuple>
  <tuple>
    <uri>http://example.org/other</uri>
    <literal>plain</literal>
    <bNode>node13</bNode>
    <null />
    <literal datatype="{XSD_INT}">7</literal>
  </tuple>
</tableQueryResult>
"""


# ---------------------------------------------------------------------------
# Tuple fix-up transform
# ---------------------------------------------------------------------------


def test_fix_tuples_rewrites_value_children_in_order() -> None:
    fixed = fix_tuples(
        '<r><tuple><literal xml:lang="en">a</literal><uri>u</uri><null/></tuple></r>'
    )
    assert fixed == (
        "<r><tuple>"
        "<attribute type='literal' xml:lang=\"en\">a</attribute>"
        "<attribute type='uri'>u</attribute>"
        "<attribute type='null' />"
        "</tuple></r>"
    )


def test_fix_tuples_leaves_text_outside_tuples_alone() -> None:
    text = "<r><header><columnName>uri</columnName></header><uri>x</uri></r>"
    assert fix_tuples(text) == text


def test_fix_tuples_handles_empty_self_closing_values() -> None:
    fixed = fix_tuples("<tuple><literal/><bNode>b</bNode></tuple>")
    assert fixed == (
        "<tuple><attribute type='literal' /><attribute type='bNode'>b</attribute></tuple>"
    )


# ---------------------------------------------------------------------------
# Generic tree
# ---------------------------------------------------------------------------


def test_decode_xml_forces_sequences_and_keeps_sibling_order() -> None:
    parsed = decode_xml(fix_tuples(MIXED_RESULT_XML))

    assert parsed["header"]["columnName"] == ["label", "thing", "missing", "node", "count"]
    assert len(parsed["tuple"]) == 2
    types = [a["type"] for a in parsed["tuple"][0]["attribute"]]
    assert types == ["literal", "uri", "null", "bNode", "literal"]
    assert parsed["tuple"][0]["attribute"][0]["xml:lang"] == "en"


def test_decode_xml_single_status_is_still_a_list() -> None:
    parsed = decode_xml(transaction_xml(statuses=("Repository cleared",)))
    assert parsed["status"] == [{"msg": "Repository cleared"}]


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------


def test_typed_tuples_follow_column_order() -> None:
    resp = xml_response(MIXED_RESULT_XML)

    assert resp.success is True
    assert resp.error is None
    assert resp.header == ("label", "thing", "missing", "node", "count")
    first, second = resp.tuples
    assert first == (
        Term.literal("Hello", language="en"),
        Term.uri("http://example.org/thing"),
        None,
        Term.bnode("node12"),
        Term.literal("42", datatype=XSD_INT),
    )
    assert second[1].kind is TermKind.PLAIN_LITERAL
    assert second[3] is None


def test_embedded_error_overrides_http_success() -> None:
    resp = xml_response("<error><code>1</code><msg>Repository not found</msg></error>")

    assert resp.success is False
    assert resp.error_message == "Repository not found"
    assert isinstance(resp.error, ProtocolError)


def test_first_of_several_errors_wins() -> None:
    body = (
        "<transaction>"
        "<error><msg>first problem</msg></error>"
        "<error><msg>second problem</msg></error>"
        "</transaction>"
    )
    assert xml_response(body).error_message == "first problem"


def test_embedded_error_reported_regardless_of_http_status() -> None:
    resp = xml_response(
        "<error><msg>Repository not found</msg></error>",
        status_code=404,
        reason="Not Found",
    )
    assert resp.success is False
    assert resp.error_message == "Repository not found"


def test_failing_status_without_xml_uses_reason_phrase() -> None:
    resp = Response.from_http(500, "Internal Server Error", "text/html", b"<html>oops")

    assert resp.success is False
    assert resp.error_message == "Internal Server Error"
    assert isinstance(resp.error, TransportError)
    assert resp.raw_body == "<html>oops"
    assert resp.parsed_body == {}


def test_malformed_xml_is_a_decode_failure_not_a_crash() -> None:
    resp = xml_response("<transaction><status><msg>half")

    assert resp.success is False
    assert isinstance(resp.error, DecodeError)
    assert "Malformed XML" in resp.error_message
    assert resp.raw_body == "<transaction><status><msg>half"


def test_non_xml_content_type_is_not_parsed() -> None:
    resp = Response.from_http(200, "OK", "text/plain", "<a>not parsed</a>")

    assert resp.success is True
    assert resp.parsed_body == {}
    assert resp.raw_body == "<a>not parsed</a>"


def test_rdf_xml_payload_is_kept_raw() -> None:
    body = '<rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#"/>'
    resp = Response.from_http(200, "OK", "application/rdf+xml", body)

    assert resp.success is True
    assert resp.parsed_body == {}
    assert resp.raw_body == body


def test_transport_failure() -> None:
    resp = Response.transport_failure("Connection refused")

    assert resp.success is False
    assert resp.error_message == "Connection refused"
    assert resp.raw_body == ""
    assert resp.parsed_body == {}


def test_statuses_notifications_and_repositories() -> None:
    resp = xml_response(
        transaction_xml(
            statuses=("Loading data", "Processed 3 statements"),
            notifications=("Removed 2 statements",),
        )
    )
    assert resp.statuses == ("Loading data", "Processed 3 statements")
    assert resp.notifications == ("Removed 2 statements",)

    listing = xml_response(
        """<repositorylist>
             <repository id="mem-rdf" readable="true" writeable="true">
               <title>Main memory</title>
             </repository>
             <repository id="museum" readable="true" writeable="false">
               <title>Museum</title>
             </repository>
           </repositorylist>"""
    )
    assert [r.id for r in listing.repositories] == ["mem-rdf", "museum"]
    assert listing.repositories[0].title == "Main memory"
    assert listing.repositories[1].writeable is False


def test_from_httpx_uses_status_headers_and_body() -> None:
    http_response = httpx.Response(
        200,
        headers={"content-type": "text/xml"},
        text=transaction_xml(statuses=("Repository cleared",)),
    )
    resp = Response.from_httpx(http_response)

    assert resp.success is True
    assert resp.status_code == 200
    assert resp.statuses == ("Repository cleared",)


# ---------------------------------------------------------------------------
# Body encodings
# ---------------------------------------------------------------------------

LATIN1_RESULT = (
    '<?xml version="1.0" encoding="ISO-8859-1"?>'
    "<tableQueryResult><header><columnName>name</columnName></header>"
    "<tuple><literal>caf\xe9</literal></tuple></tableQueryResult>"
).encode("latin-1")


def test_charset_of_content_type_is_honoured() -> None:
    resp = Response.from_http(200, "OK", "text/xml; charset=ISO-8859-1", LATIN1_RESULT)

    assert resp.success is True
    assert resp.tuples == ((Term.literal("caf\xe9"),),)
    assert "caf\xe9" in resp.raw_body


def test_xml_declaration_encoding_is_honoured_without_charset() -> None:
    resp = Response.from_http(200, "OK", "text/xml", LATIN1_RESULT)

    assert resp.success is True
    assert resp.tuples[0][0].value == "caf\xe9"


def test_utf8_is_the_default_encoding() -> None:
    body = "<transaction><status><msg>Fertig ✓</msg></status></transaction>"
    resp = Response.from_http(200, "OK", "text/xml", body.encode("utf-8"))

    assert resp.statuses == ("Fertig ✓",)


def test_undecodable_xml_body_is_a_decode_failure() -> None:
    body = b"<transaction><status><msg>caf\xe9</msg></status></transaction>"
    resp = Response.from_http(200, "OK", "text/xml; charset=utf-8", body)

    assert resp.success is False
    assert isinstance(resp.error, DecodeError)
    assert "not valid utf-8" in resp.error_message
    assert resp.raw_body == "<transaction><status><msg>caf�</msg></status></transaction>"


# ---------------------------------------------------------------------------
# CDATA sections
# ---------------------------------------------------------------------------


def test_fix_tuples_leaves_cdata_content_alone() -> None:
    text = "<tuple><literal><![CDATA[<uri/> and </literal>]]></literal></tuple>"
    assert fix_tuples(text) == (
        "<tuple><attribute type='literal'>"
        "<![CDATA[<uri/> and </literal>]]>"
        "</attribute></tuple>"
    )


def test_cdata_value_containing_a_closing_tag_decodes() -> None:
    resp = xml_response(
        "<tableQueryResult><header><columnName>v</columnName></header>"
        "<tuple><literal><![CDATA[x</literal>y]]></literal></tuple>"
        "</tableQueryResult>"
    )

    assert resp.success is True
    assert resp.tuples == ((Term.literal("x</literal>y"),),)
