# Sesame RDF Client
# File: response.py
# Version: v4

"""Decoding of Sesame server replies into :class:`Response` values.

The server speaks XML. Its tuple-query results encode each row as::

    <tuple>
      <uri>http://example.org/a</uri>
      <literal xml:lang="en">hello</literal>
      <null/>
    </tuple>

where the *tag name* carries the kind of each value. A decoder that
groups children by tag name would lose the column order of such a row, so
before parsing every value child is rewritten into a uniformly named
``<attribute type="...">`` element (see :func:`fix_tuples`).

The decoded generic tree stays available as ``Response.parsed_body``, but
callers should use the typed fields (``header``, ``tuples``, ``statuses``,
``notifications``, ``repositories``) built from it here.
"""

from __future__ import annotations

import codecs
import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

import httpx

from .errors import DecodeError, ProtocolError, SesameError, TransportError
from .models import RepositoryInfo
from .terms import Term

logger = logging.getLogger(__name__)

# Elements always decoded as sequences, even when only one occurs.
FORCE_LIST = frozenset(
    {
        "repository",
        "status",
        "notification",
        "columnName",
        "tuple",
        "attribute",
        "error",
    }
)

_XML_NAMESPACE = "{http://www.w3.org/XML/1998/namespace}"

_TUPLE_RE = re.compile(r"<tuple(\s[^>]*)?>(.*?)</tuple\s*>", re.S | re.I)
_EMPTY_VALUE_RE = re.compile(
    r"<\s*(bNode|literal|uri|null)((?:\s[^>]*?)?)\s*/\s*>", re.S | re.I
)
_VALUE_RE = re.compile(
    r"<\s*(bNode|literal|uri|null)((?:\s[^>]*)?)>(.*?)</\1\s*>", re.S | re.I
)
_CDATA_RE = re.compile(r"<!\[CDATA\[.*?\]\]>", re.S)
_PLACEHOLDER_RE = re.compile(r"\x00(\d+)\x00")

_CHARSET_RE = re.compile(r"charset\s*=\s*[\"']?([\w.:-]+)", re.I)
_XML_ENCODING_RE = re.compile(
    rb"^\s*<\?xml[^>]*?encoding\s*=\s*[\"']([A-Za-z][\w.-]*)[\"']"
)


# ---------------------------------------------------------------------------
# Tuple fix-up transform
# ---------------------------------------------------------------------------


def _fix_tuple(match: "re.Match[str]") -> str:
    attrs = match.group(1) or ""
    content = _EMPTY_VALUE_RE.sub(
        lambda m: f"<attribute type='{m.group(1)}'{m.group(2)} />",
        match.group(2),
    )
    content = _VALUE_RE.sub(
        lambda m: f"<attribute type='{m.group(1)}'{m.group(2)}>{m.group(3)}</attribute>",
        content,
    )
    return f"<tuple{attrs}>{content}</tuple>"


def fix_tuples(xml_text: str) -> str:
    """Rewrite the value children of every ``<tuple>`` as typed attributes.

    ``<uri>x</uri>`` becomes ``<attribute type='uri'>x</attribute>``,
    ``<null/>`` becomes ``<attribute type='null' />``. Any other XML
    attributes of a value (``xml:lang``, ``datatype``) are kept as they are.
    Text outside tuples and the content of CDATA sections are left
    untouched.
    """
    sections: List[str] = []

    def _stash(match: "re.Match[str]") -> str:
        sections.append(match.group(0))
        return f"\x00{len(sections) - 1}\x00"

    # NUL cannot occur in an XML document, so it is a safe placeholder.
    protected = _CDATA_RE.sub(_stash, xml_text)
    fixed = _TUPLE_RE.sub(_fix_tuple, protected)
    if not sections:
        return fixed
    return _PLACEHOLDER_RE.sub(lambda m: sections[int(m.group(1))], fixed)


# ---------------------------------------------------------------------------
# Generic tree decoding
# ---------------------------------------------------------------------------


def _name(raw: str) -> str:
    if raw.startswith(_XML_NAMESPACE):
        return "xml:" + raw[len(_XML_NAMESPACE) :]
    if raw.startswith("{"):
        return raw.split("}", 1)[1]
    return raw


def _decode_element(elem: ET.Element) -> Any:
    attrs = {_name(k): v for k, v in elem.attrib.items()}
    children = list(elem)
    text = elem.text or ""

    if not attrs and not children:
        return text

    node: Dict[str, Any] = dict(attrs)
    for child in children:
        name = _name(child.tag)
        value = _decode_element(child)
        if name in FORCE_LIST:
            node.setdefault(name, []).append(value)
        elif name in node:
            if not isinstance(node[name], list):
                node[name] = [node[name]]
            node[name].append(value)
        else:
            node[name] = value

    # Leaf text is kept verbatim; whitespace between child elements is not.
    if text and (not children or text.strip()):
        node["content"] = text

    return node


def decode_xml(xml_text: str) -> Dict[str, Any]:
    """Decode an XML document into nested dicts and lists.

    The root element itself is dropped. A root element whose name is in
    :data:`FORCE_LIST` (a bare ``<error>`` document, for instance) is kept
    as the single entry of that sequence.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        raise DecodeError(f"Malformed XML in response: {exc}") from exc

    root_name = _name(root.tag)
    decoded = _decode_element(root)
    if root_name in FORCE_LIST:
        return {root_name: [decoded]}
    if isinstance(decoded, dict):
        return decoded
    return {"content": decoded} if decoded.strip() else {}


# ---------------------------------------------------------------------------
# Typed extraction
# ---------------------------------------------------------------------------


def _sequence(parsed: Dict[str, Any], name: str) -> List[Any]:
    value = parsed.get(name)
    if value is None:
        return []
    if not isinstance(value, list):
        raise DecodeError(f"Expected a sequence of <{name}> entries")
    return value


def _text(entry: Any) -> str:
    if isinstance(entry, dict):
        return str(entry.get("content", ""))
    return str(entry)


def _message(entry: Any) -> str:
    """The free-text message of a status, notification or error entry."""
    if isinstance(entry, dict):
        msg = entry.get("msg", entry.get("content", ""))
        return _text(msg)
    return str(entry)


def _decode_cell(attribute: Any) -> Optional[Term]:
    if not isinstance(attribute, dict):
        raise DecodeError("Tuple value without a type")

    kind = str(attribute.get("type", "")).lower()
    content = _text(attribute)
    if kind == "bnode":
        return Term.bnode(content)
    if kind == "uri":
        return Term.uri(content)
    if kind == "literal":
        return Term.literal(
            content,
            language=attribute.get("xml:lang") or None,
            datatype=attribute.get("datatype") or None,
        )
    return None


def _decode_header(parsed: Dict[str, Any]) -> Tuple[str, ...]:
    header = parsed.get("header")
    if not isinstance(header, dict):
        return ()
    return tuple(_text(c) for c in _sequence(header, "columnName"))


def _decode_tuples(parsed: Dict[str, Any]) -> Tuple[Tuple[Optional[Term], ...], ...]:
    rows = []
    for entry in _sequence(parsed, "tuple"):
        attributes = _sequence(entry, "attribute") if isinstance(entry, dict) else []
        rows.append(tuple(_decode_cell(a) for a in attributes))
    return tuple(rows)


def _flag(value: Any, default: bool) -> bool:
    if value is None:
        return default
    return str(value).strip().lower() in {"true", "1", "yes", "on"}


def _decode_repositories(parsed: Dict[str, Any]) -> Tuple[RepositoryInfo, ...]:
    repositories = []
    for entry in _sequence(parsed, "repository"):
        if not isinstance(entry, dict) or not entry.get("id"):
            continue
        title = entry.get("title")
        repositories.append(
            RepositoryInfo(
                id=str(entry["id"]),
                title=_text(title) if title is not None else None,
                readable=_flag(entry.get("readable"), True),
                writeable=_flag(entry.get("writeable"), False),
                raw=entry,
            )
        )
    return tuple(repositories)


def _is_xml(content_type: str) -> bool:
    content_type = (content_type or "").lower()
    return "xml" in content_type and "rdf+xml" not in content_type


def _body_encoding(content_type: str, body: bytes) -> str:
    """Charset of the content type, else the XML declaration, else UTF-8."""
    match = _CHARSET_RE.search(content_type or "")
    if match is None and _is_xml(content_type):
        match = _XML_ENCODING_RE.match(body[:200])
    if match is None:
        return "utf-8"

    encoding = match.group(1)
    if isinstance(encoding, bytes):
        encoding = encoding.decode("ascii")
    try:
        return codecs.lookup(encoding).name
    except LookupError:
        logger.debug("Unknown response charset %r, using UTF-8", encoding)
        return "utf-8"


def _decode_body(
    content_type: str,
    body: Union[str, bytes, None],
) -> Tuple[str, Optional[str]]:
    """Return the body text and, when the bytes do not decode cleanly, why."""
    if body is None:
        return "", None
    if isinstance(body, str):
        return body, None

    encoding = _body_encoding(content_type, body)
    try:
        return body.decode(encoding), None
    except UnicodeDecodeError as exc:
        message = f"Response body is not valid {encoding}: {exc}"
        return body.decode(encoding, errors="replace"), message


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Response:
    """The outcome of one command sent to a Sesame server."""

    success: bool
    error_message: str = ""
    raw_body: str = ""
    parsed_body: Dict[str, Any] = field(default_factory=dict)

    status_code: Optional[int] = None
    content_type: str = ""

    # Classified failure, None on success.
    error: Optional[SesameError] = None

    header: Tuple[str, ...] = ()
    tuples: Tuple[Tuple[Optional[Term], ...], ...] = ()
    statuses: Tuple[str, ...] = ()
    notifications: Tuple[str, ...] = ()
    repositories: Tuple[RepositoryInfo, ...] = ()

    @classmethod
    def transport_failure(cls, message: str) -> "Response":
        """No reply was obtained at all (network failure, unreachable host)."""
        return cls(
            success=False,
            error_message=message,
            error=TransportError(message),
        )

    @classmethod
    def from_http(
        cls,
        status_code: int,
        reason: str,
        content_type: str,
        body: Union[str, bytes, None],
    ) -> "Response":
        """Normalise the pieces of an HTTP reply into a Response."""
        body_text, undecodable = _decode_body(content_type, body)

        error: Optional[SesameError] = None
        if not 200 <= int(status_code) < 300:
            error = TransportError(reason or f"HTTP {status_code}")

        parsed: Dict[str, Any] = {}
        typed: Dict[str, Any] = {}
        if body_text.strip() and _is_xml(content_type):
            try:
                if undecodable:
                    raise DecodeError(undecodable)
                parsed = decode_xml(fix_tuples(body_text))
                errors = _sequence(parsed, "error")
                if errors:
                    error = ProtocolError(_message(errors[0]) or "Unknown server error")
                typed = {
                    "header": _decode_header(parsed),
                    "tuples": _decode_tuples(parsed),
                    "statuses": tuple(_message(s) for s in _sequence(parsed, "status")),
                    "notifications": tuple(
                        _message(n) for n in _sequence(parsed, "notification")
                    ),
                    "repositories": _decode_repositories(parsed),
                }
            except DecodeError as exc:
                logger.debug("Could not decode response body: %s", exc)
                typed = {}
                if error is None:
                    error = exc

        return cls(
            success=error is None,
            error_message=str(error) if error is not None else "",
            raw_body=body_text,
            parsed_body=parsed,
            status_code=int(status_code),
            content_type=content_type or "",
            error=error,
            **typed,
        )

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> "Response":
        return cls.from_http(
            response.status_code,
            response.reason_phrase,
            response.headers.get("content-type", ""),
            response.content,
        )
