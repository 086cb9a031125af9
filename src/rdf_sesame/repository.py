# Sesame RDF Client
# File: repository.py
# Version: v4

"""Operations on a single Sesame repository.

Implements:

- select() via the evaluateTableQuery command
- upload_data() / upload_uri() via the uploadData / uploadURL commands
- remove() via the removeStatements command
- clear() via the clearRepository command
- extract() via the extractRDF command

None of these raise on failure. Each returns a failure value (``None``,
``0`` or ``False``) and records the error, which is then available from
:meth:`Repository.errstr` and :attr:`Repository.last_error` until the next
operation starts.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Dict, Iterable, Optional, Union
from urllib.parse import urlsplit

from .errors import (
    DecodeError,
    SesameError,
    TransportError,
    UnknownOutcome,
    ValidationError,
)
from .response import Response
from .table import TableResult
from .terms import StripPolicy, Term, parse_term

if TYPE_CHECKING:  # pragma: no cover
    from .connection import Connection

logger = logging.getLogger(__name__)

QUERY_LANGUAGES = ("RQL", "RDQL", "SeRQL")
UPLOAD_FORMATS = ("rdfxml", "ntriples", "turtle")
EXTRACT_FORMATS = ("rdfxml", "ntriples", "turtle", "n3")

TermLike = Union[Term, str]


# ---------------------------------------------------------------------------
# Server message parsing
#
# Mutation commands report their outcome only as free text. Every pattern
# the client depends on lives here.
# ---------------------------------------------------------------------------

_UPLOAD_COUNT_PATTERNS = (
    re.compile(r"contains (\d+) statement"),
    re.compile(r"^Processed (\d+) statement"),
)
_REMOVED_COUNT_PATTERN = re.compile(r"^Removed (\d+)")
_CLEARED_MESSAGE = "Repository cleared"


def parse_upload_count(statuses: Iterable[str]) -> Optional[int]:
    """Statement count from the status messages of an upload, if any."""
    for message in statuses:
        for pattern in _UPLOAD_COUNT_PATTERNS:
            match = pattern.search(message)
            if match:
                return int(match.group(1))
    return None


def parse_removed_count(notifications: Iterable[str]) -> Optional[int]:
    """Number of removed statements from removeStatements notifications."""
    for message in notifications:
        match = _REMOVED_COUNT_PATTERN.search(message)
        if match:
            return int(match.group(1))
    return None


def is_cleared(statuses: Iterable[str]) -> bool:
    return any(message == _CLEARED_MESSAGE for message in statuses)


def _on_off(flag: bool) -> str:
    return "on" if flag else "off"


class Repository:
    """A handle on one repository of a Sesame server.

    Usually obtained from :meth:`Connection.open`. Holds the default query
    language and strip policy used by :meth:`select`. Not safe for
    concurrent use from several threads.
    """

    def __init__(
        self,
        connection: "Connection",
        repository_id: str,
        query_language: Optional[str] = None,
        strip: Union[StripPolicy, str, None] = None,
    ) -> None:
        if not repository_id:
            raise ValidationError("A repository id is required")

        self.connection = connection
        self.id = repository_id
        self._query_language = "SeRQL"
        self._strip = StripPolicy.coerce(strip)
        self._error: Optional[SesameError] = None

        if query_language is not None:
            self.set_query_language(query_language)

    def __repr__(self) -> str:
        return f"Repository(id={self.id!r}, query_language={self._query_language!r})"

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def query_language(self) -> str:
        return self._query_language

    def set_query_language(self, language: str) -> str:
        """Change the default query language and return the previous one.

        An unknown language leaves the default as it is and records an
        error; the unchanged default is returned.
        """
        self._error = None

        if language not in QUERY_LANGUAGES:
            return self._fail(
                "set_query_language",
                ValidationError("query language must be RQL, RDQL or SeRQL"),
                self._query_language,
            )

        previous = self._query_language
        self._query_language = language
        return previous

    @property
    def strip(self) -> StripPolicy:
        """Default strip policy applied by :meth:`select`."""
        return self._strip

    @strip.setter
    def strip(self, value: Union[StripPolicy, str, None]) -> None:
        self._strip = StripPolicy.coerce(value)

    @property
    def last_error(self) -> Optional[SesameError]:
        return self._error

    def errstr(self) -> str:
        """Message of the error recorded by the last operation, or ""."""
        return str(self._error) if self._error is not None else ""

    def _fail(self, operation: str, error: SesameError, result):
        self._error = error
        logger.warning(
            "Repository '%s': %s failed (%s): %s",
            self.id,
            operation,
            error.code,
            error,
        )
        return result

    def command(self, name: str, params: Dict[str, str]) -> Response:
        """Send a raw command for this repository."""
        return self.connection.command(self.id, name, params)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def select(
        self,
        query: str,
        language: Optional[str] = None,
        strip: Union[StripPolicy, str, None] = None,
    ) -> Optional[TableResult]:
        """Evaluate a tuple query.

        ``language`` and ``strip`` default to the repository defaults.
        Returns a :class:`TableResult`, or ``None`` when the query failed.
        """
        self._error = None

        language = language or self._query_language
        if language not in QUERY_LANGUAGES:
            return self._fail(
                "select",
                ValidationError("query language must be RQL, RDQL or SeRQL"),
                None,
            )

        try:
            policy = StripPolicy.coerce(strip if strip is not None else self._strip)
        except ValidationError as exc:
            return self._fail("select", exc, None)

        response = self.command(
            "evaluateTableQuery",
            {
                "query": query,
                "queryLanguage": language,
                "resultFormat": "xml",
            },
        )
        if not response.success:
            return self._fail(
                "select", response.error or TransportError(response.error_message), None
            )

        try:
            table = TableResult.from_response(response, strip=policy)
        except DecodeError as exc:
            return self._fail("select", exc, None)

        logger.debug("Repository '%s': select returned %d rows", self.id, table.row_count)
        return table

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------

    def _statement_count(self, operation: str, response: Response) -> int:
        if not response.success:
            return self._fail(
                operation, response.error or TransportError(response.error_message), 0
            )

        count = parse_upload_count(response.statuses)
        if count is None:
            return self._fail(operation, UnknownOutcome("Unknown error"), 0)

        logger.debug("Repository '%s': %s added %d statements", self.id, operation, count)
        return count

    def upload_data(
        self,
        data: str,
        format: str = "ntriples",
        base_uri: Optional[str] = None,
        verify: bool = True,
    ) -> int:
        """Upload serialized RDF and return the number of statements added.

        ``format`` is one of rdfxml, ntriples or turtle. Returns 0 on
        failure.
        """
        self._error = None

        if format not in UPLOAD_FORMATS:
            return self._fail(
                "upload_data",
                ValidationError("Format must be rdfxml, ntriples or turtle"),
                0,
            )

        params = {
            "data": data,
            "dataFormat": format,
            "verifyData": _on_off(verify),
            "resultFormat": "xml",
        }
        if base_uri is not None:
            params["baseURI"] = base_uri

        return self._statement_count("upload_data", self.command("uploadData", params))

    def upload_uri(
        self,
        uri: str,
        format: str = "rdfxml",
        base_uri: Optional[str] = None,
        verify: bool = True,
    ) -> int:
        """Upload RDF found at ``uri`` and return the number of statements added.

        ``file:`` URIs are read by the client and sent as data; any other
        URI is handed to the server, which fetches it itself. ``base_uri``
        defaults to ``uri``. Returns 0 on failure.
        """
        self._error = None

        if base_uri is None:
            base_uri = uri

        if format not in UPLOAD_FORMATS:
            return self._fail(
                "upload_uri",
                ValidationError("Format must be rdfxml, ntriples or turtle"),
                0,
            )

        if urlsplit(uri).scheme.lower() == "file":
            content = self.connection.fetch(uri)
            if content is None:
                return self._fail("upload_uri", TransportError(f"No data in {uri}"), 0)
            return self.upload_data(content, format=format, base_uri=base_uri, verify=verify)

        params = {
            "url": uri,
            "dataFormat": format,
            "verifyData": _on_off(verify),
            "resultFormat": "xml",
            "baseURI": base_uri,
        }
        return self._statement_count("upload_uri", self.command("uploadURL", params))

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------

    def clear(self) -> bool:
        """Remove every statement from the repository."""
        self._error = None

        response = self.command("clearRepository", {"resultFormat": "xml"})
        if not response.success:
            return self._fail(
                "clear", response.error or TransportError(response.error_message), False
            )

        if not is_cleared(response.statuses):
            return self._fail("clear", UnknownOutcome("Unknown error"), False)

        return True

    def remove(
        self,
        subject: Optional[TermLike] = None,
        predicate: Optional[TermLike] = None,
        object: Optional[TermLike] = None,  # noqa: A002
    ) -> int:
        """Remove the statements matching a pattern and return how many went.

        Each position is a :class:`Term` or a string in N-Triples syntax
        (``"<http://...>"``, ``'"male"'``, ``"_:b1"``); ``None`` matches
        anything.
        """
        self._error = None

        params = {"resultFormat": "xml"}
        pattern = (("subject", subject), ("predicate", predicate), ("object", object))
        for name, value in pattern:
            if value is None:
                continue
            if isinstance(value, Term):
                params[name] = value.to_ntriples()
                continue
            try:
                parse_term(value)
            except ValidationError as exc:
                return self._fail("remove", exc, 0)
            params[name] = value

        response = self.command("removeStatements", params)
        if not response.success:
            return self._fail(
                "remove", response.error or TransportError(response.error_message), 0
            )

        count = parse_removed_count(response.notifications)
        if count is None:
            return self._fail("remove", UnknownOutcome("Unknown error"), 0)

        logger.debug("Repository '%s': removed %d statements", self.id, count)
        return count

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def extract(
        self,
        format: str = "ntriples",
        schema: bool = True,
        data: bool = True,
        explicit_only: bool = False,
        nice_output: bool = False,
    ) -> Optional[str]:
        """Export repository contents serialized as ``format``.

        ``format`` is one of rdfxml, ntriples, turtle or n3. ``schema`` and
        ``data`` select the schema and data statements; ``explicit_only``
        leaves out inferred statements. Returns None on failure.
        """
        self._error = None

        if format not in EXTRACT_FORMATS:
            return self._fail(
                "extract",
                ValidationError("Format must be rdfxml, ntriples, turtle or n3"),
                None,
            )

        response = self.command(
            "extractRDF",
            {
                "serialization": format,
                "schema": _on_off(schema),
                "data": _on_off(data),
                "explicitOnly": _on_off(explicit_only),
                "niceOutput": _on_off(nice_output),
            },
        )
        if not response.success:
            return self._fail(
                "extract", response.error or TransportError(response.error_message), None
            )

        return response.raw_body
