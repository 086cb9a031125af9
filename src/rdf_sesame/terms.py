# Sesame RDF Client
# File: terms.py
# Version: v2

"""RDF terms as returned in tuple-query results.

Every non-null cell of a result row is a :class:`Term`. A term knows its
kind and can be rendered in N-Triples syntax::

    <http://example.org/a>          URI reference
    _:node12                        blank node
    "text"                          plain literal
    "text"@en                       language-tagged literal
    "42"^^<http://...#integer>      datatype-tagged literal

or in a "stripped" bare form, according to a :class:`StripPolicy`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .errors import ValidationError


class TermKind(str, Enum):
    URI = "uri"
    BNODE = "bNode"
    PLAIN_LITERAL = "literal"
    LANG_LITERAL = "lang-literal"
    TYPED_LITERAL = "typed-literal"


_LITERAL_KINDS = frozenset(
    {TermKind.PLAIN_LITERAL, TermKind.LANG_LITERAL, TermKind.TYPED_LITERAL}
)


class StripPolicy(str, Enum):
    """Which N-Triples decoration to remove from query result values."""

    NONE = "none"
    LITERALS = "literals"
    URIREFS = "urirefs"
    ALL = "all"

    @property
    def strips_literals(self) -> bool:
        return self in (StripPolicy.LITERALS, StripPolicy.ALL)

    @property
    def strips_uris(self) -> bool:
        return self in (StripPolicy.URIREFS, StripPolicy.ALL)

    @classmethod
    def coerce(cls, value: Union["StripPolicy", str, None]) -> "StripPolicy":
        """Accept an enum member, its string value, or None (no stripping)."""
        if value is None:
            return cls.NONE
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            raise ValidationError(
                "strip must be none, literals, urirefs or all "
                f"(got {value!r})"
            ) from None


@dataclass(frozen=True)
class Term:
    """One RDF term: a URI reference, a blank node or a literal."""

    kind: TermKind
    value: str
    language: Optional[str] = None
    datatype: Optional[str] = None

    @classmethod
    def uri(cls, value: str) -> "Term":
        return cls(TermKind.URI, value)

    @classmethod
    def bnode(cls, value: str) -> "Term":
        return cls(TermKind.BNODE, value)

    @classmethod
    def literal(
        cls,
        value: str,
        language: Optional[str] = None,
        datatype: Optional[str] = None,
    ) -> "Term":
        """Build a literal; a language tag takes precedence over a datatype."""
        if language:
            return cls(TermKind.LANG_LITERAL, value, language=language)
        if datatype:
            return cls(TermKind.TYPED_LITERAL, value, datatype=datatype)
        return cls(TermKind.PLAIN_LITERAL, value)

    @property
    def is_literal(self) -> bool:
        return self.kind in _LITERAL_KINDS

    def to_ntriples(self) -> str:
        if self.kind is TermKind.URI:
            return f"<{self.value}>"
        if self.kind is TermKind.BNODE:
            return f"_:{self.value}"
        if self.kind is TermKind.LANG_LITERAL:
            return f'"{self.value}"@{self.language}'
        if self.kind is TermKind.TYPED_LITERAL:
            return f'"{self.value}"^^<{self.datatype}>'
        return f'"{self.value}"'

    def render(self, strip: Union[StripPolicy, str, None] = None) -> str:
        """Render in N-Triples syntax, minus whatever ``strip`` removes."""
        policy = StripPolicy.coerce(strip)
        if self.kind is TermKind.URI and policy.strips_uris:
            return self.value
        if self.is_literal and policy.strips_literals:
            return self.value
        return self.to_ntriples()

    def __str__(self) -> str:
        return self.to_ntriples()


def parse_term(text: str) -> Term:
    """Decode an N-Triples encoded term.

    Raises :class:`ValidationError` when ``text`` is not a URI reference,
    blank node or literal in N-Triples syntax.
    """
    if not isinstance(text, str) or not text:
        raise ValidationError(f"Not an N-Triples term: {text!r}")

    if text.startswith("<"):
        if len(text) < 2 or not text.endswith(">") or ">" in text[1:-1]:
            raise ValidationError(f"Malformed URI reference: {text!r}")
        return Term.uri(text[1:-1])

    if text.startswith("_:"):
        if len(text) == 2:
            raise ValidationError(f"Blank node without identifier: {text!r}")
        return Term.bnode(text[2:])

    if text.startswith('"'):
        close = text.rfind('"')
        if close == 0:
            raise ValidationError(f"Unterminated literal: {text!r}")
        lexical = text[1:close]
        suffix = text[close + 1 :]
        if not suffix:
            return Term.literal(lexical)
        if suffix.startswith("@") and len(suffix) > 1:
            return Term.literal(lexical, language=suffix[1:])
        if suffix.startswith("^^<") and suffix.endswith(">") and len(suffix) > 4:
            return Term.literal(lexical, datatype=suffix[3:-1])
        raise ValidationError(f"Malformed literal suffix in {text!r}")

    raise ValidationError(f"Not an N-Triples term: {text!r}")
