"""Cursor-aware completion for partially typed filter queries.

The query is usually invalid while being typed, so this module does not use
the parser: it runs a forgiving scan over the text before the cursor and
looks at the last few tokens.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Union

from .filter_dsl import FilterField, field_names, lookup_field, render_value
from .status import STATUS_WORDS


@dataclass(frozen=True)
class FieldName:
    partial: str
    start: int


@dataclass(frozen=True)
class FieldValue:
    field: FilterField
    partial: str
    start: int


@dataclass(frozen=True)
class ArrayValue:
    field: FilterField
    partial: str
    start: int


@dataclass(frozen=True)
class Keyword:
    partial: str
    start: int


@dataclass(frozen=True)
class NoCompletion:
    partial: str = ""
    start: int = 0


CompletionContext = Union[FieldName, FieldValue, ArrayValue, Keyword, NoCompletion]

KEYWORDS = ("AND", "OR", "NOT", "ORDER BY")
_CONNECTIVES = {"AND", "OR", "NOT", "BY"}
_RESERVED = {"AND", "OR", "NOT", "ORDER", "BY", "IS", "IN"}


@dataclass(frozen=True)
class _Tok:
    kind: str  # ident, partial, string, number, op, lbracket, rbracket, lparen, rparen, comma
    text: str = ""
    start: int = 0

    def word(self, *words: str) -> bool:
        return self.kind in ("ident", "partial") and self.text.upper() in words


def _scan(before: str) -> List[_Tok]:
    tokens: List[_Tok] = []
    pos = 0
    length = len(before)
    simple = {"(": "lparen", ")": "rparen", "[": "lbracket", "]": "rbracket", ",": "comma"}
    while pos < length:
        ch = before[pos]
        start = pos
        if ch.isspace():
            pos += 1
        elif ch in simple:
            tokens.append(_Tok(simple[ch], ch, start))
            pos += 1
        elif ch in "=!<>":
            pos += 1
            if pos < length and before[pos] in "=~":
                pos += 1
            tokens.append(_Tok("op", before[start:pos], start))
        elif ch in "'\"":
            end = before.find(ch, pos + 1)
            if end < 0:
                break
            tokens.append(_Tok("string", before[pos + 1 : end], start))
            pos = end + 1
        elif ch.isdigit() or ch == "-":
            pos += 1
            while pos < length and (before[pos].isdigit() or before[pos] in "-:.T"):
                pos += 1
            tokens.append(_Tok("number", before[start:pos], start))
        elif ch.isalnum() or ch == "_":
            while pos < length and (before[pos].isalnum() or before[pos] == "_"):
                pos += 1
            kind = "partial" if pos == length else "ident"
            tokens.append(_Tok(kind, before[start:pos], start))
        else:
            pos += 1
    return tokens


def _unclosed_quote(before: str) -> bool:
    quote: Optional[str] = None
    for ch in before:
        if quote is None and ch in "'\"":
            quote = ch
        elif ch == quote:
            quote = None
    return quote is not None


def _field(tok: _Tok) -> Optional[FilterField]:
    if tok.kind not in ("ident", "partial"):
        return None
    return lookup_field(tok.text)


def _open_bracket_index(tokens: Sequence[_Tok]) -> Optional[int]:
    depth = 0
    for index in range(len(tokens) - 1, -1, -1):
        kind = tokens[index].kind
        if kind == "rbracket":
            depth += 1
        elif kind == "lbracket":
            if depth == 0:
                return index
            depth -= 1
    return None


def _array_field(tokens: Sequence[_Tok]) -> Optional[FilterField]:
    index = _open_bracket_index(tokens)
    if index is None:
        return None
    head = [t for t in tokens[:index] if t.kind not in ("lparen", "rparen")]
    if len(head) < 2 or not head[-1].word("IN"):
        return None
    if len(head) >= 3 and head[-2].word("NOT"):
        return _field(head[-3])
    return _field(head[-2])


def _field_before_operator(tokens: Sequence[_Tok]) -> Optional[FilterField]:
    if len(tokens) < 2:
        return None
    last = tokens[-1]
    if last.kind == "op" or last.word("IS", "IN"):
        if last.word("IN") and tokens[-2].word("NOT") and len(tokens) >= 3:
            return _field(tokens[-3])
        return _field(tokens[-2])
    if last.word("NOT") and len(tokens) >= 3 and tokens[-2].word("IS"):
        return _field(tokens[-3])
    return None


def _is_field_position(tokens: Sequence[_Tok]) -> bool:
    if not tokens:
        return True
    last = tokens[-1]
    return last.kind == "lparen" or last.word(*_CONNECTIVES)


def _after_condition(tokens: Sequence[_Tok]) -> bool:
    meaningful = [t for t in tokens if t.kind not in ("lparen", "rparen")]
    if not meaningful:
        return False
    last = meaningful[-1]
    if last.kind == "rbracket":
        return _open_bracket_index(meaningful) is None
    if len(meaningful) < 3:
        return False
    if last.kind not in ("string", "number", "ident") or last.word(*_RESERVED):
        return False
    operator = meaningful[-2]
    if not (operator.kind == "op" or operator.word("IS", "IN", "NOT")):
        return False
    subject = meaningful[-3]
    if _field(subject) is not None:
        return True
    return subject.word("IS") and len(meaningful) >= 4 and _field(meaningful[-4]) is not None


def detect_completion_context(text: str, cursor: Optional[int] = None) -> CompletionContext:
    """Classify what the word under ``cursor`` is completing."""
    text = text or ""
    cursor = len(text) if cursor is None else max(0, min(cursor, len(text)))
    before = text[:cursor]
    if _unclosed_quote(before):
        return NoCompletion(start=cursor)

    tokens = _scan(before)
    if not tokens:
        return FieldName("", cursor)

    last = tokens[-1]
    if last.kind == "partial":
        partial, start = last.text, last.start
        prior = tokens[:-1]
        meaningful = [t for t in prior if t.kind not in ("lparen", "rparen")]
        if meaningful and meaningful[-1].word("ORDER"):
            return FieldName(partial, start)
        if len(meaningful) >= 2 and meaningful[-2].word("ORDER") and meaningful[-1].word("BY"):
            return FieldName(partial, start)
        field = _array_field(prior)
        if field is not None:
            return ArrayValue(field, partial, start)
        field = _field_before_operator(meaningful)
        if field is not None and partial.upper() not in ("IS", "IN", "NOT"):
            return FieldValue(field, partial, start)
        if _is_field_position(prior):
            upper = partial.upper()
            if upper in ("AND", "OR", "NOT") or upper.startswith("ORD"):
                return Keyword(partial, start)
            return FieldName(partial, start)
        if _after_condition(prior):
            return Keyword(partial, start)
        return FieldName(partial, start)

    at_boundary = before[-1:].isspace() or before.endswith(("(", "[", ","))
    meaningful = [t for t in tokens if t.kind not in ("lparen", "rparen")]
    if at_boundary:
        field = _array_field(tokens)
        if field is not None:
            return ArrayValue(field, "", cursor)
        field = _field_before_operator(meaningful)
        if field is not None:
            return FieldValue(field, "", cursor)
        if _after_condition(tokens):
            return Keyword("", cursor)
        return FieldName("", cursor)

    if last.kind in ("string", "number", "ident", "rbracket"):
        return Keyword("", cursor) if _after_condition(tokens) else NoCompletion(start=cursor)
    if last.kind == "op":
        field = _field_before_operator(meaningful)
        return FieldValue(field, "", cursor) if field is not None else NoCompletion(start=cursor)
    return NoCompletion(start=cursor)


@dataclass(frozen=True)
class Suggestion:
    label: str
    value: str
    start: int

    def to_dict(self) -> dict:
        return {"label": self.label, "value": self.value, "start": self.start}


def _starting_with(candidates: Iterable[str], partial: str) -> List[str]:
    lower = partial.lower()
    return [c for c in candidates if c.lower().startswith(lower)]


def suggest(
    text: str,
    cursor: Optional[int] = None,
    *,
    tags: Iterable[str] = (),
    projects: Iterable[str] = (),
) -> List[Suggestion]:
    """Completion items for the cursor position.

    ``tags`` and ``projects`` are the names known to the caller; only active
    projects should be passed. Tag and project values are inserted quoted.
    """
    ctx = detect_completion_context(text, cursor)
    if isinstance(ctx, FieldName):
        return [Suggestion(name, name, ctx.start) for name in _starting_with(field_names(), ctx.partial)]
    if isinstance(ctx, Keyword):
        return [Suggestion(kw, kw, ctx.start) for kw in _starting_with(KEYWORDS, ctx.partial)]
    if isinstance(ctx, (FieldValue, ArrayValue)):
        if ctx.field is FilterField.STATUS:
            return [Suggestion(word, word, ctx.start) for word in _starting_with(STATUS_WORDS, ctx.partial)]
        if ctx.field is FilterField.TAGS:
            names = tags
        elif ctx.field is FilterField.PROJECT:
            names = projects
        else:
            return []
        return [Suggestion(name, render_value(name), ctx.start) for name in _starting_with(names, ctx.partial)]
    return []


__all__ = [
    "FieldName",
    "FieldValue",
    "ArrayValue",
    "Keyword",
    "NoCompletion",
    "CompletionContext",
    "KEYWORDS",
    "detect_completion_context",
    "Suggestion",
    "suggest",
]
