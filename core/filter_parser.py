"""Lexer and recursive descent parser for the filter DSL.

Grammar::

    query     := [or_expr] [ORDER BY field [ASC|DESC]]
    or_expr   := and_expr (OR and_expr)*
    and_expr  := unary ([AND] unary)*          juxtaposition is an implicit AND
    unary     := NOT unary | '(' or_expr ')' | condition
    condition := field op value
    op        := = | != | =~ | !~ | > | < | >= | <= | IS [NOT] | IN | NOT IN
    value     := string | number | date | null | true | false | word | '[' values ']'

Tokens are produced lazily, so the first offending token is reported even
when later input would not lex (``invalid ??? query`` fails on ``invalid``).
"""

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional

from .filter_dsl import (
    And,
    Condition,
    FieldKind,
    FilterExpr,
    FilterField,
    FilterOp,
    FilterQuery,
    FilterValue,
    Not,
    Or,
    OrderBy,
    SortDirection,
    descriptor,
    lookup_field,
    parse_date_value,
    parse_datetime_value,
)
from .status import Status

logger = logging.getLogger("taskcore.filter")


class FilterParseError(Exception):
    """Syntax error in a filter query, positioned on the offending input span."""

    def __init__(self, message: str, start: int, end: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.start = start
        self.end = start if end is None else end

    @property
    def position(self) -> int:
        return self.start

    def __str__(self) -> str:
        return f"{self.message} (at position {self.start}..{self.end})"

    def to_dict(self) -> dict:
        return {"message": self.message, "start": self.start, "end": self.end}


class UnknownField(FilterParseError):
    pass


class UnknownOperator(FilterParseError):
    pass


# ── Tokens ─────────────────────────────────────────────────────────────

IDENT = "ident"
STRING = "string"
NUMBER = "number"
OP = "op"
LPAREN = "lparen"
RPAREN = "rparen"
LBRACKET = "lbracket"
RBRACKET = "rbracket"
COMMA = "comma"
EOF = "eof"

_PUNCTUATION = {"(": LPAREN, ")": RPAREN, "[": LBRACKET, "]": RBRACKET, ",": COMMA}
_IDENT_INNER = frozenset("_:.-")
_DATE_CHARS = frozenset("-:T")


@dataclass(frozen=True)
class Token:
    type: str
    text: str
    start: int
    end: int
    value: FilterValue = None

    def is_keyword(self, word: str) -> bool:
        return self.type == IDENT and self.text.lower() == word.lower()


class Lexer:
    def __init__(self, text: str):
        self.text = text or ""

    def __iter__(self) -> Iterator[Token]:
        text = self.text
        length = len(text)
        pos = 0
        while pos < length:
            ch = text[pos]
            if ch.isspace():
                pos += 1
                continue
            start = pos
            if ch in _PUNCTUATION:
                pos += 1
                yield Token(_PUNCTUATION[ch], ch, start, pos)
            elif ch in "=!<>":
                nxt = text[pos + 1] if pos + 1 < length else ""
                if ch == "=" and nxt == "~":
                    symbol = "=~"
                elif ch == "!" and nxt in "=~" and nxt:
                    symbol = ch + nxt
                elif ch in "<>" and nxt == "=":
                    symbol = ch + nxt
                elif ch == "!":
                    raise UnknownOperator("Expected '=' or '~' after '!'", start, pos + 1)
                else:
                    symbol = ch
                pos += len(symbol)
                yield Token(OP, symbol, start, pos)
            elif ch in "'\"":
                pos += 1
                chars: List[str] = []
                while pos < length and text[pos] != ch:
                    if text[pos] == "\\" and pos + 1 < length:
                        pos += 1
                    chars.append(text[pos])
                    pos += 1
                if pos >= length:
                    raise FilterParseError("Unterminated string literal", start, pos)
                pos += 1
                literal = "".join(chars)
                yield Token(STRING, text[start:pos], start, pos, literal)
            elif ch.isdigit() or ch == "-":
                pos += 1
                while pos < length and (text[pos].isdigit() or text[pos] == "."):
                    pos += 1
                raw = text[start:pos]
                if (
                    not raw.startswith("-")
                    and pos + 1 < length
                    and text[pos] == "-"
                    and text[pos + 1].isdigit()
                ):
                    # Date or datetime: 2024-01-15, 2024-01-15T10:30
                    while pos < length and (text[pos].isalnum() or text[pos] in _DATE_CHARS):
                        pos += 1
                    raw = text[start:pos]
                    yield Token(STRING, raw, start, pos, raw)
                    continue
                try:
                    float(raw)
                except ValueError:
                    raise FilterParseError(f"Invalid number: {raw}", start, pos) from None
                # Fields compare as text, so the literal keeps its spelling (007 stays 007).
                yield Token(NUMBER, raw, start, pos, raw)
            elif ch.isalnum() or ch == "_":
                pos += 1
                while pos < length and (text[pos].isalnum() or text[pos] in _IDENT_INNER):
                    pos += 1
                word = text[start:pos]
                yield Token(IDENT, word, start, pos, word)
            else:
                raise FilterParseError(f"Unexpected character: '{ch}'", start, pos + 1)
        yield Token(EOF, "", length, length)


# ── Parser ─────────────────────────────────────────────────────────────

_BOOLEAN_WORDS = {"and", "or", "not"}
_ORDER_BY = "order"

# Parentheses and NOT nest recursively; deeper input is rejected.
MAX_NESTING = 100


class Parser:
    def __init__(self, text: str):
        self.text = text or ""
        self._tokens = iter(Lexer(self.text))
        self._current: Optional[Token] = None
        self._last_end = 0
        self._depth = 0

    def peek(self) -> Token:
        if self._current is None:
            self._current = next(self._tokens)
        return self._current

    def advance(self) -> Token:
        token = self.peek()
        if token.type != EOF:
            self._current = None
            self._last_end = token.end
        return token

    def error(self, message: str, token: Optional[Token] = None) -> FilterParseError:
        token = token or self.peek()
        return FilterParseError(message, token.start, token.end)

    def parse(self) -> FilterQuery:
        token = self.peek()
        if token.type == EOF:
            return FilterQuery()
        expression = None if token.is_keyword(_ORDER_BY) else self.parse_or_expr()
        order_by = self.parse_order_by() if self.peek().is_keyword(_ORDER_BY) else None
        token = self.peek()
        if token.type != EOF:
            raise self.error(f"Unexpected token '{token.text}'", token)
        return FilterQuery(expression=expression, order_by=order_by)

    def parse_order_by(self) -> OrderBy:
        self.advance()  # ORDER
        if not self.peek().is_keyword("by"):
            raise self.error("Expected 'BY' after 'ORDER'")
        self.advance()
        field_token = self.peek()
        field = self.parse_field()
        if not descriptor(field).sortable:
            raise FilterParseError(f"Cannot order by field '{field.value}'", field_token.start, field_token.end)
        direction = SortDirection.ASC
        if self.peek().is_keyword("asc"):
            self.advance()
        elif self.peek().is_keyword("desc"):
            self.advance()
            direction = SortDirection.DESC
        return OrderBy(field, direction)

    def parse_or_expr(self) -> FilterExpr:
        left = self.parse_and_expr()
        while self.peek().is_keyword("or"):
            self.advance()
            left = Or(left, self.parse_and_expr())
        return left

    def _starts_unary(self, token: Token) -> bool:
        if token.type == LPAREN:
            return True
        if token.type != IDENT:
            return False
        word = token.text.lower()
        return word == "not" or (word not in _BOOLEAN_WORDS and word != _ORDER_BY)

    def parse_and_expr(self) -> FilterExpr:
        left = self.parse_unary()
        while True:
            token = self.peek()
            if token.is_keyword("and"):
                self.advance()
            elif not self._starts_unary(token):
                return left
            left = And(left, self.parse_unary())

    def parse_unary(self) -> FilterExpr:
        token = self.peek()
        if not (token.is_keyword("not") or token.type == LPAREN):
            return self.parse_condition()
        if self._depth >= MAX_NESTING:
            raise self.error(f"Query nested too deeply (more than {MAX_NESTING} levels)", token)
        self._depth += 1
        try:
            return self._parse_group(token)
        finally:
            self._depth -= 1

    def _parse_group(self, token: Token) -> FilterExpr:
        self.advance()
        if token.type == LPAREN:
            expr = self.parse_or_expr()
            if self.peek().type != RPAREN:
                raise self.error("Expected closing ')'")
            self.advance()
            return expr
        return Not(self.parse_unary())

    def parse_field(self) -> FilterField:
        token = self.peek()
        if token.type != IDENT:
            raise self.error("Expected field name", token)
        field = lookup_field(token.text)
        if field is None:
            raise UnknownField(f"Unknown field: '{token.text}'", token.start, token.end)
        self.advance()
        return field

    def parse_condition(self) -> Condition:
        field = self.parse_field()
        op_token = self.peek()
        op = self.parse_operator()
        desc = descriptor(field)
        if not desc.accepts(op):
            raise UnknownOperator(
                f"Operator '{op.symbol}' is not supported for field '{field.value}'",
                op_token.start,
                self._last_end,
            )
        value_token = self.peek()
        value = self.parse_value()
        self._check_value(field, op, value, value_token)
        return Condition(field, op, value)

    def parse_operator(self) -> FilterOp:
        token = self.peek()
        if token.type == OP:
            self.advance()
            return FilterOp(token.text)
        if token.is_keyword("is"):
            self.advance()
            if self.peek().is_keyword("not"):
                self.advance()
                return FilterOp.IS_NOT
            return FilterOp.IS
        if token.is_keyword("in"):
            self.advance()
            return FilterOp.IN
        if token.is_keyword("not"):
            self.advance()
            if not self.peek().is_keyword("in"):
                raise self.error("Expected 'IN' after 'NOT'")
            self.advance()
            return FilterOp.NOT_IN
        if token.type == IDENT:
            raise UnknownOperator(f"Unknown operator: '{token.text}'", token.start, token.end)
        raise self.error("Expected operator", token)

    def parse_value(self) -> FilterValue:
        token = self.peek()
        if token.type in (STRING, NUMBER):
            self.advance()
            return token.value
        if token.type == IDENT:
            self.advance()
            word = token.text.lower()
            if word == "null":
                return None
            if word == "true":
                return True
            if word == "false":
                return False
            return token.text
        if token.type == LBRACKET:
            return self.parse_array()
        raise self.error("Expected value", token)

    def parse_array(self) -> FilterValue:
        self.advance()  # [
        values: List[FilterValue] = []
        if self.peek().type == RBRACKET:
            self.advance()
            return tuple(values)
        values.append(self.parse_value())
        while self.peek().type == COMMA:
            self.advance()
            values.append(self.parse_value())
        if self.peek().type != RBRACKET:
            raise self.error("Expected ']'")
        self.advance()
        return tuple(values)

    def _check_value(self, field: FilterField, op: FilterOp, value: FilterValue, token: Token) -> None:
        end = self._last_end
        if op in (FilterOp.IS, FilterOp.IS_NOT):
            if value is not None:
                raise FilterParseError(f"Expected 'null' after '{op.symbol}'", token.start, end)
            return
        if value is None:
            raise FilterParseError(f"Use 'IS NULL' to compare '{field.value}' with null", token.start, end)
        if isinstance(value, tuple) and op not in (FilterOp.IN, FilterOp.NOT_IN):
            raise FilterParseError(f"Operator '{op.symbol}' does not accept a list", token.start, end)

        kind = descriptor(field).kind
        items = value if isinstance(value, tuple) else (value,)
        for item in items:
            if kind is FieldKind.STATUS:
                if not isinstance(item, str) or Status.from_string(item) is None:
                    raise FilterParseError(f"Unknown status: {item!r}", token.start, end)
            elif kind is FieldKind.DATE:
                if parse_date_value(item) is None:
                    raise FilterParseError(f"Invalid date: {item!r} (expected YYYY-MM-DD)", token.start, end)
            elif kind is FieldKind.DATETIME:
                if parse_datetime_value(item) is None:
                    raise FilterParseError(
                        f"Invalid datetime: {item!r} (expected YYYY-MM-DD or YYYY-MM-DDTHH:MM[:SS])",
                        token.start,
                        end,
                    )


def parse_filter(text: str) -> FilterQuery:
    """Parse DSL text into a FilterQuery.

    Raises:
        FilterParseError: on the first offending token (UnknownField and
            UnknownOperator are subclasses).
    """
    return Parser(text).parse()


@dataclass(frozen=True)
class ParseResult:
    query: Optional[FilterQuery] = None
    error: Optional[FilterParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse(text: str) -> ParseResult:
    """Non-raising entry point for partial input typed by a user."""
    try:
        return ParseResult(query=parse_filter(text))
    except FilterParseError as exc:
        logger.debug("filter parse failed for %r: %s", text, exc)
        return ParseResult(error=exc)


__all__ = [
    "FilterParseError",
    "UnknownField",
    "UnknownOperator",
    "Token",
    "Lexer",
    "Parser",
    "ParseResult",
    "parse",
    "parse_filter",
    "MAX_NESTING",
]
