"""Filter DSL vocabulary and predicate tree.

Fields are described by a registry of tagged descriptors so that adding a
field means adding one ``FieldDescriptor`` entry; the parser, evaluator and
completion all read from ``FIELD_REGISTRY``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple, Union


class FieldKind(Enum):
    TEXT = "text"
    STATUS = "status"
    PROJECT = "project"
    TAGS = "tags"
    DATE = "date"
    DATETIME = "datetime"


class FilterOp(Enum):
    EQ = "="
    NE = "!="
    GLOB = "=~"
    NOT_GLOB = "!~"
    GT = ">"
    LT = "<"
    GTE = ">="
    LTE = "<="
    IS = "IS"
    IS_NOT = "IS NOT"
    IN = "IN"
    NOT_IN = "NOT IN"

    @property
    def symbol(self) -> str:
        return self.value


class FilterField(Enum):
    TITLE = "title"
    BODY = "body"
    PROJECT = "project"
    TAGS = "tags"
    STATUS = "status"
    DUE_DATE = "due_date"
    START_AT = "start_at"
    CREATED = "created"
    UPDATED = "updated"
    REVIEWED = "reviewed"


class SortDirection(Enum):
    ASC = "ASC"
    DESC = "DESC"


_EQUALITY = frozenset({FilterOp.EQ, FilterOp.NE})
_GLOB = frozenset({FilterOp.GLOB, FilterOp.NOT_GLOB})
_NULL = frozenset({FilterOp.IS, FilterOp.IS_NOT})
_MEMBERSHIP = frozenset({FilterOp.IN, FilterOp.NOT_IN})
_ORDERING = frozenset({FilterOp.GT, FilterOp.LT, FilterOp.GTE, FilterOp.LTE})


@dataclass(frozen=True)
class FieldDescriptor:
    field: FilterField
    kind: FieldKind
    aliases: Tuple[str, ...]
    operators: FrozenSet[FilterOp]
    sortable: bool = False
    nullable: bool = True

    @property
    def name(self) -> str:
        return self.field.value

    def accepts(self, op: FilterOp) -> bool:
        return op in self.operators


FIELD_REGISTRY: Dict[FilterField, FieldDescriptor] = {
    FilterField.TITLE: FieldDescriptor(
        FilterField.TITLE, FieldKind.TEXT, (), _EQUALITY | _GLOB | _MEMBERSHIP, sortable=True, nullable=False
    ),
    FilterField.BODY: FieldDescriptor(FilterField.BODY, FieldKind.TEXT, (), _EQUALITY | _GLOB | _NULL | _MEMBERSHIP),
    FilterField.PROJECT: FieldDescriptor(
        FilterField.PROJECT, FieldKind.PROJECT, (), _EQUALITY | _GLOB | _NULL | _MEMBERSHIP, sortable=True
    ),
    FilterField.TAGS: FieldDescriptor(FilterField.TAGS, FieldKind.TAGS, ("tag",), _EQUALITY | _GLOB | _NULL | _MEMBERSHIP),
    FilterField.STATUS: FieldDescriptor(
        FilterField.STATUS, FieldKind.STATUS, (), _EQUALITY | _MEMBERSHIP, nullable=False
    ),
    FilterField.DUE_DATE: FieldDescriptor(
        FilterField.DUE_DATE, FieldKind.DATE, ("due",), _EQUALITY | _ORDERING | _NULL, sortable=True
    ),
    FilterField.START_AT: FieldDescriptor(
        FilterField.START_AT, FieldKind.DATETIME, ("start",), _EQUALITY | _ORDERING | _NULL, sortable=True
    ),
    FilterField.CREATED: FieldDescriptor(
        FilterField.CREATED, FieldKind.DATETIME, ("created_at",), _EQUALITY | _ORDERING, sortable=True, nullable=False
    ),
    FilterField.UPDATED: FieldDescriptor(
        FilterField.UPDATED, FieldKind.DATETIME, ("updated_at",), _EQUALITY | _ORDERING, sortable=True, nullable=False
    ),
    FilterField.REVIEWED: FieldDescriptor(
        FilterField.REVIEWED, FieldKind.DATE, ("reviewed_at",), _EQUALITY | _ORDERING | _NULL, sortable=True
    ),
}

_FIELD_LOOKUP: Dict[str, FilterField] = {}
for _descriptor in FIELD_REGISTRY.values():
    _FIELD_LOOKUP[_descriptor.name] = _descriptor.field
    for _alias in _descriptor.aliases:
        _FIELD_LOOKUP[_alias] = _descriptor.field


def lookup_field(name: str) -> Optional[FilterField]:
    """Case-insensitive field lookup by canonical name or alias."""
    return _FIELD_LOOKUP.get((name or "").lower())


def descriptor(field: FilterField) -> FieldDescriptor:
    return FIELD_REGISTRY[field]


def field_names() -> Tuple[str, ...]:
    return tuple(d.name for d in FIELD_REGISTRY.values())


# ── Values ─────────────────────────────────────────────────────────────

FilterValue = Union[str, float, bool, None, Tuple["FilterValue", ...]]

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DATETIME_FORMATS = ("%Y-%m-%dT%H:%M:%S", "%Y-%m-%dT%H:%M")


def parse_date_value(value: str) -> Optional[date]:
    if not isinstance(value, str) or not _DATE_RE.match(value):
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


def parse_datetime_value(value: str) -> Optional[datetime]:
    """Parse ``YYYY-MM-DD`` (midnight) or ``YYYY-MM-DDTHH:MM[:SS]``; naive result."""
    day = parse_date_value(value)
    if day is not None:
        return datetime(day.year, day.month, day.day)
    if not isinstance(value, str):
        return None
    for fmt in _DATETIME_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def format_number(value: float) -> str:
    """Positional spelling of a number (no exponent), as the lexer reads it."""
    if value.is_integer():
        return str(int(value))
    return format(Decimal(repr(value)), "f")


def render_value(value: FilterValue) -> str:
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, tuple):
        return "[" + ", ".join(render_value(v) for v in value) + "]"
    escaped = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


# ── Predicate tree ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Condition:
    field: FilterField
    op: FilterOp
    value: FilterValue

    def to_dsl(self) -> str:
        return f"{self.field.value} {self.op.symbol} {render_value(self.value)}"


@dataclass(frozen=True)
class And:
    left: "FilterExpr"
    right: "FilterExpr"

    def to_dsl(self) -> str:
        return _render_chain(self, And, "AND", (Or,), (Or, And))


@dataclass(frozen=True)
class Or:
    left: "FilterExpr"
    right: "FilterExpr"

    def to_dsl(self) -> str:
        return _render_chain(self, Or, "OR", (), (Or,))


@dataclass(frozen=True)
class Not:
    operand: "FilterExpr"

    def to_dsl(self) -> str:
        return f"NOT {_wrap(self.operand, (Or, And))}"


FilterExpr = Union[Condition, And, Or, Not]


def _wrap(expr: FilterExpr, grouped: tuple) -> str:
    text = expr.to_dsl()
    return f"({text})" if isinstance(expr, grouped) else text


def _render_chain(expr: FilterExpr, kind: type, keyword: str, left_grouped: tuple, right_grouped: tuple) -> str:
    # Parsed chains are left-deep; walk the spine instead of recursing down it.
    rights = []
    node = expr
    while isinstance(node, kind):
        rights.append(node.right)
        node = node.left
    parts = [_wrap(node, left_grouped)] + [_wrap(right, right_grouped) for right in reversed(rights)]
    return f" {keyword} ".join(parts)


@dataclass(frozen=True)
class OrderBy:
    field: FilterField
    direction: SortDirection = SortDirection.ASC

    def to_dsl(self) -> str:
        return f"ORDER BY {self.field.value} {self.direction.value}"


@dataclass(frozen=True)
class FilterQuery:
    """Parsed query. ``expression=None`` selects every task."""

    expression: Optional[FilterExpr] = None
    order_by: Optional[OrderBy] = None

    @property
    def matches_all(self) -> bool:
        return self.expression is None

    def to_dsl(self) -> str:
        parts = []
        if self.expression is not None:
            parts.append(self.expression.to_dsl())
        if self.order_by is not None:
            parts.append(self.order_by.to_dsl())
        return " ".join(parts)


__all__ = [
    "FieldKind",
    "FilterOp",
    "FilterField",
    "SortDirection",
    "FieldDescriptor",
    "FIELD_REGISTRY",
    "lookup_field",
    "descriptor",
    "field_names",
    "FilterValue",
    "parse_date_value",
    "parse_datetime_value",
    "format_number",
    "render_value",
    "Condition",
    "And",
    "Or",
    "Not",
    "FilterExpr",
    "OrderBy",
    "FilterQuery",
]
