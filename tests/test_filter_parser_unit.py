import pytest

from core.filter_dsl import (
    And,
    Condition,
    FilterField,
    FilterOp,
    FilterQuery,
    Not,
    Or,
    OrderBy,
    SortDirection,
)
from core.filter_parser import (
    MAX_NESTING,
    FilterParseError,
    UnknownField,
    UnknownOperator,
    parse,
    parse_filter,
)


def test_simple_condition():
    result = parse("status = active")
    assert result.ok
    assert result.query == FilterQuery(Condition(FilterField.STATUS, FilterOp.EQ, "active"))


@pytest.mark.parametrize("text", ["", "   ", "\t\n"])
def test_empty_query_selects_everything(text):
    result = parse(text)
    assert result.ok
    assert result.query.matches_all
    assert result.query == FilterQuery()


def test_unknown_field_reported_at_first_token():
    result = parse("invalid ??? query")
    assert not result.ok
    assert isinstance(result.error, UnknownField)
    assert (result.error.start, result.error.end) == (0, 7)
    assert result.error.position == 0


def test_parse_filter_raises():
    with pytest.raises(FilterParseError):
        parse_filter("status =")


def test_keywords_and_fields_are_case_insensitive():
    query = parse_filter("STATUS = Active and NOT Tag = Work")
    assert query.expression == And(
        Condition(FilterField.STATUS, FilterOp.EQ, "Active"),
        Not(Condition(FilterField.TAGS, FilterOp.EQ, "Work")),
    )


def test_precedence_not_and_or():
    query = parse_filter("title = a OR title = b AND NOT title = c")
    a = Condition(FilterField.TITLE, FilterOp.EQ, "a")
    b = Condition(FilterField.TITLE, FilterOp.EQ, "b")
    c = Condition(FilterField.TITLE, FilterOp.EQ, "c")
    assert query.expression == Or(a, And(b, Not(c)))


def test_parentheses_override_precedence():
    query = parse_filter("(title = a OR title = b) AND title = c")
    assert isinstance(query.expression, And)
    assert isinstance(query.expression.left, Or)


def test_juxtaposition_is_implicit_and():
    assert parse_filter("status = active tags = home") == parse_filter("status = active AND tags = home")


@pytest.mark.parametrize(
    "text, op, value",
    [
        ("title =~ 'Buy*'", FilterOp.GLOB, "Buy*"),
        ('title !~ "*draft?"', FilterOp.NOT_GLOB, "*draft?"),
        ("title != x", FilterOp.NE, "x"),
        ("body IS null", FilterOp.IS, None),
        ("body is not NULL", FilterOp.IS_NOT, None),
        ("tags IN [work, 'home office']", FilterOp.IN, ("work", "home office")),
        ("tags NOT IN []", FilterOp.NOT_IN, ()),
        ("title = 42", FilterOp.EQ, "42"),
        ("title = 007", FilterOp.EQ, "007"),
        ("title = 'it\\'s'", FilterOp.EQ, "it's"),
    ],
)
def test_operators_and_values(text, op, value):
    condition = parse_filter(text).expression
    assert condition.op is op
    assert condition.value == value


@pytest.mark.parametrize(
    "text, field, op, value",
    [
        ("due < 2024-01-15", FilterField.DUE_DATE, FilterOp.LT, "2024-01-15"),
        ("due_date >= '2024-01-15'", FilterField.DUE_DATE, FilterOp.GTE, "2024-01-15"),
        ("start > 2024-01-15T09:30", FilterField.START_AT, FilterOp.GT, "2024-01-15T09:30"),
        ("created_at <= 2024-01-15T09:30:05", FilterField.CREATED, FilterOp.LTE, "2024-01-15T09:30:05"),
        ("reviewed_at IS NULL", FilterField.REVIEWED, FilterOp.IS, None),
    ],
)
def test_date_conditions_and_aliases(text, field, op, value):
    assert parse_filter(text).expression == Condition(field, op, value)


def test_order_by():
    query = parse_filter("status = active ORDER BY due DESC")
    assert query.order_by == OrderBy(FilterField.DUE_DATE, SortDirection.DESC)
    assert parse_filter("order by title").order_by == OrderBy(FilterField.TITLE, SortDirection.ASC)
    assert parse_filter("ORDER BY created").expression is None


@pytest.mark.parametrize("text", ["status > active", "tags < home", "created IS null", "status =~ act*"])
def test_operator_not_supported_by_field(text):
    result = parse(text)
    assert isinstance(result.error, UnknownOperator)


def test_unknown_operator_word_and_character():
    result = parse("title LIKE foo")
    assert isinstance(result.error, UnknownOperator)
    assert (result.error.start, result.error.end) == (6, 10)
    assert isinstance(parse("title ! foo").error, UnknownOperator)


@pytest.mark.parametrize(
    "text, start",
    [
        ("status", 6),
        ("status = active AND", 19),
        ("(status = active", 16),
        ("title = 'open", 8),
        ("title = foo )", 12),
        ("due = tomorrow", 6),
        ("status = sleeping", 9),
        ("body IS 'x'", 8),
        ("title = null", 8),
        ("title = [a, b]", 8),
        ("ORDER BY tags", 9),
        ("title = $", 8),
    ],
)
def test_syntax_errors_carry_first_offending_position(text, start):
    result = parse(text)
    assert not result.ok
    assert type(result.error) is FilterParseError
    assert result.error.start == start


def test_error_is_reported_before_later_lex_errors():
    result = parse("title = foo bogus $$$")
    assert isinstance(result.error, UnknownField)
    assert result.error.start == 12


def test_error_to_dict():
    error = parse("bogus = 1").error
    assert error.to_dict() == {"message": "Unknown field: 'bogus'", "start": 0, "end": 5}


def test_deep_nesting_is_a_parse_error():
    result = parse("(" * 400 + "status = active" + ")" * 400)
    assert not result.ok
    assert "nested too deeply" in result.error.message
    assert result.error.start == MAX_NESTING
    assert parse("NOT " * 400 + "status = active").error is not None


def test_nesting_within_limit_parses():
    depth = MAX_NESTING
    query = parse_filter("(" * depth + "status = active" + ")" * depth)
    assert query.expression == Condition(FilterField.STATUS, FilterOp.EQ, "active")
