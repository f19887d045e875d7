import pytest

from core.filter_dsl import And, Condition, FilterField, FilterOp, FilterQuery, Not, Or
from core.filter_parser import parse_filter


@pytest.mark.parametrize(
    "text",
    [
        "status = active",
        "title =~ 'Buy*' AND NOT tags IN [work, 'home office']",
        "(title = a OR title = b) AND (title = c OR title = d)",
        "title = a OR (title = b OR title = c)",
        "title = a AND (title = b AND title = c)",
        "NOT (status = done AND due < 2024-01-15)",
        "NOT NOT body IS NOT null",
        "project != 'O\\'Brien' ORDER BY due DESC",
        "created >= 2024-01-15T09:30 ORDER BY created",
        "title = 42 OR title = 1.5",
        "title = 0.00001 OR tags = 007 OR title = -3.50",
        "ORDER BY title DESC",
        "",
    ],
)
def test_to_dsl_reparses_to_equal_tree(text):
    query = parse_filter(text)
    assert parse_filter(query.to_dsl()) == query


def test_canonical_rendering():
    query = parse_filter("status = active tag = Work order by due")
    assert query.to_dsl() == "status = 'active' AND tags = 'Work' ORDER BY due_date ASC"


def test_rendering_keeps_right_nested_groups():
    a, b, c = (Condition(FilterField.TITLE, FilterOp.EQ, v) for v in "abc")
    assert Or(a, Or(b, c)).to_dsl() == "title = 'a' OR (title = 'b' OR title = 'c')"
    assert And(Or(a, b), c).to_dsl() == "(title = 'a' OR title = 'b') AND title = 'c'"
    assert Not(And(a, b)).to_dsl() == "NOT (title = 'a' AND title = 'b')"
    assert FilterQuery().to_dsl() == ""


def test_numbers_keep_their_spelling():
    query = parse_filter("title = 0.00001 AND tags = 007")
    assert query.to_dsl() == "title = '0.00001' AND tags = '007'"
    assert Condition(FilterField.TITLE, FilterOp.EQ, 1e-05).to_dsl() == "title = 0.00001"
    assert Condition(FilterField.TITLE, FilterOp.EQ, 2.0).to_dsl() == "title = 2"


def test_long_implicit_and_chain_renders():
    query = parse_filter(" ".join(["status = active"] * 500))
    rendered = query.to_dsl()
    assert rendered.count(" AND ") == 499
    assert parse_filter(rendered).to_dsl() == rendered
