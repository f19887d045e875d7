import pytest

from core.text_tokens import (
    ProjectToken,
    TagToken,
    TextSegment,
    UrlToken,
    bare_urls,
    has_bare_urls,
    parse_title,
    tokenize,
)


def test_tokenize_project_and_tag():
    assert list(tokenize("Buy milk @Groceries #errand")) == [
        TextSegment("Buy milk "),
        ProjectToken("Groceries"),
        TextSegment(" "),
        TagToken("errand"),
    ]


def test_tag_name_keeps_separator_characters():
    assert list(tokenize("#work:urgent")) == [TagToken("work:urgent")]
    assert list(tokenize("#v1.2-beta_x later")) == [TagToken("v1.2-beta_x"), TextSegment(" later")]


def test_tag_stops_at_other_punctuation():
    assert list(tokenize("#home!")) == [TagToken("home"), TextSegment("!")]


def test_project_name_is_whole_non_whitespace_run():
    assert list(tokenize("@Side-Project/2 next")) == [ProjectToken("Side-Project/2"), TextSegment(" next")]


@pytest.mark.parametrize("title", ["# heading", "@ someone", "@", "#"])
def test_symbol_without_name_is_text(title):
    assert list(tokenize(title)) == [TextSegment(title)]


@pytest.mark.parametrize("title", ["C#sharp", "mail me at me@example.com"])
def test_symbols_inside_words_are_text(title):
    assert list(tokenize(title)) == [TextSegment(title)]


def test_bare_url_is_token_and_trailing_punctuation_is_text():
    assert list(tokenize("Read https://example.com/a?b=1.")) == [
        TextSegment("Read "),
        UrlToken("https://example.com/a?b=1"),
        TextSegment("."),
    ]


def test_markdown_link_stays_text():
    title = "See [docs](https://example.com/docs) now"
    assert list(tokenize(title)) == [TextSegment(title)]
    assert not has_bare_urls(title)


def test_markdown_link_and_bare_url_together():
    title = "[a](http://a.example) and http://b.example"
    assert bare_urls(title) == ["http://b.example"]


def test_tokenize_is_restartable():
    tokens = tokenize("x @p #t")
    assert list(tokens) == list(tokens)


def test_empty_title():
    assert list(tokenize("")) == []
    assert parse_title("").cleaned == ""


def test_parse_title_cleans_and_collects():
    parsed = parse_title("Plan  trip @Travel #Vacation #family #vacation https://maps.example")
    assert parsed.cleaned == "Plan trip https://maps.example"
    assert parsed.project == "Travel"
    assert parsed.tags == ["vacation", "family"]
    assert parsed.url == "https://maps.example"


def test_parse_title_last_project_wins():
    parsed = parse_title("@Home fix sink @Work")
    assert parsed.project == "Work"
    assert parsed.cleaned == "fix sink"


def test_raw_round_trip_of_segments():
    title = "Call @Bob about #q3:plan see https://x.example/y"
    assert "".join(seg.raw for seg in tokenize(title)) == title
