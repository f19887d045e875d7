"""Inline token extraction from free-text task titles.

Recognizes ``@project`` and ``#tag`` references at word starts and bare
absolute URLs. Markdown links ``[text](url)`` are left as text.
"""

import re
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple, Union

_MD_LINK_RE = re.compile(r"\[[^\]]*\]\([^)]+\)")
_URL_RE = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*://[^\s<>\[\]()]+")
_URL_TRAILING = ".,;:!?'\""
_TAG_SEPARATORS = frozenset(":.-_")
_SCHEME_CHARS = frozenset("+.-")


@dataclass(frozen=True)
class TextSegment:
    text: str

    @property
    def raw(self) -> str:
        return self.text


@dataclass(frozen=True)
class ProjectToken:
    name: str

    @property
    def raw(self) -> str:
        return f"@{self.name}"


@dataclass(frozen=True)
class TagToken:
    name: str

    @property
    def raw(self) -> str:
        return f"#{self.name}"


@dataclass(frozen=True)
class UrlToken:
    url: str

    @property
    def raw(self) -> str:
        return self.url


Segment = Union[TextSegment, ProjectToken, TagToken, UrlToken]


def _is_tag_char(ch: str) -> bool:
    return ch.isalnum() or ch in _TAG_SEPARATORS


def _link_spans(text: str) -> List[Tuple[int, int]]:
    return [m.span() for m in _MD_LINK_RE.finditer(text)]


def _match_url(text: str, pos: int) -> Optional[str]:
    if pos > 0 and (text[pos - 1].isalnum() or text[pos - 1] in _SCHEME_CHARS):
        return None
    m = _URL_RE.match(text, pos)
    if not m:
        return None
    url = m.group(0).rstrip(_URL_TRAILING)
    if url.endswith("://"):
        return None
    return url


class TitleTokens:
    """Lazy, restartable segment sequence over a title.

    Each iteration rescans the source string; nothing is cached.
    """

    def __init__(self, text: str):
        self.text = text or ""

    def __iter__(self) -> Iterator[Segment]:
        text = self.text
        links = _link_spans(text)
        buf: List[str] = []
        pos = 0
        length = len(text)

        def flush() -> Iterator[Segment]:
            if buf:
                yield TextSegment("".join(buf))
                buf.clear()

        while pos < length:
            link_end = next((end for start, end in links if start == pos), None)
            if link_end is not None:
                buf.append(text[pos:link_end])
                pos = link_end
                continue

            ch = text[pos]
            at_word_start = pos == 0 or text[pos - 1].isspace()

            if at_word_start and ch in "@#":
                end = pos + 1
                if ch == "@":
                    while end < length and not text[end].isspace():
                        end += 1
                else:
                    while end < length and _is_tag_char(text[end]):
                        end += 1
                name = text[pos + 1:end]
                if name:
                    yield from flush()
                    yield ProjectToken(name) if ch == "@" else TagToken(name)
                    pos = end
                    continue

            url = _match_url(text, pos)
            if url:
                yield from flush()
                yield UrlToken(url)
                pos += len(url)
                continue

            buf.append(ch)
            pos += 1

        yield from flush()

    def __repr__(self) -> str:
        return f"TitleTokens({self.text!r})"


def tokenize(text: str) -> TitleTokens:
    return TitleTokens(text)


@dataclass(frozen=True)
class ParsedTitle:
    cleaned: str
    project: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    url: Optional[str] = None


def parse_title(text: str) -> ParsedTitle:
    """Strip ``@project``/``#tag`` tokens from a title and collect them.

    Tags are lower-cased and de-duplicated in first-seen order; the last
    ``@project`` wins. Bare URLs stay in the cleaned title and the first one
    is reported separately.
    """
    parts: List[str] = []
    tags: List[str] = []
    project: Optional[str] = None
    url: Optional[str] = None
    for segment in tokenize(text):
        if isinstance(segment, TagToken):
            name = segment.name.lower()
            if name not in tags:
                tags.append(name)
        elif isinstance(segment, ProjectToken):
            project = segment.name
        else:
            if isinstance(segment, UrlToken) and url is None:
                url = segment.url
            parts.append(segment.raw)
    cleaned = " ".join("".join(parts).split())
    return ParsedTitle(cleaned=cleaned, project=project, tags=tags, url=url)


def bare_urls(text: str) -> List[str]:
    return [seg.url for seg in tokenize(text) if isinstance(seg, UrlToken)]


def has_bare_urls(text: str) -> bool:
    return any(isinstance(seg, UrlToken) for seg in tokenize(text))


__all__ = [
    "TextSegment",
    "ProjectToken",
    "TagToken",
    "UrlToken",
    "Segment",
    "TitleTokens",
    "ParsedTitle",
    "tokenize",
    "parse_title",
    "bare_urls",
    "has_bare_urls",
]
