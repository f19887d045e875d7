"""Case-insensitive glob matching with ``*`` and ``?`` wildcards only.

``fnmatch`` also treats ``[...]`` as a character class; filter values may
legitimately contain brackets, so the pattern is translated here instead.
"""

import re
from functools import lru_cache
from typing import Pattern


@lru_cache(maxsize=256)
def compile_glob(pattern: str) -> Pattern[str]:
    parts = []
    for ch in pattern:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


def glob_match(pattern: str, text: str) -> bool:
    return compile_glob(pattern).fullmatch(text) is not None

