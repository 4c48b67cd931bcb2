"""
Small glob matcher for activity labels.

Supported syntax:
- `*` matches any run of characters, including none
- `?` matches exactly one character
- `{A,B}` matches any of the comma separated alternatives (may be nested)
- `\\x` matches the character x literally

The whole label must match. Unbalanced braces are matched literally.

    {ON_FOOT,STILL}   either case
    ON_*              whenever we are on something
    IN_*              whenever we are in something
"""

from functools import lru_cache
from typing import List, Optional, Tuple

_STAR = object()
_ANY = object()


def _find_closing_brace(pattern: str, open_idx: int) -> Optional[int]:
    depth = 0
    i = open_idx
    while i < len(pattern):
        char = pattern[i]
        if char == "\\":
            i += 2
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return None


def _split_alternatives(body: str) -> List[str]:
    """Split the inside of a brace group on top-level commas."""
    parts = []
    depth = 0
    start = 0
    i = 0
    while i < len(body):
        char = body[i]
        if char == "\\":
            i += 2
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        elif char == "," and depth == 0:
            parts.append(body[start:i])
            start = i + 1
        i += 1
    parts.append(body[start:])
    return parts


def expand_braces(pattern: str) -> List[str]:
    """
    Expand brace alternation into plain wildcard patterns.

    Args:
        pattern: Glob pattern, e.g. "{ON_FOOT,IN_*}"

    Returns:
        List of patterns without alternation, e.g. ["ON_FOOT", "IN_*"]
    """
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "\\":
            i += 2
            continue
        if char == "{":
            close_idx = _find_closing_brace(pattern, i)
            if close_idx is not None:
                prefix = pattern[:i]
                suffix = pattern[close_idx + 1:]
                expanded = []
                for alternative in _split_alternatives(pattern[i + 1:close_idx]):
                    expanded.extend(expand_braces(prefix + alternative + suffix))
                return expanded
        i += 1
    return [pattern]


def _tokenize(pattern: str) -> Tuple[object, ...]:
    tokens = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "\\" and i + 1 < len(pattern):
            tokens.append(pattern[i + 1])
            i += 2
            continue
        if char == "*":
            # Consecutive stars behave like one
            if not tokens or tokens[-1] is not _STAR:
                tokens.append(_STAR)
        elif char == "?":
            tokens.append(_ANY)
        else:
            tokens.append(char)
        i += 1
    return tuple(tokens)


@lru_cache(maxsize=128)
def _compile(pattern: str) -> Tuple[Tuple[object, ...], ...]:
    return tuple(_tokenize(p) for p in expand_braces(pattern))


def _match_tokens(tokens: Tuple[object, ...], text: str) -> bool:
    p = 0
    t = 0
    star_p = -1
    star_t = 0

    while t < len(text):
        if p < len(tokens) and tokens[p] is _STAR:
            star_p = p
            star_t = t
            p += 1
        elif p < len(tokens) and (tokens[p] is _ANY or tokens[p] == text[t]):
            p += 1
            t += 1
        elif star_p >= 0:
            # Let the last star swallow one more character and retry
            star_t += 1
            t = star_t
            p = star_p + 1
        else:
            return False

    while p < len(tokens) and tokens[p] is _STAR:
        p += 1
    return p == len(tokens)


def glob_match(pattern: str, text: str) -> bool:
    """Return True if text matches the glob pattern."""
    return any(_match_tokens(tokens, text) for tokens in _compile(pattern))
