"""Lexical keyword scoring used by hybrid search."""

from __future__ import annotations

import re

from ..types import KeywordMode

_NON_WORD = re.compile(r"\W+")

KeywordModeInput = str | KeywordMode


def tokenize(text: str) -> list[str]:
    """Lower-case `text` and split it on non-word characters, dropping empty tokens."""

    return [token for token in _NON_WORD.split(text.lower()) if token]


def levenshtein_distance(left: str, right: str, *, max_distance: int | None = None) -> int:
    """Edit distance between two strings.

    When `max_distance` is given, computation stops as soon as every cell of a
    row exceeds it and `max_distance + 1` is returned.
    """

    if left == right:
        return 0
    if len(left) < len(right):
        left, right = right, left
    if not right:
        return len(left)

    previous = list(range(len(right) + 1))
    for i, left_char in enumerate(left, start=1):
        current = [i]
        for j, right_char in enumerate(right, start=1):
            cost = 0 if left_char == right_char else 1
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + cost,
                )
            )
        if max_distance is not None and min(current) > max_distance:
            return max_distance + 1
        previous = current
    return previous[-1]


def _fuzzy_match(term: str, words: list[str]) -> bool:
    max_edits = len(term) // 3
    for word in words:
        if abs(len(word) - len(term)) > max_edits:
            continue
        if levenshtein_distance(term, word, max_distance=max_edits) <= max_edits:
            return True
    return False


def compute_keyword_score(
    query: str,
    content: str,
    mode: KeywordModeInput = KeywordMode.EXACT,
) -> float:
    """Fraction of query terms matched in `content`, in `[0, 1]`.

    Modes:
        exact: the term occurs anywhere in the lower-cased content.
        prefix: some content word starts with the term.
        fuzzy: some content word is within `len(term) // 3` edits of the term.
    """

    terms = tokenize(query)
    if not terms:
        return 0.0

    keyword_mode = KeywordMode(mode)
    lowered = content.lower()
    words = tokenize(content)

    matched = 0
    for term in terms:
        if keyword_mode == KeywordMode.EXACT:
            hit = term in lowered
        elif keyword_mode == KeywordMode.PREFIX:
            hit = any(word.startswith(term) for word in words)
        else:
            hit = _fuzzy_match(term, words)
        if hit:
            matched += 1

    return matched / len(terms)
