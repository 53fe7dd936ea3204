"""
BM25 relevance ranking over transcript windows.

Windows play the role of documents: IDF is computed across the windows of a
single transcript and every query is scored from scratch, so there is no index
to keep in sync.
"""

import math
import re
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass

from transcript_server.models.errors import InvalidQueryError
from transcript_server.models.transcript import ScoredWindow, TimeWindow

_NON_WORD = re.compile(r"[^\w\s]")


@dataclass(frozen=True)
class BM25Params:
    """BM25 algorithm parameters."""

    k1: float = 1.5  # Term frequency saturation
    b: float = 0.75  # Length normalization


def tokenize(text: str) -> list[str]:
    """Lowercase, turn punctuation into whitespace, split, drop one-character tokens."""
    return [token for token in _NON_WORD.sub(" ", text.lower()).split() if len(token) > 1]


def inverse_document_frequency(
    tokenized_windows: Sequence[Sequence[str]], vocabulary: set[str]
) -> dict[str, float]:
    """``ln((N - n + 0.5) / (n + 0.5) + 1)`` for each term, unclamped."""
    total = len(tokenized_windows)
    window_sets = [set(tokens) for tokens in tokenized_windows]
    idf: dict[str, float] = {}
    for term in vocabulary:
        containing = sum(1 for tokens in window_sets if term in tokens)
        idf[term] = math.log((total - containing + 0.5) / (containing + 0.5) + 1)
    return idf


def bm25_score(
    window_tokens: Sequence[str],
    query_tokens: Sequence[str],
    idf: dict[str, float],
    avg_length: float,
    params: BM25Params,
) -> float:
    """Score one window; repeated query tokens contribute once per occurrence."""
    if avg_length <= 0:
        return 0.0
    length = len(window_tokens)
    frequencies = Counter(window_tokens)
    score = 0.0
    for term in query_tokens:
        tf = frequencies.get(term, 0)
        if tf == 0:
            continue
        numerator = tf * (params.k1 + 1)
        denominator = tf + params.k1 * (1 - params.b + params.b * length / avg_length)
        score += idf.get(term, 0.0) * (numerator / denominator)
    return score


def rank_windows(
    windows: Sequence[TimeWindow],
    query: str,
    params: BM25Params | None = None,
) -> list[ScoredWindow]:
    """
    Score every window against the query and return the positive ones, best first.

    Ties keep the original window order. Raises InvalidQueryError when the query
    has no usable tokens.
    """
    params = params or BM25Params()
    query_tokens = tokenize(query)
    if not query_tokens:
        raise InvalidQueryError(query)
    if not windows:
        return []

    tokenized = [tokenize(window.text) for window in windows]
    idf = inverse_document_frequency(tokenized, set(query_tokens))
    avg_length = sum(len(tokens) for tokens in tokenized) / len(tokenized)

    scored: list[ScoredWindow] = []
    for window, tokens in zip(windows, tokenized):
        score = bm25_score(tokens, query_tokens, idf, avg_length, params)
        if score > 0:
            scored.append(ScoredWindow.model_validate({**window.model_dump(), "score": score}))

    scored.sort(key=lambda w: w.score, reverse=True)
    return scored
