"""Token-overlap string similarity used by the track matcher."""

from __future__ import annotations

from song_request_queue.domain.shared.constants import MatchingConstants


def _tokens(text: str) -> set[str]:
    return {token for token in text.split() if len(token) > 1}


def similarity(first: str, second: str) -> float:
    """Score how alike two strings are, in [0.0, 1.0].

    Case-insensitive. Identical strings score 1.0; otherwise the Jaccard
    index of the word sets (single-character words ignored), plus a small
    bonus when one string contains the other. Symmetric in its arguments.
    """
    a = first.casefold().strip()
    b = second.casefold().strip()

    if a == b:
        return 1.0
    if not a or not b:
        return 0.0

    tokens_a = _tokens(a)
    tokens_b = _tokens(b)
    if not tokens_a or not tokens_b:
        return 0.0

    jaccard = len(tokens_a & tokens_b) / len(tokens_a | tokens_b)
    containment = MatchingConstants.CONTAINMENT_BONUS if a in b or b in a else 0.0
    return min(1.0, jaccard + containment)
