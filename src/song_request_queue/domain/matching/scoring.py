"""Scoring and selection of secondary-catalog match candidates."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from song_request_queue.domain.matching.similarity import similarity
from song_request_queue.domain.matching.title_parser import TitleCandidates, strip_topic_marker
from song_request_queue.domain.requests.entities import MatchedTrack
from song_request_queue.domain.shared.constants import MatchingConstants


@dataclass(frozen=True, slots=True)
class MatchCandidate:
    """A catalog track paired with its combined score. Never persisted."""

    track: MatchedTrack
    score: float


def _best_similarity(value: str, references: Iterable[str]) -> float:
    return max((similarity(value, ref) for ref in references if ref), default=0.0)


def title_score(track: MatchedTrack, raw_title: str, candidates: TitleCandidates) -> float:
    return _best_similarity(track.name, (raw_title, candidates.title))


def artist_score(track: MatchedTrack, channel: str, candidates: TitleCandidates) -> float:
    """Best similarity of any performer against the channel or the extracted artist."""
    references = (strip_topic_marker(channel), candidates.artist)
    return max(
        (_best_similarity(performer, references) for performer in track.performers),
        default=0.0,
    )


def score_candidate(
    track: MatchedTrack,
    raw_title: str,
    channel: str,
    candidates: TitleCandidates,
) -> float:
    """Weighted title/artist score with an agreement bonus, capped at 1.0."""
    t = title_score(track, raw_title, candidates)
    a = artist_score(track, channel, candidates)
    combined = MatchingConstants.TITLE_WEIGHT * t + MatchingConstants.ARTIST_WEIGHT * a

    strong = MatchingConstants.STRONG_SIDE_THRESHOLD
    weak = MatchingConstants.WEAK_SIDE_THRESHOLD
    balanced = MatchingConstants.BALANCED_THRESHOLD
    if (t > strong and a > weak) or (a > strong and t > weak):
        combined += MatchingConstants.STRONG_BONUS
    elif t > balanced and a > balanced:
        combined += MatchingConstants.BALANCED_BONUS

    return min(1.0, combined)


def select_best(
    scored: list[MatchCandidate],
    channel: str,
    candidates: TitleCandidates,
) -> MatchCandidate | None:
    """Pick the winning candidate, or None when nothing clears the threshold.

    Ties at the top score are broken by artist similarity; among equal
    artist scores the first candidate encountered wins.
    """
    eligible = [c for c in scored if c.score >= MatchingConstants.MIN_MATCH_SCORE]
    if not eligible:
        return None

    top = max(c.score for c in eligible)
    tied = [c for c in eligible if math.isclose(c.score, top, abs_tol=1e-9)]
    if len(tied) == 1:
        return tied[0]

    best = tied[0]
    best_artist = artist_score(best.track, channel, candidates)
    for candidate in tied[1:]:
        score = artist_score(candidate.track, channel, candidates)
        if score > best_artist:
            best, best_artist = candidate, score
    return best
