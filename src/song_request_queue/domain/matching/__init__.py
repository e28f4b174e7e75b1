"""
Matching Bounded Context

Pure functions for decomposing video titles and scoring catalog candidates.
"""

from song_request_queue.domain.matching.scoring import (
    MatchCandidate,
    artist_score,
    score_candidate,
    select_best,
)
from song_request_queue.domain.matching.similarity import similarity
from song_request_queue.domain.matching.title_parser import (
    TitleCandidates,
    build_search_queries,
    clean_title,
    decompose,
)

__all__ = [
    "MatchCandidate",
    "TitleCandidates",
    "artist_score",
    "build_search_queries",
    "clean_title",
    "decompose",
    "score_candidate",
    "select_best",
    "similarity",
]
