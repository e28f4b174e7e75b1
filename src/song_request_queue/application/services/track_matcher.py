"""Track Matcher - finds the secondary-catalog equivalent of a resolved video."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...domain.matching.scoring import MatchCandidate, score_candidate, select_best
from ...domain.matching.title_parser import build_search_queries, decompose
from ...domain.shared.constants import MatchingConstants
from ...domain.shared.exceptions import CatalogLookupError
from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...domain.requests.entities import MatchedTrack
    from ..interfaces.track_catalog import TrackCatalog

logger = logging.getLogger(__name__)


class TrackMatcher:
    """Best-effort enrichment. ``find_equivalent`` never raises.

    Every generated query is searched, candidates are de-duplicated by
    catalog id and the best-scoring one above the threshold wins.
    """

    def __init__(
        self,
        catalog: TrackCatalog,
        *,
        max_results: int = MatchingConstants.DEFAULT_RESULTS_PER_QUERY,
    ) -> None:
        self._catalog = catalog
        self._max_results = max_results

    @property
    def enabled(self) -> bool:
        return self._catalog.enabled

    async def find_equivalent(self, title: str, channel: str) -> MatchedTrack | None:
        if not self._catalog.enabled:
            return None

        try:
            return await self._find(title, channel)
        except Exception as e:
            logger.warning(LogTemplates.MATCH_FAILED, title, e)
            return None

    async def _find(self, title: str, channel: str) -> MatchedTrack | None:
        candidates = decompose(title, channel)
        queries = build_search_queries(title, channel)
        logger.debug(LogTemplates.MATCH_QUERIES, candidates.title, candidates.artist, len(queries))

        seen: set[str] = set()
        scored: list[MatchCandidate] = []
        for query in queries:
            try:
                tracks = await self._catalog.search(query, self._max_results)
            except CatalogLookupError as e:
                logger.debug(LogTemplates.MATCH_QUERY_FAILED, query, e)
                continue

            for track in tracks:
                if track.catalog_id in seen:
                    continue
                seen.add(track.catalog_id)
                score = score_candidate(track, title, channel, candidates)
                scored.append(MatchCandidate(track=track, score=score))

        best = select_best(scored, channel, candidates)
        if best is None:
            logger.info(LogTemplates.MATCH_NOT_FOUND, title)
            return None

        logger.info(LogTemplates.MATCH_FOUND, title, best.track.catalog_id, best.score)
        return best.track.model_copy(update={"score": best.score})
