"""Text search with optional keyword expansion and semantic re-ranking."""

import asyncio
import logging
from typing import Any, List, Optional, Sequence

from ....core.exceptions import QueryFailed
from ...text_analysis.entities import TextAnalysisGateway
from ..entities import Filter, FilterOperator, Record, RemoteStore, SearchOptions, escape_like

logger = logging.getLogger(__name__)

SIMILARITY_SEPARATOR = "|||"
FALLBACK_SCORE = 0.5


class SearchService:
    """Case-insensitive substring search across columns."""

    def __init__(
        self,
        store: RemoteStore,
        gateway: Optional[TextAnalysisGateway] = None,
        default_limit: int = 50,
        timeout_seconds: float = 10.0,
        analysis_timeout: float = 15.0,
    ):
        self._store = store
        self._gateway = gateway
        self._default_limit = default_limit
        self._timeout = timeout_seconds
        self._analysis_timeout = analysis_timeout

    async def search(
        self,
        table: str,
        term: str,
        columns: Sequence[str],
        options: Optional[SearchOptions] = None,
    ) -> List[Record]:
        """Search ``columns`` of ``table`` for ``term``.

        With ``fuzzy`` the term is first expanded into keywords; with
        ``semantic`` results are re-ranked by similarity to the term. Both
        steps fall back silently to the plain behavior when the gateway
        is missing or failing.

        Raises:
            ValueError: no columns given
            QueryFailed: the remote read failed or timed out
        """
        if not columns:
            raise ValueError("search requires at least one column")
        options = options or SearchOptions()
        limit = options.limit if options.limit is not None else self._default_limit

        keywords = await self.expand_keywords(term, options) if options.fuzzy else [term]
        any_of = tuple(
            Filter(column, FilterOperator.ILIKE, f"%{escape_like(keyword)}%")
            for column in columns
            for keyword in keywords
        )

        try:
            records = await asyncio.wait_for(
                self._store.read(table, any_of=any_of, limit=limit),
                timeout=self._timeout,
            )
        except Exception as e:
            logger.error(f"Search on {table} failed: {e!r}")
            raise QueryFailed(table, e) from e
        records = list(records or [])

        if options.semantic and records and self._gateway is not None:
            return await self.rank(records, term, columns)
        return records

    async def expand_keywords(self, term: str, options: SearchOptions) -> List[str]:
        """Expand a search term into keywords, falling back to ``[term]``."""
        if self._gateway is None:
            return [term]

        try:
            result = await asyncio.wait_for(
                self._gateway.analyze(
                    term,
                    task="analyze",
                    context="search_query",
                    options={
                        "extractKeywords": True,
                        "detectLanguage": options.multilingual,
                        "semanticExpansion": options.semantic,
                    },
                ),
                timeout=self._analysis_timeout,
            )
        except Exception as e:
            logger.warning(f"Keyword expansion failed, searching raw term: {e!r}")
            return [term]

        if not result.success:
            return [term]
        keywords = list(dict.fromkeys(k for k in result.keywords if k))
        return keywords or [term]

    async def rank(self, records: List[Record], term: str, columns: Sequence[str]) -> List[Record]:
        """Sort records by descending similarity to ``term``.

        Ties keep their original order. Any gateway transport failure
        returns the records unranked.
        """
        try:
            scores = await asyncio.gather(
                *(self._similarity(term, _record_text(record, columns)) for record in records)
            )
        except Exception as e:
            logger.warning(f"Search ranking failed, returning unranked results: {e!r}")
            return records

        ranked = sorted(zip(scores, range(len(records))), key=lambda pair: pair[0], reverse=True)
        return [records[index] for _, index in ranked]

    async def _similarity(self, term: str, text: str) -> float:
        result = await asyncio.wait_for(
            self._gateway.analyze(
                f"{term}{SIMILARITY_SEPARATOR}{text}",
                task="analyze",
                context="similarity_scoring",
                options={"scoreSimilarity": True},
            ),
            timeout=self._analysis_timeout,
        )
        return float(result.confidence) if result.success else FALLBACK_SCORE


def _record_text(record: Record, columns: Sequence[str]) -> str:
    return " ".join(_text(record.get(column)) for column in columns)


def _text(value: Any) -> str:
    return "" if value is None else str(value)
