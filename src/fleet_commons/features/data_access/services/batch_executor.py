"""Batch execution of mixed reads and mutations."""

import asyncio
import logging
from typing import Iterable, List, Optional, Union

from ....core.exceptions import UnsupportedOperation
from ..entities import BatchItemResult, MutationSpec, QuerySpec
from .mutation_service import MutationService
from .query_service import QueryService

logger = logging.getLogger(__name__)

BatchItem = Union[QuerySpec, MutationSpec]


class BatchExecutor:
    """Runs reads as one bounded parallel group, then mutations in input order.

    Every item yields exactly one ``BatchItemResult`` at its input position;
    a failing item never aborts its siblings.
    """

    def __init__(
        self,
        queries: QueryService,
        mutations: MutationService,
        read_concurrency: int = 10,
    ):
        if read_concurrency < 1:
            raise ValueError("read_concurrency must be >= 1")
        self._queries = queries
        self._mutations = mutations
        self._read_concurrency = read_concurrency

    async def execute(self, items: Iterable[BatchItem]) -> List[BatchItemResult]:
        items = list(items)
        results: List[Optional[BatchItemResult]] = [None] * len(items)

        reads = []
        mutations = []
        for index, item in enumerate(items):
            if isinstance(item, QuerySpec):
                reads.append((index, item))
            elif isinstance(item, MutationSpec):
                mutations.append((index, item))
            else:
                results[index] = BatchItemResult(
                    index=index, spec=item, error=UnsupportedOperation(type(item).__name__)
                )

        semaphore = asyncio.Semaphore(self._read_concurrency)

        async def run_read(index: int, spec: QuerySpec) -> BatchItemResult:
            async with semaphore:
                try:
                    return BatchItemResult(index=index, spec=spec, data=await self._queries.query(spec))
                except Exception as e:
                    logger.warning(f"Batch read {index} on {spec.table} failed: {e}")
                    return BatchItemResult(index=index, spec=spec, error=e)

        for result in await asyncio.gather(*(run_read(i, s) for i, s in reads)):
            results[result.index] = result

        for index, spec in mutations:
            try:
                results[index] = BatchItemResult(index=index, spec=spec, data=await self._mutations.mutate(spec))
            except Exception as e:
                logger.warning(f"Batch mutation {index} ({spec.operation.value} on {spec.table}) failed: {e}")
                results[index] = BatchItemResult(index=index, spec=spec, error=e)

        failed = sum(1 for r in results if r.failed)
        if failed:
            logger.info(f"Batch of {len(items)} completed with {failed} failed items")
        return results
