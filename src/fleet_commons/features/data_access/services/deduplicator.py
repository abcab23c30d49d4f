"""Record deduplication by key fields."""

import logging
from typing import Dict, List, Optional, Sequence

from ....core.exceptions import FleetCommonsError
from ...cache.entities import content_digest
from ..entities import (
    DeduplicationError,
    DeduplicationReport,
    MutationOperation,
    MutationSpec,
    OrderBy,
    QuerySpec,
    Record,
)
from .mutation_service import MutationService
from .query_service import QueryService

logger = logging.getLogger(__name__)


class Deduplicator:
    """Keeps the oldest record of every duplicate group and deletes the rest.

    Deletions go through ``MutationService`` so they invalidate the cache
    and are audited like any other write. A failed deletion is reported in
    the returned errors and does not stop the run.
    """

    def __init__(
        self,
        queries: QueryService,
        mutations: MutationService,
        id_field: str = "id",
        order_by: str = "created_at",
    ):
        self._queries = queries
        self._mutations = mutations
        self._id_field = id_field
        self._order_by = order_by

    async def deduplicate(
        self,
        table: str,
        key_fields: Sequence[str],
        order_by: Optional[str] = None,
        id_field: Optional[str] = None,
    ) -> DeduplicationReport:
        """Remove duplicate records of ``table`` sharing ``key_fields``.

        Raises:
            ValueError: no key fields given
            QueryFailed: the scan could not be read
        """
        if not key_fields:
            raise ValueError("deduplicate requires at least one key field")
        id_field = id_field or self._id_field

        records = await self._queries.query(
            QuerySpec(
                table=table,
                order_by=(OrderBy(order_by or self._order_by, ascending=True),),
                cached=False,
            ),
            enrich=False,
        )

        report = DeduplicationReport()
        for group in self.group_duplicates(records, key_fields):
            report.found += 1
            for record in group[1:]:
                record_id = record.get(id_field)
                if await self._delete(table, id_field, record_id, report):
                    report.removed += 1

        logger.info(
            f"Deduplicated {table} on {list(key_fields)}: {report.found} groups, "
            f"{report.removed} removed, {len(report.errors)} errors"
        )
        return report

    @staticmethod
    def group_duplicates(records: Sequence[Record], key_fields: Sequence[str]) -> List[List[Record]]:
        """Group records by key field values, keeping only groups of size > 1.

        Records missing any key field are never grouped. Group members keep
        the input order, so the first member is the keeper.
        """
        groups: Dict[str, List[Record]] = {}
        for record in records:
            values = [record.get(field) for field in key_fields]
            if any(value is None for value in values):
                continue
            groups.setdefault(content_digest(values), []).append(record)
        return [group for group in groups.values() if len(group) > 1]

    async def _delete(self, table: str, id_field: str, record_id, report: DeduplicationReport) -> bool:
        if record_id is None:
            report.errors.append(DeduplicationError(None, f"record has no '{id_field}' value"))
            return False
        try:
            await self._mutations.mutate(
                MutationSpec(
                    table=table,
                    operation=MutationOperation.DELETE,
                    filters={id_field: record_id},
                )
            )
        except FleetCommonsError as e:
            logger.warning(f"Failed to delete duplicate {record_id} from {table}: {e.message}")
            report.errors.append(DeduplicationError(record_id, e.message, e.error_code))
            return False
        return True
