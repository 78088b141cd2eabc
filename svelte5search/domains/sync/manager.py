"""
Sync Manager - Content-hash based incremental ingestion of a corpus snapshot.

Features:
- Version fast path: an unchanged declared data version skips all work
- Per-item validation; malformed records are reported, not fatal
- Last-write-wins for duplicate keys inside one snapshot
- One transaction per sync: every insert/update and the metadata commit together
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any, Union

from svelte5search.config.errors import CorpusValidationError, TransactionError
from svelte5search.domains.corpus.models import (
    CorpusItem,
    ItemKind,
    RejectedRecord,
    SyncCounts,
    SyncMetadata,
    SyncReport,
    validate_item,
)

from .contracts import CorpusStore

logger = logging.getLogger(__name__)

__all__ = ["SyncManager"]

RawRecords = Iterable[Union[CorpusItem, Mapping[str, Any]]]


class SyncManager:
    """
    Applies the minimal set of inserts/updates that brings a store in line
    with a full corpus snapshot.

    Example:
        >>> manager = SyncManager(store)
        >>> report = await manager.sync(knowledge, examples, data_version="1.2.0")
        >>> report.inserted, report.updated, report.skipped
    """

    def __init__(self, store: CorpusStore) -> None:
        self._store = store

    async def sync(
        self,
        knowledge: RawRecords,
        examples: RawRecords,
        *,
        data_version: str | None = None,
        source_name: str | None = None,
    ) -> SyncReport:
        """
        Sync both corpus kinds.

        Args:
            knowledge: Full knowledge snapshot (raw mappings or items)
            examples: Full examples snapshot (raw mappings or items)
            data_version: Declared corpus version; ``None`` disables the fast path
            source_name: Corpus origin recorded in metadata

        Returns:
            Counts per kind plus rejected records

        Raises:
            TransactionError: if any write fails; the store is left untouched
        """
        report = SyncReport()
        batches = {
            ItemKind.KNOWLEDGE: self._validate(ItemKind.KNOWLEDGE, knowledge, report),
            ItemKind.EXAMPLES: self._validate(ItemKind.EXAMPLES, examples, report),
        }

        if data_version is not None and await self._is_current(data_version):
            for kind, items in batches.items():
                report.counts(kind).skipped = len(items)
            report.up_to_date = True
            logger.info("Corpus is up to date (version %s), skipping sync", data_version)
            return report

        try:
            async with self._store.transaction():
                for kind, items in batches.items():
                    await self._apply(kind, items, report.counts(kind))

                await self._store.set_metadata(
                    SyncMetadata(
                        last_sync_time=datetime.now(timezone.utc).isoformat(),
                        data_version=data_version,
                        source_name=source_name,
                        knowledge_count=len(batches[ItemKind.KNOWLEDGE]),
                        examples_count=len(batches[ItemKind.EXAMPLES]),
                    )
                )
        except Exception as e:
            logger.error("Sync rolled back: %s", e)
            raise TransactionError(
                "Corpus sync failed and was rolled back",
                details={"cause": str(e), "data_version": data_version},
            ) from e

        if report.knowledge.inserted or report.examples.inserted:
            logger.info(
                "Added %d knowledge items, %d examples",
                report.knowledge.inserted,
                report.examples.inserted,
            )
        if report.knowledge.updated or report.examples.updated:
            logger.info(
                "Updated %d knowledge items, %d examples",
                report.knowledge.updated,
                report.examples.updated,
            )

        return report

    def _validate(
        self,
        kind: ItemKind,
        records: RawRecords,
        report: SyncReport,
    ) -> list[CorpusItem]:
        """Type every record, dropping invalid ones and collapsing duplicate keys."""
        items: dict[str, CorpusItem] = {}
        for index, raw in enumerate(records):
            try:
                item = validate_item(kind, raw, index)
            except CorpusValidationError as e:
                logger.warning("Rejected %s record %d: %s", kind.value, index, e.details)
                report.rejected.append(RejectedRecord(kind=kind, index=index, error=e.to_dict()))
                continue
            items[item.key] = item
        return list(items.values())

    async def _is_current(self, data_version: str) -> bool:
        metadata = await self._store.get_metadata()
        if metadata.data_version != data_version:
            return False
        # An empty store is always a first run, whatever the metadata says
        total = await self._store.count(ItemKind.KNOWLEDGE) + await self._store.count(
            ItemKind.EXAMPLES
        )
        return total > 0

    async def _apply(self, kind: ItemKind, items: list[CorpusItem], counts: SyncCounts) -> None:
        existing = await self._store.fetch_hashes(kind)

        for item in items:
            stored = existing.get(item.key)
            if stored is None:
                await self._store.insert_item(item)
                counts.inserted += 1
            elif stored[1] != item.content_hash:
                await self._store.update_item(stored[0], item)
                counts.updated += 1
            else:
                counts.skipped += 1
