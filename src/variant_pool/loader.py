"""Streaming loader that fills a pool from a record source, then replays it."""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .models import VariantRecord
from .ordering import NaturalOrderTraversal
from .vcf_parser import RecordSource

if TYPE_CHECKING:
    from .pool import VariantPool

logger = logging.getLogger(__name__)

PROGRESS_INTERVAL = 10_000


@dataclass
class PoolConfig:
    """Construction-time settings for a variant pool."""

    add_chr: bool = True
    pool_id: str | None = None
    require_index: bool = False
    repair_header: bool = True


class LoaderState(Enum):
    STREAMING = "streaming"
    REPLAY = "replay"


class StreamingLoader:
    """Pulls records from a source into a pool, then replays the pool.

    While STREAMING, each pull reads the next record from the source and
    inserts it. When the source is exhausted the pull returns None, the
    source is closed and the loader moves to REPLAY for good; later pulls
    walk the pool in natural order, returning None at the end of each pass.
    """

    def __init__(self, pool: "VariantPool", source: RecordSource | None = None):
        self.pool = pool
        self._source = source
        self._records: Iterator[VariantRecord] | None = None
        self._traversal: NaturalOrderTraversal | None = None
        self.records_pulled = 0

        if source is None:
            self.state = LoaderState.REPLAY
            self._traversal = pool.keys()
        else:
            self.state = LoaderState.STREAMING
            if source.header is not None and pool.header is None:
                header = source.header.copy()
                header.contigs = {
                    pool.normalize_chromosome(k): v for k, v in header.contigs.items()
                }
                pool.header = header

    def next_variant(self) -> VariantRecord | None:
        """Return the next record, or None at the end of a pass."""
        if self.state is LoaderState.STREAMING:
            return self._pull_from_source()

        try:
            key = next(self._traversal)
        except StopIteration:
            return None
        return self.pool.get_variant_by_key(key)

    def _pull_from_source(self) -> VariantRecord | None:
        if self._records is None:
            self._records = iter(self._source)

        record = next(self._records, None)
        if record is None:
            self._switch_to_replay()
            return None

        if self.records_pulled == 0:
            self.pool.bind_samples(self._source.samples or record.sample_names)

        record = self.pool.normalize_record(record)
        self.pool.insert(record, allow_duplicate_key=False)
        self.records_pulled += 1

        if self.records_pulled % PROGRESS_INTERVAL == 0:
            logger.debug("Parsed variants: %s", f"{self.records_pulled:,}")

        return record

    def _switch_to_replay(self) -> None:
        logger.debug(
            "Source exhausted after %d records; pool %s now holds %d",
            self.records_pulled,
            self.pool.pool_id,
            self.pool.num_records,
        )
        self._source.close()
        self._records = None
        self.state = LoaderState.REPLAY
        self._traversal = self.pool.keys()

    def load_all(self) -> int:
        """Drain the source into the pool and return the number of records read."""
        while self.state is LoaderState.STREAMING:
            self.next_variant()
        return self.records_pulled

    def __iter__(self) -> Iterator[VariantRecord]:
        while (record := self.next_variant()) is not None:
            yield record
