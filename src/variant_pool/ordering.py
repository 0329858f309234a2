"""Natural ordering of contigs and record keys."""

import re
from collections.abc import Callable, Iterable, Iterator

from .models import RecordKey

_RUN_PATTERN = re.compile(r"(\d+)")


def natural_key(text: str) -> tuple[tuple[int, int | str], ...]:
    """Sort key that orders digit runs numerically and other runs lexically.

    ``chr2`` sorts before ``chr10``, which sorts before ``chrX``. Each run is
    tagged so digit runs and text runs never compare against each other.
    """
    parts: list[tuple[int, int | str]] = []
    for run in _RUN_PATTERN.split(text):
        if not run:
            continue
        if run.isdigit():
            parts.append((0, int(run)))
        else:
            parts.append((1, run))
    return tuple(parts)


def record_sort_key(key: RecordKey) -> tuple:
    """Natural order for primary keys; REF breaks remaining ties lexically."""
    return (natural_key(key.chrom), key.pos, key.ref)


class ContigRegistry:
    """Distinct normalized chromosome names seen by a pool."""

    def __init__(self, contigs: Iterable[str] = ()):
        self._contigs: set[str] = set(contigs)

    def add(self, contig: str) -> None:
        self._contigs.add(contig)

    def __contains__(self, contig: object) -> bool:
        return contig in self._contigs

    def __len__(self) -> int:
        return len(self._contigs)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._contigs, key=natural_key))

    def __repr__(self) -> str:
        return f"ContigRegistry({list(self)!r})"


class NaturalOrderTraversal:
    """Restartable iterator over primary keys in natural order.

    The key set is snapshotted and sorted at the first pull of a pass, so
    inserts made mid-pass are not seen until the next pass. Reaching the end
    resets the cursor; the following pull starts a fresh pass.
    """

    def __init__(self, key_source: Callable[[], Iterable[RecordKey]]):
        self._key_source = key_source
        self._snapshot: list[RecordKey] | None = None
        self._cursor = 0

    def __iter__(self) -> "NaturalOrderTraversal":
        return self

    def __next__(self) -> RecordKey:
        if self._snapshot is None:
            self._snapshot = sorted(self._key_source(), key=record_sort_key)
            self._cursor = 0

        if self._cursor < len(self._snapshot):
            key = self._snapshot[self._cursor]
            self._cursor += 1
            return key

        self.reset()
        raise StopIteration

    def reset(self) -> None:
        self._snapshot = None
        self._cursor = 0

    @property
    def in_progress(self) -> bool:
        return self._snapshot is not None
