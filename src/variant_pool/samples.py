"""Sample registry aligned to genotype columns."""

from collections.abc import Iterable, Iterator


class SamplePool:
    """Ordered sample names sharing an identifier with their variant pool."""

    def __init__(self, pool_id: str, samples: Iterable[str] = ()):
        self.pool_id = pool_id
        self._samples: list[str] = list(samples)

    @property
    def samples(self) -> list[str]:
        return list(self._samples)

    def index(self, sample: str) -> int:
        return self._samples.index(sample)

    def rename(self, new_names: Iterable[str]) -> "SamplePool":
        """Return a pool with the same id and new names for the same slots.

        Raises:
            ValueError: If the number of names differs from the current pool.
        """
        names = list(new_names)
        if len(names) != len(self._samples):
            raise ValueError(
                f"Expected {len(self._samples)} sample names for pool "
                f"'{self.pool_id}', got {len(names)}"
            )
        return SamplePool(self.pool_id, names)

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[str]:
        return iter(self._samples)

    def __contains__(self, sample: object) -> bool:
        return sample in self._samples

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SamplePool):
            return NotImplemented
        return self.pool_id == other.pool_id and self._samples == other._samples

    def __repr__(self) -> str:
        return f"SamplePool(pool_id={self.pool_id!r}, samples={self._samples!r})"
