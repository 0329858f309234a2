"""Data models for pooled VCF variants."""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping, NamedTuple


class RecordKey(NamedTuple):
    """Primary key of a pooled variant: chromosome, position and REF."""

    chrom: str
    pos: int
    ref: str

    def __str__(self) -> str:
        return f"{self.chrom}:{self.pos}:{self.ref}"

    @classmethod
    def parse(cls, text: str) -> "RecordKey":
        """Parse a 'chr:pos:ref' string.

        The chromosome may itself contain colons (e.g. HLA contigs), so the
        string is split from the right.
        """
        chrom, pos, ref = text.rsplit(":", 2)
        return cls(chrom, int(pos), ref)


@dataclass(frozen=True)
class Genotype:
    """A single sample's call at a variant site."""

    sample: str
    alleles: tuple[int | None, ...] = ()
    phased: bool = False
    depth: int | None = None
    quality: int | None = None
    allelic_depths: tuple[int | None, ...] | None = None
    likelihoods: tuple[int | None, ...] | None = None
    filters: str | None = None
    attributes: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_called(self) -> bool:
        return any(a is not None for a in self.alleles)

    @property
    def gt_string(self) -> str:
        """Render the allele calls as a VCF GT value."""
        if not self.alleles:
            return "."
        sep = "|" if self.phased else "/"
        return sep.join("." if a is None else str(a) for a in self.alleles)


@dataclass(frozen=True)
class VariantRecord:
    """Represents a single variant record.

    Records are values: changing any field means building a new record with
    ``with_overrides``.
    """

    chrom: str
    pos: int
    ref: str
    alts: tuple[str, ...]
    end: int | None = None
    id: str | None = None
    qual: float | None = None
    filters: tuple[str, ...] = ()
    info: Mapping[str, Any] = field(default_factory=dict)
    genotypes: tuple[Genotype, ...] = ()
    source: str | None = None

    def __post_init__(self) -> None:
        # Freeze the mutable containers callers may have handed in.
        object.__setattr__(self, "alts", tuple(self.alts))
        object.__setattr__(self, "filters", tuple(self.filters))
        object.__setattr__(self, "genotypes", tuple(self.genotypes))
        object.__setattr__(self, "info", MappingProxyType(dict(self.info)))
        if self.end is None:
            object.__setattr__(self, "end", self.pos + max(len(self.ref), 1) - 1)

    @property
    def key(self) -> RecordKey:
        return RecordKey(self.chrom, self.pos, self.ref)

    @property
    def locus(self) -> tuple[str, int]:
        return (self.chrom, self.pos)

    @property
    def alleles(self) -> tuple[str, ...]:
        return (self.ref, *self.alts)

    @property
    def sample_names(self) -> list[str]:
        return [g.sample for g in self.genotypes]

    @property
    def has_genotypes(self) -> bool:
        return len(self.genotypes) > 0


def with_overrides(record: VariantRecord, **overrides: Any) -> VariantRecord:
    """Build a new record from ``record`` with the given fields replaced."""
    return replace(record, **overrides)


def rename_genotype_for_sample(sample_name: str, genotype: Genotype) -> Genotype:
    """Return a copy of ``genotype`` assigned to a different sample."""
    return replace(genotype, sample=sample_name, attributes=dict(genotype.attributes))


def change_alleles_for_genotype(
    genotype: Genotype, new_alleles: tuple[int | None, ...] | list[int | None]
) -> Genotype:
    """Return a copy of ``genotype`` with new allele calls."""
    return replace(genotype, alleles=tuple(new_alleles), attributes=dict(genotype.attributes))


def build_variant(
    record: VariantRecord,
    alts: tuple[str, ...] | list[str],
    genotypes: tuple[Genotype, ...] | list[Genotype],
) -> VariantRecord:
    """Build a new variant from ``record`` with the given alternates and genotypes.

    Args:
        record: Variant supplying every other field.
        alts: Alternate alleles for the new record.
        genotypes: Genotypes for the new record, one per sample.

    Returns:
        A new VariantRecord; ``record`` is left untouched.
    """
    return with_overrides(record, alts=tuple(alts), genotypes=tuple(genotypes))
