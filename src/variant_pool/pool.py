"""In-memory pool of variant records with positional lookup."""

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from pathlib import Path
from uuid import uuid4

from .diagnostics import DiagnosticSink, default_diagnostics
from .header import VCFHeader, generate_basic_header
from .loader import PoolConfig, StreamingLoader
from .models import (
    RecordKey,
    VariantRecord,
    build_variant,
    rename_genotype_for_sample,
    with_overrides,
)
from .normalizer import AltType, classify_alt, indel_length, is_indel, normalize_chromosome
from .ordering import ContigRegistry, NaturalOrderTraversal
from .samples import SamplePool
from .vcf_parser import IterableRecordSource, RecordSource, VCFRecordSource

logger = logging.getLogger(__name__)

Locus = tuple[str, int]


class VariantPoolError(Exception):
    """Base class for variant pool errors."""

    pass


class DuplicateRecordKeyError(VariantPoolError):
    """A second record arrived with an existing chr:pos:ref key."""

    def __init__(self, key: RecordKey):
        self.key = key
        super().__init__(
            "Found separate variant records with the same chr, pos, and ref. "
            f"Ignoring subsequent variants at: {key.chrom}:{key.pos}"
        )


class KeyMismatchError(VariantPoolError, ValueError):
    """An update tried to store a record under a different key."""

    pass


def generate_pool_id() -> str:
    return f"pool_{uuid4().hex[:8]}"


class VariantPool:
    """A pool of variants keyed by chr:pos:ref, e.g. the contents of one VCF.

    Records live in the primary index. The position index maps each
    (chr, pos) locus to the keys stored there and is always resolved through
    the primary index, so replacing a record only touches one map.
    """

    def __init__(
        self,
        add_chr: bool = True,
        pool_id: str | None = None,
        diagnostics: DiagnosticSink | None = None,
        classifier: Callable[[str, str], AltType] = classify_alt,
    ):
        self.add_chr = add_chr
        self.pool_id = pool_id or generate_pool_id()
        self.diagnostics = diagnostics or default_diagnostics
        self.classifier = classifier
        self.samples = SamplePool(self.pool_id)
        self.header: VCFHeader | None = None
        self.file: Path | None = None

        self.potential_matching_indel_alleles = 0
        self.potential_matching_indel_records = 0

        self._records: dict[RecordKey, VariantRecord] = {}
        self._by_locus: dict[Locus, dict[RecordKey, None]] = {}
        self._contigs = ContigRegistry()
        self._has_genotype_data: bool | None = None
        self._samples_bound = False
        self._loader = StreamingLoader(self)

    @classmethod
    def from_vcf(
        cls,
        vcf_path: Path | str,
        config: PoolConfig | None = None,
        diagnostics: DiagnosticSink | None = None,
    ) -> "VariantPool":
        """Read a whole VCF into a new pool."""
        config = config or PoolConfig()
        pool = cls(add_chr=config.add_chr, pool_id=config.pool_id, diagnostics=diagnostics)
        pool.file = Path(vcf_path)
        source = VCFRecordSource(vcf_path, require_index=config.require_index)
        pool.attach_source(source)
        count = pool.load()
        logger.info("Read %d records into pool %s from %s", count, pool.pool_id, vcf_path)
        return pool

    @classmethod
    def from_records(
        cls,
        records: Iterable[VariantRecord],
        config: PoolConfig | None = None,
        header: VCFHeader | None = None,
        diagnostics: DiagnosticSink | None = None,
    ) -> "VariantPool":
        """Build a pool from records already in memory."""
        config = config or PoolConfig()
        pool = cls(add_chr=config.add_chr, pool_id=config.pool_id, diagnostics=diagnostics)
        pool.attach_source(IterableRecordSource(records, header=header))
        pool.load()
        return pool

    def attach_source(self, source: RecordSource) -> StreamingLoader:
        """Start streaming from ``source``; pulls read it before replaying the pool."""
        self._loader = StreamingLoader(self, source)
        return self._loader

    def load(self) -> int:
        return self._loader.load_all()

    def next_variant(self) -> VariantRecord | None:
        """Read the next record, from the source while streaming, else from the pool."""
        return self._loader.next_variant()

    @property
    def loader(self) -> StreamingLoader:
        return self._loader

    def normalize_chromosome(self, chrom: str) -> str:
        return normalize_chromosome(chrom, add_chr=self.add_chr)

    def normalize_record(self, record: VariantRecord) -> VariantRecord:
        """Apply the pool's chr-prefix policy, building a new record if needed."""
        chrom = self.normalize_chromosome(record.chrom)
        if chrom == record.chrom:
            return record
        return with_overrides(record, chrom=chrom)

    def bind_samples(self, sample_names: Iterable[str]) -> None:
        self.samples = SamplePool(self.pool_id, sample_names)
        self._samples_bound = True

    def insert(self, record: VariantRecord, allow_duplicate_key: bool = False) -> bool:
        """Add a record to the pool.

        A record whose chr:pos:ref key is already present is dropped with an
        error on the diagnostic channel unless ``allow_duplicate_key`` is set,
        in which case it replaces the stored record.

        Once samples are bound, a record whose genotype count differs from
        the sample count is still stored but reported as a warning.

        Returns:
            True if the record was stored.
        """
        record = self.normalize_record(record)
        self._contigs.add(record.chrom)
        key = record.key

        if key in self._records and not allow_duplicate_key:
            self.diagnostics.error(str(DuplicateRecordKeyError(key)))
            return False

        if self._samples_bound and len(record.genotypes) != len(self.samples):
            self.diagnostics.warning(
                f"Record {key} has {len(record.genotypes)} genotypes but pool "
                f"{self.pool_id} has {len(self.samples)} samples"
            )

        self._records[key] = record
        self._by_locus.setdefault(record.locus, {})[key] = None
        self._has_genotype_data = None
        return True

    def update(self, key: RecordKey | str, new_record: VariantRecord) -> None:
        """Replace the record stored under ``key``.

        Raises:
            KeyMismatchError: If ``new_record`` does not have the same key.
        """
        if isinstance(key, str):
            key = RecordKey.parse(key)
        new_record = self.normalize_record(new_record)
        if new_record.key != key:
            raise KeyMismatchError(
                f"Cannot store record {new_record.key} under key {key}"
            )
        self._contigs.add(new_record.chrom)
        self._records[key] = new_record
        self._by_locus.setdefault(new_record.locus, {})[key] = None
        self._has_genotype_data = None

    def get_variant(self, chrom: str, pos: int, ref: str) -> VariantRecord | None:
        return self._records.get(RecordKey(self.normalize_chromosome(chrom), pos, ref))

    def get_variant_by_key(self, key: RecordKey | str) -> VariantRecord | None:
        """Get variant by key ('chr:pos:ref' or RecordKey); malformed keys are absent."""
        if isinstance(key, str):
            try:
                key = RecordKey.parse(key)
            except ValueError:
                return None
        return self._records.get(key)

    def variants_at(self, chrom: str, pos: int) -> list[VariantRecord]:
        keys = self._by_locus.get((self.normalize_chromosome(chrom), pos), {})
        return [self._records[k] for k in keys]

    @property
    def num_records(self) -> int:
        return len(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        if isinstance(key, str):
            return self.get_variant_by_key(key) is not None
        return key in self._records

    @property
    def contigs(self) -> ContigRegistry:
        return self._contigs

    def keys(self) -> NaturalOrderTraversal:
        """Keys in natural order, snapshotted when the first key is pulled."""
        return NaturalOrderTraversal(lambda: list(self._records))

    def __iter__(self) -> Iterator[VariantRecord]:
        for key in self.keys():
            yield self._records[key]

    def has_genotype_data(self) -> bool:
        """Whether the pool's records carry genotypes, judged by the first record."""
        if self._has_genotype_data is None:
            first = next(iter(self), None)
            if first is None:
                return False
            self._has_genotype_data = first.has_genotypes
        return self._has_genotype_data

    def change_sample_names(self, new_sample_names: Iterable[str]) -> None:
        """Rename the samples in place, keeping every genotype in its slot.

        The names must be in the same order as the existing samples.

        Raises:
            ValueError: If the number of names does not match the samples.
        """
        names = list(new_sample_names)
        renamed = self.samples.rename(names)

        for key, record in self._records.items():
            if len(record.genotypes) != len(names):
                raise ValueError(
                    f"Record {key} has {len(record.genotypes)} genotypes but "
                    f"{len(names)} sample names were given"
                )

        self.samples = renamed
        for key in self.keys():
            record = self._records[key]
            genotypes = [
                rename_genotype_for_sample(names[i], genotype)
                for i, genotype in enumerate(record.genotypes)
            ]
            self.update(key, build_variant(record, record.alts, genotypes))

        if self.header is not None:
            self.header.samples = names

    def generate_basic_header(self, sequence_dictionary: Mapping[str, int]) -> VCFHeader:
        """Create and store a minimal header for this pool.

        Contigs in the pool that the dictionary does not list are declared
        after the dictionary's contigs, without a length.
        """
        header = generate_basic_header(sequence_dictionary, self.samples)
        for contig in self._contigs:
            if contig not in header.contigs:
                header.add_contig(contig)
        self.header = header
        return header

    def count_overlapping_indel_alleles(self, query: VariantRecord) -> int:
        """Count how many of ``query``'s indel alleles have a match in this pool.

        A match is an allele of the same type (insertion or deletion) and
        length within +/- that length of the query position. Non-indel
        alternates are ignored.
        """
        count = 0
        chrom = self.normalize_chromosome(query.chrom)
        for alt in query.alts:
            alt_type = self.classifier(query.ref, alt)
            if not is_indel(alt_type):
                continue
            length = indel_length(query.ref, alt)
            if self.find_overlapping_indel(chrom, query.pos, length, alt_type) is not None:
                count += 1
        return count

    def find_overlapping_indel(
        self, chrom: str, pos: int, length: int, alt_type: AltType
    ) -> VariantRecord | None:
        """Return the first record with an allele of ``alt_type`` and ``length``
        starting within ``pos - length`` .. ``pos + length``, or None.
        """
        chrom = self.normalize_chromosome(chrom)
        for p in range(pos - length, pos + length + 1):
            keys = self._by_locus.get((chrom, p))
            if not keys:
                continue
            for key in keys:
                record = self._records[key]
                for alt in record.alts:
                    if (
                        self.classifier(record.ref, alt) == alt_type
                        and indel_length(record.ref, alt) == length
                    ):
                        return record
        return None

    def __repr__(self) -> str:
        return (
            f"VariantPool(pool_id={self.pool_id!r}, records={self.num_records}, "
            f"samples={len(self.samples)})"
        )
