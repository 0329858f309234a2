"""VCF parsing functionality.

cyvcf2 provides the site-level fields; INFO and per-sample columns are read
from the record text so values keep the exact form they had in the file.
"""

import logging
import re
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any, Protocol

from cyvcf2 import VCF

from .header import VCFHeader
from .models import Genotype, VariantRecord

logger = logging.getLogger(__name__)

INDEX_SUFFIXES = (".tbi", ".csi")
MISSING = "."

_GT_SPLIT = re.compile(r"[/|]")


class MissingIndexError(FileNotFoundError):
    """Raised when an index is required but no .tbi/.csi file exists."""

    pass


class RecordSource(Protocol):
    """Pull-based supplier of variant records."""

    samples: list[str]
    header: VCFHeader | None

    def __iter__(self) -> Iterator[VariantRecord]: ...

    def close(self) -> None: ...


class IterableRecordSource:
    """Record source over records that are already in memory."""

    def __init__(
        self,
        records: Iterable[VariantRecord],
        samples: list[str] | None = None,
        header: VCFHeader | None = None,
    ):
        self._records = records
        self.header = header
        if samples is not None:
            self.samples = list(samples)
        elif header is not None:
            self.samples = list(header.samples)
        else:
            self.samples = []

    def __iter__(self) -> Iterator[VariantRecord]:
        return iter(self._records)

    def close(self) -> None:
        pass


def find_index(vcf_path: Path) -> Path | None:
    """Return the companion tabix/CSI index for ``vcf_path`` if present."""
    for suffix in INDEX_SUFFIXES:
        candidate = vcf_path.with_name(vcf_path.name + suffix)
        if candidate.exists():
            return candidate
    return None


class VCFRecordSource:
    """Reads VariantRecords from a VCF/BCF file with cyvcf2."""

    def __init__(self, vcf_path: Path | str, require_index: bool = False):
        self.path = Path(vcf_path)
        if not self.path.exists():
            raise FileNotFoundError(f"VCF file not found: {self.path}")

        self.index_path = find_index(self.path)
        if require_index and self.index_path is None:
            raise MissingIndexError(
                f"No index found for {self.path}. Expected one of: "
                + ", ".join(self.path.name + s for s in INDEX_SUFFIXES)
            )

        self._vcf = VCF(str(self.path))
        self.samples: list[str] = list(self._vcf.samples)
        self.header: VCFHeader | None = VCFHeader.parse(self._vcf.raw_header)
        self._parser = VariantParser()
        self._closed = False

    def __iter__(self) -> Iterator[VariantRecord]:
        source = str(self.path)
        for variant in self._vcf:
            yield self._parser.parse_variant(variant, self.samples, source=source)

    def close(self) -> None:
        if not self._closed:
            self._vcf.close()
            self._closed = True

    def __enter__(self) -> "VCFRecordSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class VariantParser:
    """Parser for individual VCF variant records."""

    def parse_variant(
        self, variant, samples: list[str], source: str | None = None
    ) -> VariantRecord:
        """Parse a cyvcf2 variant into a VariantRecord."""
        columns = str(variant).rstrip("\r\n").split("\t")

        filter_text = columns[6] if len(columns) > 6 else MISSING
        info_text = columns[7] if len(columns) > 7 else MISSING

        genotypes: tuple[Genotype, ...] = ()
        if len(columns) > 9:
            genotypes = self.parse_samples(columns[8], columns[9:], samples)

        return VariantRecord(
            chrom=variant.CHROM,
            pos=variant.POS,
            end=variant.end,
            id=variant.ID,
            ref=variant.REF,
            alts=tuple(variant.ALT),
            qual=variant.QUAL,
            filters=parse_filters(filter_text),
            info=parse_info(info_text),
            genotypes=genotypes,
            source=source,
        )

    def parse_samples(
        self, format_text: str, sample_columns: list[str], samples: list[str]
    ) -> tuple[Genotype, ...]:
        """Parse the FORMAT column and per-sample columns into Genotypes."""
        keys = format_text.split(":")
        genotypes = []
        for sample, column in zip(samples, sample_columns, strict=False):
            values = column.split(":")
            values += [MISSING] * (len(keys) - len(values))
            genotypes.append(self._parse_genotype(sample, dict(zip(keys, values, strict=False))))
        return tuple(genotypes)

    def _parse_genotype(self, sample: str, fields: dict[str, str]) -> Genotype:
        gt = fields.pop("GT", None)
        alleles: tuple[int | None, ...] = ()
        phased = False
        if gt is not None:
            phased = "|" in gt
            alleles = tuple(_int_or_none(a) for a in _GT_SPLIT.split(gt))

        depth = _int_or_none(fields.pop("DP", MISSING))
        quality = _int_or_none(fields.pop("GQ", MISSING))
        allelic_depths = _int_tuple(fields.pop("AD", MISSING))
        likelihoods = _int_tuple(fields.pop("PL", MISSING))
        ft = fields.pop("FT", MISSING)

        return Genotype(
            sample=sample,
            alleles=alleles,
            phased=phased,
            depth=depth,
            quality=quality,
            allelic_depths=allelic_depths,
            likelihoods=likelihoods,
            filters=None if ft == MISSING else ft,
            attributes={k: v for k, v in fields.items() if v != MISSING},
        )


def parse_filters(text: str) -> tuple[str, ...]:
    if not text or text == MISSING:
        return ()
    return tuple(text.split(";"))


def parse_info(text: str) -> dict[str, Any]:
    """Parse an INFO column into a dict; flags map to True."""
    info: dict[str, Any] = {}
    if not text or text == MISSING:
        return info
    for entry in text.split(";"):
        if not entry:
            continue
        if "=" in entry:
            key, value = entry.split("=", 1)
            info[key] = value
        else:
            info[entry] = True
    return info


def _int_or_none(value: str) -> int | None:
    if value in ("", MISSING):
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _int_tuple(value: str) -> tuple[int | None, ...] | None:
    if value in ("", MISSING):
        return None
    return tuple(_int_or_none(v) for v in value.split(","))
