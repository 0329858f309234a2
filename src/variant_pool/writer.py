"""Strict VCF writer on top of pysam."""

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pysam

from .header import FORMAT, INFO, VCFHeader
from .models import Genotype, VariantRecord

MISSING = "."
FILTER = "FILTER"


class VCFWriteError(Exception):
    """Raised when a record cannot be written."""

    pass


class UndeclaredFieldError(VCFWriteError):
    """A record uses an INFO, FORMAT or FILTER key that the header does not declare."""

    def __init__(self, key: str, category: str, chrom: str, pos: int):
        self.key = key
        self.category = category
        self.chrom = chrom
        self.pos = pos
        super().__init__(
            f"Key {key} found in VariantContext field {category} at {chrom}:{pos} "
            "but this key isn't defined in the VCFHeader. "
            "We require all VCFs to have complete VCF headers by default."
        )


def genotype_format_keys(genotypes: Iterable[Genotype]) -> list[str]:
    """FORMAT keys for a record: GT first when any sample has calls, then sorted."""
    has_gt = False
    keys: set[str] = set()
    for genotype in genotypes:
        if genotype.alleles:
            has_gt = True
        if genotype.allelic_depths is not None:
            keys.add("AD")
        if genotype.depth is not None:
            keys.add("DP")
        if genotype.filters is not None:
            keys.add("FT")
        if genotype.quality is not None:
            keys.add("GQ")
        if genotype.likelihoods is not None:
            keys.add("PL")
        keys.update(genotype.attributes)
    ordered = sorted(keys)
    return ["GT", *ordered] if has_gt else ordered


def _format_ints(values: tuple[int | None, ...] | None) -> str:
    if values is None:
        return MISSING
    return ",".join(MISSING if v is None else str(v) for v in values)


def format_genotype_value(genotype: Genotype, key: str) -> str:
    """Text form of one non-GT per-sample field."""
    if key == "DP":
        return MISSING if genotype.depth is None else str(genotype.depth)
    if key == "GQ":
        return MISSING if genotype.quality is None else str(genotype.quality)
    if key == "AD":
        return _format_ints(genotype.allelic_depths)
    if key == "PL":
        return _format_ints(genotype.likelihoods)
    if key == "FT":
        return genotype.filters or MISSING
    return genotype.attributes.get(key, MISSING)


def typed_value(value: Any, value_type: str) -> Any:
    """Convert a value kept as VCF text into what pysam expects for ``value_type``.

    Returns None when there is nothing to write: a missing value, or a bare
    key under a non-Flag declaration.

    Raises:
        ValueError: If the text is not a valid Integer or Float.
    """
    if value_type == "Flag":
        return bool(value)
    if value is True or value is None or value is False:
        return None
    if isinstance(value, (list, tuple)):
        value = ",".join(MISSING if v is None else str(v) for v in value)
    text = str(value)
    if value_type in ("Integer", "Float"):
        cast = int if value_type == "Integer" else float
        values = tuple(None if v in ("", MISSING) else cast(v) for v in text.split(","))
        if all(v is None for v in values):
            return None
        return values[0] if len(values) == 1 else values
    if text == MISSING:
        return None
    return text


class VCFWriter:
    """Writes records to a VCF file, refusing keys the header does not declare.

    The header is written when the writer is opened.
    """

    def __init__(self, path: Path | str, header: VCFHeader):
        self.path = Path(path)
        self.header = header
        self._vcf = pysam.VariantFile(str(self.path), "w", header=header.to_pysam())
        self.records_written = 0

    def _declaration(self, category: str, key: str, record: VariantRecord):
        metadata = self._vcf.header.info if category == INFO else self._vcf.header.formats
        try:
            return metadata[key]
        except KeyError as e:
            raise UndeclaredFieldError(key, category, record.chrom, record.pos) from e

    def _convert(self, value: Any, declaration, category: str, record: VariantRecord) -> Any:
        try:
            return typed_value(value, declaration.type)
        except ValueError as e:
            raise VCFWriteError(
                f"Value {value!r} for {category} key {declaration.name} at "
                f"{record.chrom}:{record.pos} is not a valid {declaration.type}"
            ) from e

    def add(self, record: VariantRecord) -> None:
        """Validate and write one record.

        Raises:
            UndeclaredFieldError: For the first INFO, FORMAT or FILTER key
                missing from the header. INFO keys are checked first.
            VCFWriteError: If the genotype count differs from the header's
                sample count, or a value does not fit its declaration.
        """
        try:
            out = self._vcf.new_record(
                contig=record.chrom,
                start=record.pos - 1,
                stop=record.pos - 1 + max(len(record.ref), 1),
                alleles=record.alleles,
                id=record.id,
                qual=record.qual,
            )
        except ValueError as e:
            raise VCFWriteError(f"Invalid record at {record.chrom}:{record.pos}: {e}") from e

        for key, value in record.info.items():
            declaration = self._declaration(INFO, key, record)
            converted = self._convert(value, declaration, INFO, record)
            if converted is not None and converted is not False:
                out.info[key] = converted

        if record.genotypes or self.header.samples:
            if len(record.genotypes) != len(self.header.samples):
                raise VCFWriteError(
                    f"Record at {record.chrom}:{record.pos} has {len(record.genotypes)} "
                    f"genotypes but the header lists {len(self.header.samples)} samples"
                )
            self._add_samples(out, record)

        for name in record.filters:
            try:
                out.filter.add(name)
            except KeyError as e:
                raise UndeclaredFieldError(name, FILTER, record.chrom, record.pos) from e

        try:
            self._vcf.write(out)
        except (OSError, ValueError) as e:
            raise VCFWriteError(
                f"Could not write record at {record.chrom}:{record.pos}: {e}"
            ) from e
        self.records_written += 1

    def _add_samples(self, out, record: VariantRecord) -> None:
        for key in genotype_format_keys(record.genotypes):
            declaration = self._declaration(FORMAT, key, record)
            for i, genotype in enumerate(record.genotypes):
                sample = out.samples[i]
                if key == "GT":
                    sample["GT"] = genotype.alleles or (None,)
                    sample.phased = genotype.phased
                    continue
                text = format_genotype_value(genotype, key)
                converted = self._convert(text, declaration, FORMAT, record)
                if converted is not None:
                    sample[key] = converted

    def close(self) -> None:
        self._vcf.close()

    def __enter__(self) -> "VCFWriter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
