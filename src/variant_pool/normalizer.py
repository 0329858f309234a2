"""Allele classification and chromosome name normalization."""

from enum import Enum

CHR_PREFIX = "chr"


class AltType(str, Enum):
    """Structural class of a REF/ALT allele pair."""

    SNV = "snv"
    MNV = "mnv"
    INSERTION = "insertion"
    DELETION = "deletion"
    SYMBOLIC = "symbolic"
    NO_VARIATION = "no_variation"


INDEL_TYPES = frozenset({AltType.INSERTION, AltType.DELETION})


def classify_alt(ref: str, alt: str) -> AltType:
    """
    Classify an alternate allele against its reference allele.

    Args:
        ref: Reference allele
        alt: Alternative allele

    Returns:
        The AltType of the pair
    """
    if (alt.startswith("<") and alt.endswith(">")) or "[" in alt or "]" in alt:
        return AltType.SYMBOLIC

    if alt in ("*", ".") or alt.upper() == ref.upper():
        return AltType.NO_VARIATION

    if len(ref) == len(alt):
        return AltType.SNV if len(ref) == 1 else AltType.MNV

    if len(alt) < len(ref):
        return AltType.DELETION

    return AltType.INSERTION


def is_indel(alt_type: AltType) -> bool:
    return alt_type in INDEL_TYPES


def indel_length(ref: str, alt: str) -> int:
    """Length used for indel matching: the longer of the two alleles."""
    return max(len(ref), len(alt))


def normalize_chromosome(chrom: str, add_chr: bool = True) -> str:
    """Normalize chromosome string for consistent matching.

    The prefix check is case-insensitive, so ``Chr1`` is stripped to ``1``.

    Args:
        chrom: Chromosome string (may or may not have 'chr' prefix)
        add_chr: If True, ensures 'chr' prefix is present; if False, removes it

    Returns:
        Normalized chromosome string
    """
    has_prefix = chrom.lower().startswith(CHR_PREFIX)
    if add_chr:
        if has_prefix:
            return chrom
        return f"{CHR_PREFIX}{chrom}"
    if has_prefix:
        return chrom[len(CHR_PREFIX):]
    return chrom
