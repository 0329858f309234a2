"""Reference sequence dictionaries for contig declarations."""

import logging
from collections.abc import Mapping
from pathlib import Path

import pysam

logger = logging.getLogger(__name__)

SequenceDictionary = dict[str, int]

DICT_SUFFIX = ".dict"


class MissingReferenceDictionaryError(FileNotFoundError):
    """Raised when no usable sequence dictionary can be resolved."""

    pass


def parse_sequence_dictionary(path: Path) -> SequenceDictionary:
    """Parse a Picard-style .dict file (SAM header @SQ lines).

    Args:
        path: Path to the .dict file.

    Returns:
        Ordered mapping of contig name to length.
    """
    contigs: SequenceDictionary = {}
    with open(path) as f:
        for line in f:
            if not line.startswith("@SQ"):
                continue
            fields = dict(
                part.split(":", 1) for part in line.rstrip("\n").split("\t")[1:] if ":" in part
            )
            if "SN" in fields and "LN" in fields:
                contigs[fields["SN"]] = int(fields["LN"])
    return contigs


def _read_fasta_dictionary(path: Path) -> SequenceDictionary:
    try:
        with pysam.FastaFile(str(path)) as fasta:
            return dict(zip(fasta.references, fasta.lengths, strict=True))
    except (OSError, ValueError) as e:
        raise MissingReferenceDictionaryError(
            f"The reference sequence specified ({path.resolve()}) does not have a "
            f"usable index or dictionary: {e}. Run 'samtools faidx' or Picard's "
            "CreateSequenceDictionary to generate one."
        ) from e


def load_sequence_dictionary(
    source: Mapping[str, int] | Path | str | None,
) -> SequenceDictionary:
    """Resolve a reference into a non-empty sequence dictionary.

    A mapping is used as given. A ``.dict`` path is parsed directly; a path
    to a FASTA with a sibling ``.dict`` uses that file; any other path is
    opened with pysam and its FASTA index.

    Raises:
        MissingReferenceDictionaryError: If nothing was supplied, the file is
            missing, or the dictionary has no contigs.
    """
    if source is None:
        raise MissingReferenceDictionaryError(
            "No reference sequence dictionary was supplied; one is required to write VCF"
        )

    if isinstance(source, Mapping):
        dictionary = {str(k): int(v) for k, v in source.items()}
        origin = "mapping"
    else:
        path = Path(source)
        if not path.exists():
            raise MissingReferenceDictionaryError(f"Reference not found: {path}")
        sibling_dict = path.with_suffix(DICT_SUFFIX)
        if path.suffix == DICT_SUFFIX:
            dictionary = parse_sequence_dictionary(path)
        elif sibling_dict.exists():
            dictionary = parse_sequence_dictionary(sibling_dict)
        else:
            dictionary = _read_fasta_dictionary(path)
        origin = str(path)

    if not dictionary:
        raise MissingReferenceDictionaryError(
            f"The reference sequence dictionary from {origin} has no contigs"
        )

    logger.debug("Loaded %d contigs from %s", len(dictionary), origin)
    return dictionary
