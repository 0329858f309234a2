"""Write a pool to VCF, repairing missing header declarations on the way."""

import logging
import os
import tempfile
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .diagnostics import DiagnosticSink
from .header import FIELD_CATEGORIES, VCFHeader
from .pool import VariantPool
from .reference import load_sequence_dictionary
from .writer import UndeclaredFieldError, VCFWriteError, VCFWriter

logger = logging.getLogger(__name__)

WriterFactory = Callable[[Path, VCFHeader], VCFWriter]


class HeaderRepairError(VCFWriteError):
    """Raised when an undeclared-field failure cannot be repaired."""

    pass


class InvalidOutputPathError(ValueError):
    """Raised when the output path cannot be written to."""

    pass


@dataclass
class WriteResult:
    """Outcome of a completed write."""

    path: Path
    records_written: int
    restarts: int = 0
    repaired_fields: list[tuple[str, str]] = field(default_factory=list)


def resolve_output_path(file_name: Path | str, output_directory: Path | str | None = None) -> Path:
    """Build the output path and check it can be created.

    Args:
        file_name: Output file name or path.
        output_directory: Optional directory to place ``file_name`` in.

    Returns:
        The resolved output path.

    Raises:
        InvalidOutputPathError: If the path is a directory or its parent
            directory does not exist.
    """
    if output_directory is not None:
        path = Path(os.path.normpath(output_directory)) / file_name
    else:
        path = Path(file_name)

    if path.is_dir():
        raise InvalidOutputPathError(f"Output path is a directory: {path}")
    if not path.parent.is_dir():
        raise InvalidOutputPathError(f"Output directory does not exist: {path.parent}")
    return path


def _write_pass(pool: VariantPool, path: Path, writer_factory: WriterFactory) -> int:
    """Write the whole pool once to a temporary file, then move it into place.

    Any failure removes the temporary file, so nothing partial is left.
    """
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    os.close(fd)
    tmp_path = Path(tmp_name)
    written = 0
    try:
        with writer_factory(tmp_path, pool.header) as writer:
            for record in pool:
                writer.add(record)
                written += 1
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    return written


def write_pool(
    pool: VariantPool,
    output: Path | str,
    sequence_dictionary: Mapping[str, int] | Path | str | None,
    repair_header: bool = True,
    output_directory: Path | str | None = None,
    writer_factory: WriterFactory = VCFWriter,
    diagnostics: DiagnosticSink | None = None,
) -> WriteResult:
    """
    Write a pool to a VCF file in natural order.

    A pool without a header gets a basic one built from the sequence
    dictionary. When a record uses an INFO or FORMAT key the header lacks
    and ``repair_header`` is set, a placeholder declaration is added and the
    file is rewritten from the start; each pass repairs one key.

    Args:
        pool: Pool to write
        output: Output file name or path
        sequence_dictionary: Mapping, .dict file, or indexed FASTA
        repair_header: Add placeholder declarations for undeclared keys
        output_directory: Directory to place ``output`` in
        writer_factory: Callable building a writer from a path and header
        diagnostics: Sink for repair messages (defaults to the pool's)

    Returns:
        WriteResult for the completed file

    Raises:
        MissingReferenceDictionaryError: No usable dictionary; nothing is written
        InvalidOutputPathError: The output location is unusable
        UndeclaredFieldError: An undeclared key was found and repair is off
        HeaderRepairError: The failure could not be turned into a declaration
    """
    dictionary = load_sequence_dictionary(sequence_dictionary)
    path = resolve_output_path(output, output_directory)
    diagnostics = diagnostics or pool.diagnostics

    if pool.header is None:
        pool.generate_basic_header(dictionary)
    else:
        for contig in pool.contigs:
            if contig not in pool.header.contigs:
                length = dictionary.get(contig)
                if length is None:
                    pool.header.add_contig(contig)
                else:
                    pool.header.add_contig(contig, length=length)
                logger.debug("Declared contig %s missing from the pool header", contig)

    repaired: list[tuple[str, str]] = []
    restarts = 0
    while True:
        for category, key in repaired:
            if not pool.header.has_declaration(category, key):
                pool.header.add_missing_field(category, key)

        try:
            written = _write_pass(pool, path, writer_factory)
        except UndeclaredFieldError as e:
            if not repair_header:
                raise
            _repair_header(pool, e, repaired, diagnostics)
            restarts += 1
            continue

        logger.info(
            "Wrote %d records from pool %s to %s (%d header repairs)",
            written,
            pool.pool_id,
            path,
            len(repaired),
        )
        return WriteResult(
            path=path, records_written=written, restarts=restarts, repaired_fields=repaired
        )


def _repair_header(
    pool: VariantPool,
    error: UndeclaredFieldError,
    repaired: list[tuple[str, str]],
    diagnostics: DiagnosticSink,
) -> None:
    if error.category not in FIELD_CATEGORIES:
        raise HeaderRepairError(
            f"Could not determine missing header line type. Original message: {error}"
        ) from error

    entry = (error.category, error.key)
    if entry in repaired or pool.header.has_declaration(error.category, error.key):
        raise HeaderRepairError(
            f"Header already declares {error.category} key '{error.key}' but the "
            f"writer still rejected it. Original message: {error}"
        ) from error

    pool.header.add_missing_field(error.category, error.key)
    repaired.append(entry)

    message = (
        f"Variant pool ({pool.pool_id}) missing header line with key '{error.key}' "
        f"and type '{error.category}'. Creating and adding dummy line to header."
    )
    diagnostics.warning(message)
    diagnostics.notify(message)
