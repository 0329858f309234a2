"""variant-pool: compare, filter and re-emit pools of VCF variants."""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .config import ConfigValidationError, load_config, load_log_level
from .diagnostics import LoggingDiagnostics
from .loader import LoaderState, PoolConfig
from .pool import VariantPool
from .serializer import InvalidOutputPathError, write_pool
from .vcf_parser import VCFRecordSource
from .writer import VCFWriteError

app = typer.Typer(
    name="variant-pool", help="Compare, filter and rewrite pools of VCF variants"
)
console = Console()
err_console = Console(stderr=True)

PROGRESS_EVERY = 10_000


def version_callback(value: bool) -> None:
    if value:
        print(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version", callback=version_callback, is_eager=True, help="Show version and exit"
        ),
    ] = None,
) -> None:
    pass


def setup_logging(verbose: bool, quiet: bool, default_level: str = "INFO") -> None:
    """Configure logging based on verbosity flags."""
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, default_level, logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger("variant_pool").setLevel(level)


def _build_config(
    config_file: Path | None,
    add_chr: bool | None,
    require_index: bool | None,
    repair_header: bool | None,
    pool_id: str | None = None,
) -> PoolConfig:
    overrides = {
        "add_chr": add_chr,
        "require_index": require_index,
        "repair_header": repair_header,
        "pool_id": pool_id,
    }
    if config_file:
        return load_config(config_file, overrides)
    return PoolConfig(**{k: v for k, v in overrides.items() if v is not None})


def _read_pool(vcf_path: Path, config: PoolConfig, quiet: bool) -> VariantPool:
    """Stream a VCF into a pool, showing a spinner unless quiet."""
    diagnostics = LoggingDiagnostics(console=err_console)
    pool = VariantPool(add_chr=config.add_chr, pool_id=config.pool_id, diagnostics=diagnostics)
    pool.file = vcf_path
    loader = pool.attach_source(VCFRecordSource(vcf_path, require_index=config.require_index))

    if quiet:
        loader.load_all()
        return pool

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=err_console,
        transient=True,
    ) as progress_bar:
        task = progress_bar.add_task(f"Reading {vcf_path.name}...", total=None)
        while loader.state is LoaderState.STREAMING:
            loader.next_variant()
            if loader.records_pulled % PROGRESS_EVERY == 0:
                progress_bar.update(
                    task, description=f"Parsed {loader.records_pulled:,} variants"
                )
    return pool


def _fail(message: str) -> None:
    console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(1)


@app.command()
def summary(
    vcf_path: Path = typer.Argument(..., help="Path to VCF file (.vcf, .vcf.gz, .bcf)"),
    add_chr: bool = typer.Option(
        True, "--add-chr/--no-add-chr", help="Add (or strip) the 'chr' prefix on contigs"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-error output"),
) -> None:
    """Show record, contig and sample counts for a VCF."""
    setup_logging(verbose, quiet)

    if not vcf_path.exists():
        _fail(f"VCF file not found: {vcf_path}")

    try:
        pool = _read_pool(vcf_path, PoolConfig(add_chr=add_chr), quiet=True)
    except OSError as e:
        _fail(str(e))

    table = Table(title=f"Variant pool: {vcf_path.name}")
    table.add_column("Property", style="cyan")
    table.add_column("Value")
    table.add_row("Pool ID", pool.pool_id)
    table.add_row("Records", f"{pool.num_records:,}")
    table.add_row("Contigs", ", ".join(pool.contigs) or "-")
    table.add_row("Samples", ", ".join(pool.samples) or "-")
    table.add_row("Genotype data", "yes" if pool.has_genotype_data() else "no")
    console.print(table)


@app.command()
def rewrite(
    vcf_path: Path = typer.Argument(..., help="Path to input VCF file"),
    output: Path = typer.Argument(..., help="Output VCF file name"),
    reference: Annotated[
        Path | None,
        typer.Option(
            "--reference", "-R", help="Reference FASTA (indexed) or .dict sequence dictionary"
        ),
    ] = None,
    output_dir: Annotated[
        Path | None, typer.Option("--output-dir", "-o", help="Directory for the output file")
    ] = None,
    add_chr: Annotated[
        bool | None,
        typer.Option("--add-chr/--no-add-chr", help="Add (or strip) the 'chr' prefix on contigs"),
    ] = None,
    repair_header: Annotated[
        bool | None,
        typer.Option(
            "--repair-header/--no-repair-header",
            help="Declare INFO/FORMAT keys missing from the header",
        ),
    ] = None,
    require_index: Annotated[
        bool | None,
        typer.Option("--require-index/--no-require-index", help="Require a .tbi/.csi index"),
    ] = None,
    rename_samples: Annotated[
        str | None,
        typer.Option("--rename-samples", help="Comma-separated new sample names, in file order"),
    ] = None,
    pool_id: Annotated[str | None, typer.Option("--pool-id", help="Identifier for the pool")] = None,
    config_file: Annotated[
        Path | None, typer.Option("--config", "-c", help="TOML configuration file")
    ] = None,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-error output"),
) -> None:
    """Read a VCF into a pool and write it back out in natural order.

    Duplicate chr:pos:ref records are dropped with an error message. If the
    input has no usable header one is built from the reference.
    """
    try:
        log_level = load_log_level(config_file) if config_file else "INFO"
        setup_logging(verbose, quiet, log_level)
        config = _build_config(config_file, add_chr, require_index, repair_header, pool_id)
    except (ConfigValidationError, FileNotFoundError) as e:
        _fail(str(e))

    if not vcf_path.exists():
        _fail(f"VCF file not found: {vcf_path}")

    if reference is None:
        _fail("A reference (--reference) is required to write VCF")

    try:
        pool = _read_pool(vcf_path, config, quiet)

        if rename_samples:
            pool.change_sample_names([s.strip() for s in rename_samples.split(",")])

        result = write_pool(
            pool,
            output,
            reference,
            repair_header=config.repair_header,
            output_directory=output_dir,
        )
    except (FileNotFoundError, InvalidOutputPathError, VCFWriteError, ValueError) as e:
        _fail(str(e))

    if not quiet:
        console.print(f"[green]✓[/green] Wrote {result.records_written:,} variants to {result.path}")
        if result.repaired_fields:
            repaired = ", ".join(f"{cat}/{key}" for cat, key in result.repaired_fields)
            console.print(f"  Header repaired: {repaired}")


@app.command("indel-overlap")
def indel_overlap(
    query_vcf: Path = typer.Argument(..., help="VCF whose indels are looked up"),
    pool_vcf: Path = typer.Argument(..., help="VCF providing the pool to search"),
    add_chr: bool = typer.Option(
        True, "--add-chr/--no-add-chr", help="Add (or strip) the 'chr' prefix on contigs"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-error output"),
) -> None:
    """Count query indel alleles with a same-type, same-length indel nearby in the pool."""
    setup_logging(verbose, quiet)

    for path in (query_vcf, pool_vcf):
        if not path.exists():
            _fail(f"VCF file not found: {path}")

    try:
        config = PoolConfig(add_chr=add_chr)
        pool = _read_pool(pool_vcf, config, quiet)
        query = _read_pool(query_vcf, config, quiet)
    except OSError as e:
        _fail(str(e))

    alleles = 0
    records = 0
    for record in query:
        matched = pool.count_overlapping_indel_alleles(record)
        alleles += matched
        if matched:
            records += 1

    pool.potential_matching_indel_alleles = alleles
    pool.potential_matching_indel_records = records

    console.print(f"Matching indel alleles: {alleles:,}")
    console.print(f"Matching indel records: {records:,}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
