"""Pytest configuration and fixtures for variant-pool tests."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))

from fixtures.vcf_generator import (  # noqa: E402
    SyntheticVariant,
    VCFGenerator,
    make_trio_vcf_file,
    make_undeclared_info_vcf_file,
    make_unprefixed_vcf_file,
)

from variant_pool.models import Genotype, VariantRecord  # noqa: E402

REFERENCE_DICTIONARY = {
    "chr1": 248956422,
    "chr2": 242193529,
    "chr3": 198295559,
    "chr10": 133797422,
}


class RecordingDiagnostics:
    """Diagnostic sink that keeps messages for assertions."""

    def __init__(self):
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.notices: list[str] = []

    def error(self, message: str) -> None:
        self.errors.append(message)

    def warning(self, message: str) -> None:
        self.warnings.append(message)

    def notify(self, message: str) -> None:
        self.notices.append(message)


def make_record(
    chrom: str = "chr1",
    pos: int = 100,
    ref: str = "A",
    alts: tuple[str, ...] = ("G",),
    **kwargs,
) -> VariantRecord:
    """Build a VariantRecord with sensible defaults."""
    return VariantRecord(chrom=chrom, pos=pos, ref=ref, alts=alts, **kwargs)


def make_genotypes(*samples: str) -> tuple[Genotype, ...]:
    return tuple(
        Genotype(
            sample=sample,
            alleles=(0, 1),
            phased=i % 2 == 1,
            depth=20 + i,
            quality=50 + i,
            allelic_depths=(10, 10 + i),
            attributes={"MQ": str(60 - i)},
        )
        for i, sample in enumerate(samples)
    )


@pytest.fixture
def diagnostics() -> RecordingDiagnostics:
    return RecordingDiagnostics()


@pytest.fixture
def reference_dictionary() -> dict[str, int]:
    return dict(REFERENCE_DICTIONARY)


@pytest.fixture
def vcf_generator():
    """Provide VCFGenerator class for tests."""
    return VCFGenerator


@pytest.fixture
def synthetic_variant_factory():
    """Factory for creating SyntheticVariant instances."""

    def _factory(**kwargs):
        defaults = {
            "chrom": "chr1",
            "pos": 100,
            "ref": "A",
            "alt": ["G"],
        }
        defaults.update(kwargs)
        return SyntheticVariant(**defaults)

    return _factory


@pytest.fixture
def trio_vcf_file(tmp_path):
    """Generate a trio VCF file with genotypes."""
    return make_trio_vcf_file(directory=tmp_path)


@pytest.fixture
def unprefixed_vcf_file(tmp_path):
    """Generate a sites-only VCF with bare contig names and a duplicate key."""
    return make_unprefixed_vcf_file(directory=tmp_path)


@pytest.fixture
def undeclared_info_vcf_file(tmp_path):
    """Generate a VCF using undeclared INFO keys."""
    return make_undeclared_info_vcf_file(directory=tmp_path)


@pytest.fixture
def reference_dict_file(tmp_path) -> Path:
    """Picard-style sequence dictionary matching REFERENCE_DICTIONARY."""
    path = tmp_path / "ref.dict"
    lines = ["@HD\tVN:1.6"]
    lines += [f"@SQ\tSN:{name}\tLN:{length}\tUR:file:ref.fa" for name, length in REFERENCE_DICTIONARY.items()]
    path.write_text("\n".join(lines) + "\n")
    return path
