"""Tests for the two-state streaming loader."""

from conftest import make_genotypes, make_record

from variant_pool.header import VCFHeader
from variant_pool.loader import LoaderState, PoolConfig, StreamingLoader
from variant_pool.pool import VariantPool
from variant_pool.vcf_parser import IterableRecordSource


class ClosingSource(IterableRecordSource):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.closed = 0

    def close(self) -> None:
        self.closed += 1


def _records():
    return [
        make_record(chrom="10", pos=5),
        make_record(chrom="2", pos=100),
        make_record(chrom="2", pos=5),
    ]


class TestStreaming:
    def test_pulls_return_source_order_then_none(self, diagnostics):
        pool = VariantPool(diagnostics=diagnostics)
        loader = pool.attach_source(IterableRecordSource(_records()))

        assert loader.state is LoaderState.STREAMING
        pulled = [loader.next_variant() for _ in range(3)]
        assert [(r.chrom, r.pos) for r in pulled] == [("chr10", 5), ("chr2", 100), ("chr2", 5)]
        assert loader.state is LoaderState.STREAMING

        assert loader.next_variant() is None
        assert loader.state is LoaderState.REPLAY

    def test_replay_walks_natural_order_and_restarts(self, diagnostics):
        pool = VariantPool(diagnostics=diagnostics)
        loader = pool.attach_source(IterableRecordSource(_records()))
        loader.load_all()

        first_pass = list(loader)
        second_pass = list(loader)

        expected = ["chr2:5:A", "chr2:100:A", "chr10:5:A"]
        assert [str(r.key) for r in first_pass] == expected
        assert [str(r.key) for r in second_pass] == expected

    def test_source_closed_once_on_exhaustion(self, diagnostics):
        pool = VariantPool(diagnostics=diagnostics)
        source = ClosingSource(_records())
        loader = pool.attach_source(source)

        loader.load_all()
        list(loader)

        assert source.closed == 1

    def test_duplicates_counted_as_pulled_but_not_stored(self, diagnostics):
        pool = VariantPool(diagnostics=diagnostics)
        records = [make_record(alts=("G",)), make_record(alts=("T",))]
        loader = pool.attach_source(IterableRecordSource(records))

        assert loader.load_all() == 2
        assert pool.num_records == 1
        assert len(diagnostics.errors) == 1

    def test_empty_source_goes_straight_to_replay(self, diagnostics):
        pool = VariantPool(diagnostics=diagnostics)
        loader = pool.attach_source(IterableRecordSource([]))

        assert loader.next_variant() is None
        assert loader.state is LoaderState.REPLAY
        assert loader.next_variant() is None

    def test_strip_chr_policy_applies_to_streamed_records(self, diagnostics):
        pool = VariantPool(add_chr=False, diagnostics=diagnostics)
        loader = pool.attach_source(IterableRecordSource([make_record(chrom="chrX")]))
        assert loader.next_variant().chrom == "X"


class TestBinding:
    def test_samples_bound_from_first_record(self, diagnostics):
        pool = VariantPool(pool_id="trio", diagnostics=diagnostics)
        records = [make_record(genotypes=make_genotypes("kid", "dad", "mum"))]
        pool.attach_source(IterableRecordSource(records)).load_all()

        assert list(pool.samples) == ["kid", "dad", "mum"]
        assert pool.samples.pool_id == "trio"

    def test_source_samples_win_over_record(self, diagnostics):
        pool = VariantPool(diagnostics=diagnostics)
        source = IterableRecordSource([make_record()], samples=["S1", "S2"])
        pool.attach_source(source).load_all()
        assert list(pool.samples) == ["S1", "S2"]

    def test_header_copied_with_normalized_contigs(self, diagnostics):
        header = VCFHeader(contigs={"1": {"length": "100"}}, samples=["S1"])
        pool = VariantPool(diagnostics=diagnostics)
        pool.attach_source(IterableRecordSource([], header=header))

        assert pool.header is not header
        assert pool.header.contigs == {"chr1": {"length": "100"}}
        assert header.contigs == {"1": {"length": "100"}}

    def test_existing_pool_header_kept(self, diagnostics):
        pool = VariantPool(diagnostics=diagnostics)
        existing = VCFHeader(samples=["A"])
        pool.header = existing
        pool.attach_source(IterableRecordSource([], header=VCFHeader(samples=["B"])))
        assert pool.header is existing


class TestReplayOnly:
    def test_loader_without_source_replays(self, diagnostics):
        pool = VariantPool(diagnostics=diagnostics)
        pool.insert(make_record(pos=2))
        pool.insert(make_record(pos=1))

        loader = StreamingLoader(pool)
        assert loader.state is LoaderState.REPLAY
        assert [r.pos for r in loader] == [1, 2]


class TestFromRecords:
    def test_builds_pool_with_config(self, diagnostics):
        pool = VariantPool.from_records(
            _records(), config=PoolConfig(add_chr=False, pool_id="p1"), diagnostics=diagnostics
        )
        assert pool.pool_id == "p1"
        assert [str(r.key) for r in pool] == ["2:5:A", "2:100:A", "10:5:A"]
