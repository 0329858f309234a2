"""Tests for the immutable record model."""

import dataclasses

import pytest
from conftest import make_genotypes, make_record

from variant_pool.models import (
    Genotype,
    RecordKey,
    build_variant,
    change_alleles_for_genotype,
    rename_genotype_for_sample,
    with_overrides,
)


class TestRecordKey:
    def test_str_round_trip(self):
        key = RecordKey("chr2", 100, "ACG")
        assert str(key) == "chr2:100:ACG"
        assert RecordKey.parse("chr2:100:ACG") == key

    def test_parse_contig_with_colon(self):
        key = RecordKey.parse("HLA-A*01:01:01:01:50:T")
        assert key == RecordKey("HLA-A*01:01:01:01", 50, "T")


class TestVariantRecord:
    def test_key_and_locus(self):
        record = make_record(chrom="chr3", pos=42, ref="CT", alts=("C",))
        assert record.key == RecordKey("chr3", 42, "CT")
        assert record.locus == ("chr3", 42)
        assert record.alleles == ("CT", "C")

    def test_end_defaults_to_ref_span(self):
        assert make_record(pos=10, ref="ACGT").end == 13
        assert make_record(pos=10, ref="A", end=500).end == 500

    def test_records_are_frozen(self):
        record = make_record()
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.pos = 5

    def test_info_cannot_be_mutated(self):
        record = make_record(info={"DP": "10"})
        with pytest.raises(TypeError):
            record.info["DP"] = "11"

    def test_lists_are_frozen_to_tuples(self):
        record = make_record(alts=["G", "T"], filters=["q10"])
        assert record.alts == ("G", "T")
        assert record.filters == ("q10",)

    def test_sample_names_follow_genotype_order(self):
        record = make_record(genotypes=make_genotypes("S2", "S1"))
        assert record.sample_names == ["S2", "S1"]
        assert record.has_genotypes


class TestBuilders:
    def test_with_overrides_leaves_original(self):
        record = make_record(chrom="1", info={"DP": "3"}, source="a.vcf")
        changed = with_overrides(record, chrom="chr1")
        assert record.chrom == "1"
        assert changed.chrom == "chr1"
        assert changed.info == {"DP": "3"}
        assert changed.source == "a.vcf"

    def test_rename_genotype_keeps_every_field(self):
        genotype = make_genotypes("S1", "S2")[1]
        renamed = rename_genotype_for_sample("B", genotype)
        assert renamed.sample == "B"
        assert dataclasses.replace(renamed, sample="S2") == genotype

    def test_change_alleles_for_genotype(self):
        genotype = Genotype(sample="S1", alleles=(0, 1), depth=9, phased=True)
        changed = change_alleles_for_genotype(genotype, [1, 1])
        assert changed.alleles == (1, 1)
        assert changed.depth == 9
        assert changed.phased

    def test_build_variant_replaces_alleles_and_genotypes(self):
        record = make_record(id="rs1", qual=50.0, genotypes=make_genotypes("S1"))
        genotypes = [Genotype(sample="S1", alleles=(1, 1))]
        built = build_variant(record, ["T"], genotypes)
        assert built.alts == ("T",)
        assert built.genotypes == tuple(genotypes)
        assert built.id == "rs1"
        assert built.qual == 50.0


class TestGenotype:
    @pytest.mark.parametrize(
        "alleles,phased,expected",
        [
            ((0, 1), False, "0/1"),
            ((1, 0), True, "1|0"),
            ((None, None), False, "./."),
            ((1,), False, "1"),
            ((), False, "."),
        ],
    )
    def test_gt_string(self, alleles, phased, expected):
        assert Genotype(sample="S", alleles=alleles, phased=phased).gt_string == expected

    def test_is_called(self):
        assert Genotype(sample="S", alleles=(0, None)).is_called
        assert not Genotype(sample="S", alleles=(None, None)).is_called
