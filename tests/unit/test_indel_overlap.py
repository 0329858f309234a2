"""Tests for the windowed indel-overlap matcher."""

import pytest
from conftest import make_record

from variant_pool.normalizer import AltType
from variant_pool.pool import VariantPool


@pytest.fixture
def pool(diagnostics):
    pool = VariantPool(pool_id="target", diagnostics=diagnostics)
    pool.insert(make_record(pos=103, ref="TCA", alts=("T",)))
    return pool


class TestFindOverlappingIndel:
    def test_deletion_of_same_length_within_window(self, pool):
        match = pool.find_overlapping_indel("chr1", 100, 3, AltType.DELETION)
        assert match is not None
        assert match.pos == 103

    def test_window_edges_are_inclusive(self, pool):
        assert pool.find_overlapping_indel("chr1", 106, 3, AltType.DELETION) is not None
        assert pool.find_overlapping_indel("chr1", 107, 3, AltType.DELETION) is None
        assert pool.find_overlapping_indel("chr1", 99, 3, AltType.DELETION) is None

    def test_type_must_match(self, pool):
        assert pool.find_overlapping_indel("chr1", 100, 3, AltType.INSERTION) is None

    def test_length_must_match(self, pool):
        assert pool.find_overlapping_indel("chr1", 100, 2, AltType.DELETION) is None

    def test_other_chromosome_never_matches(self, pool):
        assert pool.find_overlapping_indel("chr2", 103, 3, AltType.DELETION) is None

    def test_query_chromosome_is_normalized(self, pool):
        assert pool.find_overlapping_indel("1", 100, 3, AltType.DELETION) is not None

    def test_any_alternate_of_a_record_can_match(self, diagnostics):
        pool = VariantPool(diagnostics=diagnostics)
        pool.insert(make_record(pos=50, ref="AG", alts=("T", "AGGG")))
        match = pool.find_overlapping_indel("chr1", 48, 4, AltType.INSERTION)
        assert match is not None
        assert match.alts == ("T", "AGGG")


class TestCountOverlappingIndelAlleles:
    def test_matching_deletion(self, pool):
        query = make_record(pos=100, ref="ACG", alts=("A",))
        assert pool.count_overlapping_indel_alleles(query) == 1

    def test_insertion_does_not_match_deletion(self, pool):
        query = make_record(pos=101, ref="A", alts=("ACG",))
        assert pool.count_overlapping_indel_alleles(query) == 0

    def test_longer_deletion_does_not_match(self, pool):
        query = make_record(pos=101, ref="ACGTA", alts=("A",))
        assert pool.count_overlapping_indel_alleles(query) == 0

    def test_non_indel_alleles_are_skipped(self, pool):
        query = make_record(pos=102, ref="ACG", alts=("TTT", "<DEL>", "*", "A"))
        assert pool.count_overlapping_indel_alleles(query) == 1

    def test_each_matching_allele_counts(self, diagnostics):
        pool = VariantPool(diagnostics=diagnostics)
        pool.insert(make_record(pos=10, ref="AT", alts=("A",)))
        pool.insert(make_record(pos=12, ref="C", alts=("CGG",)))
        query = make_record(pos=11, ref="GTT", alts=("G", "GT"))
        # GTT>G is a 3-base deletion; GTT>GT a 3-base deletion too, neither length 2
        assert pool.count_overlapping_indel_alleles(query) == 0

        query = make_record(pos=11, ref="G", alts=("GAA", "GA"))
        assert pool.count_overlapping_indel_alleles(query) == 1

    def test_empty_pool(self, diagnostics):
        pool = VariantPool(diagnostics=diagnostics)
        assert pool.count_overlapping_indel_alleles(make_record(ref="AC", alts=("A",))) == 0

    def test_custom_classifier_is_used(self, diagnostics):
        pool = VariantPool(diagnostics=diagnostics, classifier=lambda ref, alt: AltType.SNV)
        pool.insert(make_record(pos=100, ref="AC", alts=("A",)))
        assert pool.count_overlapping_indel_alleles(make_record(ref="AC", alts=("A",))) == 0
