#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MitoKmer v0.1.0

Tests for sequence manipulation utilities.

Author: MitoKmer Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import pytest
from mitokmer.utils.sequence_utils import (
    canonical_kmers,
    extract_kmers,
    calculate_gc_content,
    is_unambiguous,
)


class TestCanonicalKmers:
    """Test lexicographic k-mer enumeration."""

    def test_single_nucleotides(self):
        """Test k=1 gives the four bases in order."""
        assert canonical_kmers(1) == ('A', 'C', 'G', 'T')

    def test_dinucleotides(self):
        """Test k=2 gives 16 dinucleotides, AA first and TT last."""
        kmers = canonical_kmers(2)

        assert len(kmers) == 16
        assert kmers[0] == 'AA'
        assert kmers[1] == 'AC'
        assert kmers[4] == 'CA'
        assert kmers[-1] == 'TT'

    def test_sorted_and_unique(self):
        """Test enumeration is sorted with no duplicates."""
        kmers = canonical_kmers(3)

        assert len(kmers) == 64
        assert list(kmers) == sorted(set(kmers))

    def test_invalid_k(self):
        """Test k < 1 is rejected."""
        with pytest.raises(ValueError):
            canonical_kmers(0)


class TestKmerExtraction:
    """Test k-mer extraction functions."""

    def test_basic_kmer_extraction(self):
        """Test extraction of k-mers from sequence."""
        kmers = extract_kmers("ATCGATCG", 3)

        expected = ["ATC", "TCG", "CGA", "GAT", "ATC", "TCG"]
        assert kmers == expected

    def test_kmer_larger_than_sequence(self):
        """Test handling when k > sequence length."""
        assert extract_kmers("ATG", 5) == []

    def test_valid_only_skips_ambiguous_windows(self):
        """Test windows touching N are skipped when valid_only is set."""
        assert extract_kmers("ACNGT", 2) == ["AC", "CN", "NG", "GT"]
        assert extract_kmers("ACNGT", 2, valid_only=True) == ["AC", "GT"]

    def test_lowercase_input(self):
        """Test lowercase sequence is upper-cased."""
        assert extract_kmers("acgt", 2) == ["AC", "CG", "GT"]


class TestGCContent:
    """Test GC content calculation."""

    def test_gc_content_all_gc(self):
        """Test GC content of 100% GC sequence."""
        assert calculate_gc_content("GCGCGC") == 1.0

    def test_gc_content_half(self):
        """Test GC content of balanced sequence."""
        assert calculate_gc_content("ATGC") == 0.5

    def test_gc_content_empty(self):
        """Test empty sequence has zero GC content."""
        assert calculate_gc_content("") == 0.0

    def test_is_unambiguous(self):
        """Test ACGT-only check."""
        assert is_unambiguous("ACGT")
        assert not is_unambiguous("ACNT")

# MitoKmer v0.1.0
# Any usage is subject to this software's license.
