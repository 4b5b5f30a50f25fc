#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MitoKmer v0.1.0

Tests for FASTA loading and writing.

Author: MitoKmer Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import gzip

import pytest

from mitokmer.errors import ParseError
from mitokmer.io.fasta_io import (
    Gene,
    SequenceRecord,
    read_fasta,
    read_gene_pools,
    write_fasta,
)


def _write(path, content):
    path.write_text(content)
    return path


class TestGene:
    """Test gene label parsing."""

    def test_parse_by_value_and_name(self):
        """Test lookup is case-insensitive by value or name."""
        assert Gene.parse("COI") is Gene.COI
        assert Gene.parse("cytb") is Gene.CYTB
        assert Gene.parse("CYTB") is Gene.CYTB
        assert Gene.parse(Gene.COI) is Gene.COI

    def test_parse_unknown(self):
        """Test unknown gene is rejected."""
        with pytest.raises(ValueError, match="Unknown gene"):
            Gene.parse("ND1")


class TestReadFasta:
    """Test FASTA parsing into SequenceRecord."""

    def test_records_in_file_order(self, temp_output_dir):
        """Test records keep file order and identifiers."""
        path = _write(temp_output_dir / "a.fasta",
                      ">seq1 Mus musculus COI\nACGT\n>seq2\nGGCC\n>seq3\nTTAA\n")

        records = read_fasta(path)

        assert [r.identifier for r in records] == ["seq1", "seq2", "seq3"]
        assert records[0].raw_sequence == "ACGT"
        assert records[0].description == "seq1 Mus musculus COI"

    def test_multiline_and_lowercase(self, temp_output_dir):
        """Test wrapped sequence lines are joined and upper-cased."""
        path = _write(temp_output_dir / "a.fasta", ">s\nacgt\nNN--\nac\n")

        records = read_fasta(path)

        assert records == [SequenceRecord("s", "ACGTNN--AC", "s")]

    def test_gzipped_input(self, temp_output_dir):
        """Test .gz files are decompressed transparently."""
        path = temp_output_dir / "a.fasta.gz"
        with gzip.open(path, 'wt') as fh:
            fh.write(">g1\nACGTACGT\n")

        records = read_fasta(path)

        assert len(records) == 1
        assert records[0].raw_sequence == "ACGTACGT"

    def test_missing_file(self, temp_output_dir):
        """Test nonexistent path raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            read_fasta(temp_output_dir / "missing.fasta")

    def test_sequence_before_header(self, temp_output_dir):
        """Test sequence data before the first header is a parse error."""
        path = _write(temp_output_dir / "a.fasta", "ACGT\n>s1\nACGT\n")

        with pytest.raises(ParseError, match="Missing record header"):
            read_fasta(path)

    def test_empty_sequence_block(self, temp_output_dir):
        """Test a header with no sequence is a parse error."""
        path = _write(temp_output_dir / "a.fasta", ">s1\n>s2\nACGT\n")

        with pytest.raises(ParseError, match="Empty sequence block"):
            read_fasta(path)

    def test_empty_file(self, temp_output_dir):
        """Test a file without records is a parse error."""
        path = _write(temp_output_dir / "a.fasta", "\n\n")

        with pytest.raises(ParseError, match="No FASTA records"):
            read_fasta(path)

    def test_leading_blank_lines(self, temp_output_dir):
        """Test blank lines before the first header are ignored."""
        path = _write(temp_output_dir / "a.fasta", "\n\n>s1\nACGT\n>s2\nGGCC\n")

        records = read_fasta(path)

        assert [r.identifier for r in records] == ["s1", "s2"]
        assert records[1].raw_sequence == "GGCC"

    def test_header_line_number_after_blank_lines(self, temp_output_dir):
        """Test the reported line number counts leading blank lines."""
        path = _write(temp_output_dir / "a.fasta", "\n\nACGT\n>s1\nACGT\n")

        with pytest.raises(ParseError, match="line 3"):
            read_fasta(path)

    def test_parse_error_carries_stage(self, temp_output_dir):
        """Test parse errors name the load stage."""
        path = _write(temp_output_dir / "a.fasta", "")

        with pytest.raises(ParseError) as exc_info:
            read_fasta(path)

        assert exc_info.value.stage == 'load'


class TestWriteFasta:
    """Test FASTA writing."""

    def test_write_wraps_lines(self, temp_output_dir):
        """Test sequences are wrapped at line_width."""
        path = temp_output_dir / "out" / "w.fasta"
        records = [SequenceRecord("s1", "A" * 10), SequenceRecord("s2", "C" * 3)]

        count = write_fasta(records, path, line_width=4)

        assert count == 2
        assert path.read_text() == ">s1\nAAAA\nAAAA\nAA\n>s2\nCCC\n"

    def test_written_file_reads_back(self, temp_output_dir):
        """Test written records load with identical content."""
        path = temp_output_dir / "w.fasta"
        records = [SequenceRecord("x", "ACGTN-ACGT"), SequenceRecord("y", "GGG")]

        write_fasta(records, path)

        assert [(r.identifier, r.raw_sequence) for r in read_fasta(path)] == \
            [("x", "ACGTN-ACGT"), ("y", "GGG")]


class TestReadGenePools:
    """Test loading one file per gene."""

    def test_pools_keyed_by_gene(self, temp_output_dir):
        """Test gene names resolve and pools load in Gene order."""
        coi = _write(temp_output_dir / "coi.fasta", ">c1\nACGT\n>c2\nACGA\n")
        cytb = _write(temp_output_dir / "cytb.fasta", ">b1\nGGCC\n")

        pools = read_gene_pools({"CytB": cytb, "COI": coi})

        assert list(pools) == [Gene.COI, Gene.CYTB]
        assert len(pools[Gene.COI]) == 2
        assert pools[Gene.CYTB][0].identifier == "b1"

# MitoKmer v0.1.0
# Any usage is subject to this software's license.
