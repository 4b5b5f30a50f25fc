#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Core FASTA I/O module for MitoKmer.

Consolidated module containing:
- Gene labels for the two mitochondrial marker pools
- SequenceRecord, the immutable raw record produced at load time
- FASTA reading (via Biopython) and writing

Malformed input is reported as ParseError rather than skipped.
"""

# =============================================================================
# SECTION 1: IMPORTS AND DEPENDENCIES
# =============================================================================

import gzip
import io
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, TextIO, Union

from Bio import SeqIO

from ..errors import ParseError

logger = logging.getLogger(__name__)


# =============================================================================
# SECTION 2: CORE RECORD STRUCTURES
# =============================================================================

class Gene(Enum):
    """Mitochondrial marker genes used as class labels."""
    COI = "COI"
    CYTB = "CytB"

    @classmethod
    def parse(cls, value: Union[str, "Gene"]) -> "Gene":
        """Resolve a gene from its enum, value or name (case-insensitive)."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for gene in cls:
            if key in (gene.value.lower(), gene.name.lower()):
                return gene
        raise ValueError(
            f"Unknown gene '{value}'. Choices: {', '.join(g.value for g in cls)}"
        )


@dataclass(frozen=True)
class SequenceRecord:
    """
    Raw nucleotide record as loaded from FASTA.

    Attributes:
        identifier: Record identifier (first word of the header)
        raw_sequence: Upper-cased sequence, gaps and ambiguous bases intact
        description: Full header line without the leading '>'
    """
    identifier: str
    raw_sequence: str
    description: str = ""

    @property
    def sequence(self) -> str:
        """Alias used by the FASTA writer."""
        return self.raw_sequence

    def __len__(self) -> int:
        return len(self.raw_sequence)


# =============================================================================
# SECTION 3: FILE HANDLING HELPERS
# =============================================================================

def is_gzipped(filepath: Union[str, Path]) -> bool:
    """
    Check if file is gzip compressed.

    Args:
        filepath: Path to file

    Returns:
        True if file is gzipped
    """
    filepath = Path(filepath)
    return filepath.suffix in ('.gz', '.gzip')


def open_file(filepath: Union[str, Path], mode: str = 'r') -> TextIO:
    """
    Open file with automatic gzip detection.

    Args:
        filepath: Path to file
        mode: File mode ('r' or 'w')

    Returns:
        File handle
    """
    filepath = Path(filepath)

    if is_gzipped(filepath):
        if 'r' in mode:
            return gzip.open(filepath, 'rt')
        else:
            return gzip.open(filepath, 'wt')
    else:
        return open(filepath, mode)


# =============================================================================
# SECTION 4: FASTA FILE I/O
# =============================================================================

def read_fasta(filepath: Union[str, Path]) -> List[SequenceRecord]:
    """
    Read a FASTA file into SequenceRecord objects, in file order.

    Args:
        filepath: Path to FASTA file (can be gzipped)

    Returns:
        List of SequenceRecord

    Raises:
        FileNotFoundError: If the file does not exist
        ParseError: If a header is missing or empty, a sequence block is
            empty, or the file holds no records
    """
    filepath = Path(filepath)

    if not filepath.exists():
        raise FileNotFoundError(f"FASTA file not found: {filepath}")

    with open_file(filepath, 'r') as handle:
        text = handle.read()

    # Biopython rejects anything before the first '>' as a comment
    leading = text[:len(text) - len(text.lstrip())]
    text = text.lstrip()
    if not text:
        raise ParseError(f"No FASTA records found in {filepath.name}", stage='load')
    if not text.startswith('>'):
        line_number = leading.count('\n') + 1
        raise ParseError(
            f"Missing record header in {filepath.name}: sequence data "
            f"at line {line_number} precedes the first '>'",
            stage='load',
        )

    records: List[SequenceRecord] = []
    try:
        for record in SeqIO.parse(io.StringIO(text), "fasta"):
            if not record.id:
                raise ParseError(
                    f"Empty record header in {filepath.name}",
                    stage='load',
                    counts={'record_index': len(records)},
                )
            sequence = str(record.seq).upper()
            if not sequence:
                raise ParseError(
                    f"Empty sequence block for record '{record.id}' in {filepath.name}",
                    stage='load',
                    counts={'record_index': len(records)},
                )
            records.append(SequenceRecord(
                identifier=record.id,
                raw_sequence=sequence,
                description=record.description,
            ))
    except ValueError as exc:
        raise ParseError(
            f"Malformed FASTA in {filepath.name}: {exc}", stage='load'
        ) from exc

    if not records:
        raise ParseError(f"No FASTA records found in {filepath.name}", stage='load')

    logger.debug("Loaded %d records from %s", len(records), filepath.name)
    return records


def write_fasta(
    sequences: Iterable,
    filepath: Union[str, Path],
    line_width: int = 80,
) -> int:
    """
    Write sequences to a FASTA file.

    Args:
        sequences: Objects exposing ``identifier`` and ``sequence``
        filepath: Output FASTA path (``.gz`` suffix compresses)
        line_width: Number of bases per line (0 = no wrapping)

    Returns:
        Number of sequences written
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    count = 0
    with open_file(filepath, 'w') as handle:
        for item in sequences:
            handle.write(f">{item.identifier}\n")

            sequence = item.sequence
            if line_width > 0:
                for i in range(0, len(sequence), line_width):
                    handle.write(sequence[i:i + line_width] + '\n')
            else:
                handle.write(sequence + '\n')

            count += 1

    return count


def read_gene_pools(
    paths: Dict[Union[str, Gene], Union[str, Path]],
) -> Dict[Gene, List[SequenceRecord]]:
    """
    Load one FASTA file per gene.

    Args:
        paths: Mapping of gene (or gene name) to FASTA path

    Returns:
        Mapping of Gene to its records, in ``Gene`` declaration order
    """
    resolved = {Gene.parse(gene): Path(path) for gene, path in paths.items()}
    pools: Dict[Gene, List[SequenceRecord]] = {}
    for gene in Gene:
        if gene not in resolved:
            continue
        records = read_fasta(resolved[gene])
        logger.info("  %s: %d records from %s", gene.value, len(records), resolved[gene].name)
        pools[gene] = records
    return pools
