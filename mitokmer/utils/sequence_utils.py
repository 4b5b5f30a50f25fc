"""
MitoKmer v0.1.0

Sequence utility functions for MitoKmer.

Provides k-mer enumeration and simple composition helpers shared by the
filter and the featurizer.
"""

from itertools import product
from typing import List, Tuple

NUCLEOTIDES = ('A', 'C', 'G', 'T')


def canonical_kmers(k: int) -> Tuple[str, ...]:
    """
    Enumerate all 4^k k-mers over ACGT in lexicographic order.

    Args:
        k: K-mer size (>= 1)

    Returns:
        Tuple of k-mer strings

    Example:
        >>> canonical_kmers(1)
        ('A', 'C', 'G', 'T')
    """
    if k < 1:
        raise ValueError(f"k must be >= 1, got {k}")
    return tuple(''.join(p) for p in product(NUCLEOTIDES, repeat=k))


def extract_kmers(sequence: str, k: int, valid_only: bool = False) -> List[str]:
    """
    Extract all overlapping k-mers from a sequence.

    Args:
        sequence: DNA sequence string
        k: K-mer size
        valid_only: Skip windows containing any symbol outside ACGT

    Returns:
        List of k-mer strings

    Example:
        >>> extract_kmers("ATCGATCG", 3)
        ['ATC', 'TCG', 'CGA', 'GAT', 'ATC', 'TCG']
    """
    if k > len(sequence):
        return []

    sequence = sequence.upper()
    kmers = []

    for i in range(len(sequence) - k + 1):
        kmer = sequence[i:i + k]
        if valid_only and not is_unambiguous(kmer):
            continue
        kmers.append(kmer)

    return kmers


def is_unambiguous(sequence: str) -> bool:
    """True if every symbol of *sequence* is one of ACGT."""
    return all(base in NUCLEOTIDES for base in sequence)


def calculate_gc_content(sequence: str) -> float:
    """
    Calculate GC content of a DNA sequence.

    Ambiguous symbols count toward the denominator.

    Args:
        sequence: DNA sequence string

    Returns:
        GC content as fraction (0.0 to 1.0)

    Example:
        >>> calculate_gc_content("ATGC")
        0.5
    """
    if not sequence:
        return 0.0

    sequence = sequence.upper()
    gc_count = sequence.count('G') + sequence.count('C')

    return gc_count / len(sequence)


__all__ = [
    'NUCLEOTIDES',
    'canonical_kmers',
    'extract_kmers',
    'is_unambiguous',
    'calculate_gc_content',
]
