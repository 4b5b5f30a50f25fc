"""
FASTA I/O module for MitoKmer.

Handles loading the raw COI / CytB records and writing filtered pools.
Output tables live in ``mitokmer.io.tables``.
"""

from .fasta_io import (
    Gene,
    SequenceRecord,
    is_gzipped,
    open_file,
    read_fasta,
    read_gene_pools,
    write_fasta,
)

__all__ = [
    # Record structures
    "Gene",
    "SequenceRecord",

    # FASTA I/O
    "read_fasta",
    "read_gene_pools",
    "write_fasta",

    # File helpers
    "is_gzipped",
    "open_file",
]
