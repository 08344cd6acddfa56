"""IO utilities for reading and writing sequence files.

Records use the ``fasta`` codec shape: ``accession``, ``description`` and
``sequence``.
"""
from biodb.io.fasta import iter_fasta, load_fasta, to_fasta

__all__ = [
    "iter_fasta",
    "load_fasta",
    "to_fasta",
]
