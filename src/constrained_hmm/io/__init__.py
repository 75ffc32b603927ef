"""Corpus and sequence file I/O."""

from .corpus import read_corpus, write_sequences, print_sequences

__all__ = [
    'read_corpus',
    'write_sequences',
    'print_sequences'
]
