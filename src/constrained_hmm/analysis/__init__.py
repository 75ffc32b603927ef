"""Benchmarks of training and sampling time."""

from .timing import (
    make_synthetic_corpus,
    time_training,
    time_sampling,
    time_alphabet_sizes,
    time_sequence_lengths,
    save_timings
)

__all__ = [
    'make_synthetic_corpus',
    'time_training',
    'time_sampling',
    'time_alphabet_sizes',
    'time_sequence_lengths',
    'save_timings'
]
