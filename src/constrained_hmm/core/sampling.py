"""Batch and parallel sampling from trained models.

Trained models are read-only, so sampling is embarrassingly parallel. Each
worker receives its own generator from :func:`spawn_generators` and draws a
fixed, contiguous share of the requested sequences, which keeps the output
identical for a given seed and worker count.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Protocol

import numpy as np
from tqdm import tqdm

from ..config.random_state import spawn_generators

logger = logging.getLogger(__name__)


class SequenceSampler(Protocol):
    def sample_sequence(self, rng: np.random.Generator) -> str: ...


def _worker_counts(n_sequences: int, n_workers: int) -> List[int]:
    base, extra = divmod(n_sequences, n_workers)
    return [base + (1 if i < extra else 0) for i in range(n_workers)]


def _sample_many(model: SequenceSampler, rng: np.random.Generator, count: int,
                 progress: Optional[tqdm] = None) -> List[str]:
    sequences = []
    for _ in range(count):
        sequences.append(model.sample_sequence(rng))
        if progress is not None:
            progress.update(1)
    return sequences


def sample_sequences(model: SequenceSampler,
                     n_sequences: int,
                     seed: Optional[int] = None,
                     n_workers: int = 1,
                     progress: bool = False) -> List[str]:
    """
    Draw ``n_sequences`` sequences from ``model``.

    Parameters
    ----------
    model : SequenceSampler
        Trained model with a ``sample_sequence(rng)`` method, e.g. a
        :class:`ConstrainedHiddenMarkovModel`
    n_sequences : int
        Number of sequences to draw
    seed : Optional[int]
        Root seed; ``None`` gives non-reproducible output
    n_workers : int
        Number of sampling threads, each with its own generator
    progress : bool
        Show a progress bar

    Returns
    -------
    List[str]
        Sampled sequences, worker by worker

    Raises
    ------
    ValueError
        If ``n_sequences`` is negative or ``n_workers`` is less than 1
    """
    if n_sequences < 0:
        raise ValueError("Number of sequences must not be negative")
    if n_workers < 1:
        raise ValueError("Number of workers must be at least 1")

    generators = spawn_generators(seed, n_workers)
    counts = _worker_counts(n_sequences, n_workers)
    logger.info("Sampling %d sequences with %d worker(s)", n_sequences, n_workers)

    with tqdm(total=n_sequences, desc="Sampling", disable=not progress) as pbar:
        if n_workers == 1:
            return _sample_many(model, generators[0], n_sequences, pbar)

        with ThreadPoolExecutor(max_workers=n_workers) as executor:
            futures = [executor.submit(_sample_many, model, rng, count)
                       for rng, count in zip(generators, counts)]
            sequences = []
            for future in futures:
                batch = future.result()
                pbar.update(len(batch))
                sequences.extend(batch)
    return sequences
