"""Running-time measurements for training and sampling.

Models are trained on synthetic corpora whose size is controlled by a single
alphabet size ``n``: ``n`` lines of ``n`` tokens ``"iiii:jjjj"``. Line ``i``
uses surface form ``i`` and walks the hidden labels ``0 .. n-1`` in order,
and a final closing line links the last label back to the first so that
every label has an outgoing transition and unconstrained sequences of any
length exist.
"""

import logging
import time
from pathlib import Path
from typing import Iterable, Tuple, Union

import numpy as np
import pandas as pd
from tqdm import tqdm

from ..config.random_state import create_rng
from ..core.constrained_markov import ConstrainedHiddenMarkovModel
from ..core.hidden_markov import train_base_model

logger = logging.getLogger(__name__)

TIMING_COLUMNS = ['average_train_time', 'average_gen_time']


def make_synthetic_corpus(alphabet_size: int, closed: bool = True) -> str:
    """
    Build a synthetic corpus with ``alphabet_size`` surface forms and labels.

    Parameters
    ----------
    alphabet_size : int
        Number of lines and of tokens per line
    closed : bool, default=True
        Append the line linking the last hidden label back to the first

    Returns
    -------
    str
        Corpus text

    Examples
    --------
    >>> print(make_synthetic_corpus(2, closed=False))
    0000:0000 0000:0001
    0001:0000 0001:0001
    """
    if alphabet_size < 1:
        raise ValueError("Alphabet size must be at least 1")

    lines = [
        " ".join(f"{i:04d}:{j:04d}" for j in range(alphabet_size))
        for i in range(alphabet_size)
    ]
    if closed:
        lines.append(f"{0:04d}:{alphabet_size - 1:04d} {0:04d}:{0:04d}")
    return "\n".join(lines)


def time_training(corpus: str, sequence_length: int, order: int = 1
                  ) -> Tuple[float, ConstrainedHiddenMarkovModel]:
    """Seconds spent training the base and the unconstrained positional model."""
    start = time.perf_counter()
    base = train_base_model(order, corpus)
    model = ConstrainedHiddenMarkovModel(base, sequence_length)
    model.train()
    return time.perf_counter() - start, model


def time_sampling(model: ConstrainedHiddenMarkovModel, rng: np.random.Generator) -> float:
    """Seconds spent drawing one sequence."""
    start = time.perf_counter()
    model.sample_sequence(rng)
    return time.perf_counter() - start


def _measure(alphabet_size: int, sequence_length: int, order: int,
             train_repeats: int, gen_repeats: int, rng: np.random.Generator) -> Tuple[float, float]:
    if train_repeats < 1 or gen_repeats < 1:
        raise ValueError("Repeat counts must be at least 1")

    corpus = make_synthetic_corpus(alphabet_size)
    train_times = []
    model = None
    for _ in range(train_repeats):
        elapsed, model = time_training(corpus, sequence_length, order)
        train_times.append(elapsed)

    gen_times = [time_sampling(model, rng) for _ in range(gen_repeats)]
    return float(np.mean(train_times)), float(np.mean(gen_times))


def time_alphabet_sizes(sizes: Iterable[int],
                        sequence_length: int = 10,
                        train_repeats: int = 5,
                        gen_repeats: int = 10,
                        order: int = 1,
                        seed: int = 0,
                        progress: bool = False) -> pd.DataFrame:
    """
    Average training and sampling time for growing alphabets.

    Parameters
    ----------
    sizes : Iterable[int]
        Alphabet sizes to measure
    sequence_length : int, default=10
        Positions in the constrained model
    train_repeats : int, default=5
        Trainings averaged per size
    gen_repeats : int, default=10
        Samples averaged per size
    order : int, default=1
        Markov order of the base model
    seed : int, default=0
        Seed of the sampling generator
    progress : bool
        Show a progress bar

    Returns
    -------
    pd.DataFrame
        Columns ``alphabet_size``, ``average_train_time`` and
        ``average_gen_time`` (seconds)
    """
    rng = create_rng(seed)
    rows = []
    for size in tqdm(list(sizes), desc="Alphabet sizes", disable=not progress):
        train_time, gen_time = _measure(size, sequence_length, order,
                                        train_repeats, gen_repeats, rng)
        logger.info("Alphabet size %d: train %.6f s, generate %.6f s", size, train_time, gen_time)
        rows.append({'alphabet_size': size,
                     'average_train_time': train_time,
                     'average_gen_time': gen_time})
    return pd.DataFrame(rows, columns=['alphabet_size'] + TIMING_COLUMNS)


def time_sequence_lengths(lengths: Iterable[int],
                          alphabet_size: int = 10,
                          train_repeats: int = 2,
                          gen_repeats: int = 3,
                          order: int = 1,
                          seed: int = 0,
                          progress: bool = False) -> pd.DataFrame:
    """
    Average training and sampling time for growing sequence lengths.

    Same parameters as :func:`time_alphabet_sizes` with the roles of
    alphabet size and sequence length swapped.

    Returns
    -------
    pd.DataFrame
        Columns ``sequence_length``, ``average_train_time`` and
        ``average_gen_time`` (seconds)
    """
    rng = create_rng(seed)
    rows = []
    for length in tqdm(list(lengths), desc="Sequence lengths", disable=not progress):
        train_time, gen_time = _measure(alphabet_size, length, order,
                                        train_repeats, gen_repeats, rng)
        logger.info("Sequence length %d: train %.6f s, generate %.6f s", length, train_time, gen_time)
        rows.append({'sequence_length': length,
                     'average_train_time': train_time,
                     'average_gen_time': gen_time})
    return pd.DataFrame(rows, columns=['sequence_length'] + TIMING_COLUMNS)


def save_timings(timings: pd.DataFrame, path: Union[str, Path]) -> Path:
    """Write a timing table as CSV, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    timings.to_csv(path, index=False)
    logger.info("Saved timings to %s", path)
    return path
