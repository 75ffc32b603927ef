"""Order-k hidden Markov model trained from ``surface:hidden`` corpora.

The model keeps two tables:

- ``hidden_probs``: hidden context -> next hidden context -> probability
- ``observed_probs``: hidden context -> surface key -> probability

For order ``k`` each line of the corpus is cut into consecutive windows of
``k`` tokens. The first window follows the start context (``k`` sentinel
labels) and each later window follows the hidden labels of the window
before it. Order 1 is the usual part-of-speech style HMM.
"""

import logging
from typing import Iterable, List, Union

import numpy as np

from ..exceptions import ConstructionError, ProbabilityLookupError
from . import distribution as dist
from .distribution import Distribution
from .tokens import (check_corpus_line, iter_windows, start_context,
                     tokens_from_keys, window_keys)

logger = logging.getLogger(__name__)

Corpus = Union[str, Iterable[str]]


def _corpus_lines(corpus: Corpus) -> Iterable[str]:
    if isinstance(corpus, str):
        return corpus.split("\n")
    return corpus


class HiddenMarkovModel:
    """Hidden Markov model over hidden labels and surface forms.

    Parameters
    ----------
    order : int, default=1
        Number of tokens per context window (1, 2, 3, ...)

    Examples
    --------
    >>> model = HiddenMarkovModel(order=1)
    >>> model.train("Ted:NNP likes:VBZ red:NN")
    >>> model.hidden_probs["NNP"]["VBZ"]
    1.0
    """

    def __init__(self, order: int = 1):
        if order < 1:
            raise ConstructionError(f"Markov order must be at least 1, got {order}")

        self.order = order
        self.hidden_probs: Distribution = {}
        self.observed_probs: Distribution = {}

    @property
    def start_context(self) -> str:
        """Hidden context preceding the first window."""
        return start_context(self.order)

    def train(self, corpus: Corpus) -> None:
        """Count transitions and emissions in ``corpus`` and normalize them.

        Parameters
        ----------
        corpus : str or Iterable[str]
            Either the full corpus text (lines separated by ``\\n``) or an
            iterable of lines. Each line holds whitespace-separated
            ``surface:hidden`` tokens.

        Raises
        ------
        CorpusFormatError
            If a token is malformed or uses the reserved sentinel.
        """
        self.clear_probs()

        n_lines = 0
        for line in _corpus_lines(corpus):
            self.process_line(line)
            n_lines += 1

        self.normalize()
        logger.debug("Trained order-%d model on %d lines: %d hidden contexts, %d emitting states",
                     self.order, n_lines, len(self.hidden_probs), len(self.observed_probs))

    def clear_probs(self) -> None:
        self.hidden_probs.clear()
        self.observed_probs.clear()

    def process_line(self, line: str) -> None:
        """Add the windows of one corpus line to the raw counts."""
        tokens = line.split()
        check_corpus_line(tokens)

        context = self.start_context
        for window in iter_windows(tokens, self.order):
            hidden_key, surface_key = window_keys(window)
            self.increment(context, hidden_key, surface_key)
            context = hidden_key

    def increment(self, context: str, hidden_key: str, surface_key: str) -> None:
        dist.increment(self.hidden_probs, context, hidden_key)
        dist.increment(self.observed_probs, hidden_key, surface_key)

    def normalize(self) -> None:
        dist.normalize(self.hidden_probs)
        dist.normalize(self.observed_probs)

    def sample_sequence(self, rng: np.random.Generator, length: int) -> str:
        """Generate a sequence of up to ``length`` tokens.

        Draws ``length // order`` windows. Generation stops early when the
        current hidden context has no recorded transitions.

        Parameters
        ----------
        rng : np.random.Generator
            Random source owned by the caller
        length : int
            Requested number of tokens

        Returns
        -------
        str
            Space-separated ``surface:hidden`` tokens
        """
        tokens: List[str] = []
        current = self.start_context
        for _ in range(length // self.order):
            if current not in self.hidden_probs:
                break
            current = dist.draw_key(self.hidden_probs[current], rng)
            if current is None:
                break

            if current in self.observed_probs:
                surface = dist.draw_key(self.observed_probs[current], rng)
                if surface is not None:
                    tokens.extend(tokens_from_keys(current, surface))
        return " ".join(tokens)

    def sequence_probability(self, sequence: str) -> float:
        """Probability of generating ``sequence`` from the start context.

        Raises
        ------
        ProbabilityLookupError
            If a transition or emission needed by the sequence is undefined,
            or the token count is not a multiple of the order.
        """
        tokens = sequence.split()
        if len(tokens) % self.order != 0:
            raise ProbabilityLookupError(
                f"{len(tokens)} tokens cannot be split into windows of {self.order}"
            )

        product = 1.0
        context = self.start_context
        for window in iter_windows(tokens, self.order):
            hidden_key, surface_key = window_keys(window)
            product *= dist.lookup(self.hidden_probs, context, hidden_key)
            product *= dist.lookup(self.observed_probs, hidden_key, surface_key)
            context = hidden_key
        return product

    def __repr__(self) -> str:
        return (f"HiddenMarkovModel(order={self.order}, "
                f"hidden_contexts={len(self.hidden_probs)}, "
                f"emitting_states={len(self.observed_probs)})")


def train_base_model(order: int, corpus: Corpus) -> HiddenMarkovModel:
    """Create and train a :class:`HiddenMarkovModel` in one call."""
    model = HiddenMarkovModel(order)
    model.train(corpus)
    return model
