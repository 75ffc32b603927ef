"""Positional hidden Markov model conditioned on per-position constraints.

The constrained model unrolls a trained :class:`HiddenMarkovModel` over a
fixed number of positions and conditions it on the event "every position
satisfies its hidden and observed constraint". Training runs four phases:

1. Duplicate: independent copies of the base tables for every position.
2. Mask: zero the weight of targets that violate the position's constraint.
3. Arc-consistency: zero transitions into states that cannot lead to a
   complete, constraint-satisfying sequence. The positions form a chain, so a
   single backward sweep reaches the fixed point.
4. Renormalize: a backward pass computing, for each position and hidden
   context, the total mass ``alpha`` of constraint-satisfying continuations,
   then rescaling transitions and emissions so every surviving sequence keeps
   its base-model probability divided by the mass of all surviving sequences.

After training the model is read-only and may be sampled from several
threads at once, provided each thread owns its random generator.
"""

import logging
import warnings
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..constraints.constraint import Constraint, Empty
from ..exceptions import ConstructionError, LengthMismatchError, ProbabilityLookupError
from . import distribution as dist
from .distribution import Distribution
from .hidden_markov import HiddenMarkovModel
from .tokens import iter_windows, tokens_from_keys, window_keys

logger = logging.getLogger(__name__)

LARGE_TABLE_WARNING = 1_000_000


class ConstrainedHiddenMarkovModel:
    """Hidden Markov model whose samples satisfy positional constraints.

    Parameters
    ----------
    base_model : HiddenMarkovModel
        Trained, unconstrained model. It is never modified.
    sequence_length : int
        Number of positions (windows) in every generated sequence; must be
        greater than 1.
    hidden_constraints : Optional[Sequence[Constraint]]
        One constraint per position applied to hidden labels. Defaults to
        :class:`Empty` everywhere.
    observed_constraints : Optional[Sequence[Constraint]]
        One constraint per position applied to surface forms. Defaults to
        :class:`Empty` everywhere.

    Raises
    ------
    ConstructionError
        If ``sequence_length`` is not greater than 1.
    LengthMismatchError
        If a constraint list does not have ``sequence_length`` entries.

    Examples
    --------
    >>> base = train_base_model(1, corpus)
    >>> model = ConstrainedHiddenMarkovModel(base, 4, observed_constraints=[
    ...     StartsWithLetter('t'), Empty(), Empty(), Matches('red')])
    >>> model.train()
    >>> sequence = model.sample_sequence(np.random.default_rng(0))
    >>> sequence.endswith('red:NN')
    True
    """

    def __init__(self,
                 base_model: HiddenMarkovModel,
                 sequence_length: int,
                 hidden_constraints: Optional[Sequence[Constraint]] = None,
                 observed_constraints: Optional[Sequence[Constraint]] = None):
        if sequence_length <= 1:
            raise ConstructionError(f"Sequence length must be greater than 1, got {sequence_length}")

        self.base_model = base_model
        self.sequence_length = sequence_length
        self.hidden_constraints: List[Constraint] = (
            list(hidden_constraints) if hidden_constraints is not None
            else [Empty()] * sequence_length
        )
        self.observed_constraints: List[Constraint] = (
            list(observed_constraints) if observed_constraints is not None
            else [Empty()] * sequence_length
        )
        self.hidden_probs: List[Distribution] = []
        self.observed_probs: List[Distribution] = []

        self.check_sequence_and_constraint_length()

    def check_sequence_and_constraint_length(self) -> None:
        for name, constraints in (('hidden', self.hidden_constraints),
                                  ('observed', self.observed_constraints)):
            if len(constraints) != self.sequence_length:
                raise LengthMismatchError(
                    f"Expected {self.sequence_length} {name} constraints, got {len(constraints)}"
                )

    @property
    def start_context(self) -> str:
        return self.base_model.start_context

    def train(self) -> None:
        """Build the per-position tables from the base model.

        Calling ``train`` again discards the previous tables and rebuilds
        them from the (unchanged) base model.
        """
        self.clear_probs()

        self.duplicate_matrices()
        self.remove_constraint_violating_states()
        self.remove_dead_states()
        self.renormalize()

        if not self.is_satisfiable:
            logger.warning("No sequence of length %d satisfies the constraints",
                           self.sequence_length)

    def clear_probs(self) -> None:
        self.hidden_probs = []
        self.observed_probs = []

    def duplicate_matrices(self) -> None:
        """Deep copy the base model's tables for each position."""
        for _ in range(self.sequence_length):
            self.hidden_probs.append(dist.copy_distribution(self.base_model.hidden_probs))
            self.observed_probs.append(dist.copy_distribution(self.base_model.observed_probs))

        n_entries = self.sequence_length * sum(
            len(targets) for targets in self.base_model.hidden_probs.values())
        if n_entries > LARGE_TABLE_WARNING:
            warnings.warn(f"Large positional tables ({n_entries} transitions) "
                          f"may be slow to train")
        logger.debug("Duplicated base tables over %d positions", self.sequence_length)

    def remove_constraint_violating_states(self) -> None:
        """Zero every hidden target and surface form that breaks its constraint.

        Weights are set to 0 rather than removed so the keys stay visible to
        the arc-consistency phase.
        """
        for i in range(self.sequence_length):
            _mask(self.hidden_probs[i], self.hidden_constraints[i])
            _mask(self.observed_probs[i], self.observed_constraints[i])
        logger.debug("Applied hidden and observed constraints")

    def remove_dead_states(self) -> None:
        """Enforce arc-consistency with one backward sweep over the positions."""
        # Hidden states with no legal emission cannot be entered.
        for i in reversed(range(self.sequence_length)):
            silent = dist.zero_sum_contexts(self.observed_probs[i])
            dist.zero_targets(self.hidden_probs[i], silent)

        # States with no way forward cannot be entered one position earlier.
        for i in reversed(range(1, self.sequence_length)):
            current = self.hidden_probs[i]
            dead = dist.zero_sum_contexts(current)
            for targets in self.hidden_probs[i - 1].values():
                for target in targets:
                    if target in dead or target not in current:
                        targets[target] = 0.0
        logger.debug("Removed dead states")

    def renormalize(self) -> None:
        """Rescale the pruned tables into the conditional distribution.

        Working backwards, ``beta[i][s]`` is the emission mass left to state
        ``s`` at position ``i`` and ``alpha[i][c]`` is the mass of all
        constraint-satisfying continuations from context ``c`` entering
        position ``i``::

            alpha[i][c] = sum_t z[i][c][t] * beta[i][t] * alpha[i + 1][t]

        with ``alpha[L][t] = 1``. Transitions become
        ``z[i][c][t] * beta[i][t] * alpha[i + 1][t] / alpha[i][c]`` and
        emissions are divided by ``beta``.
        """
        next_alpha: Optional[Dict[str, float]] = None

        for i in reversed(range(self.sequence_length)):
            beta: Dict[str, float] = {}
            for state, surfaces in self.observed_probs[i].items():
                total = sum(surfaces.values())
                beta[state] = total
                if total != 0.0:
                    for surface in surfaces:
                        surfaces[surface] /= total

            alpha: Dict[str, float] = {}
            for context, targets in self.hidden_probs[i].items():
                scaled = {
                    target: weight * beta.get(target, 0.0) * _continuation(next_alpha, target)
                    for target, weight in targets.items()
                }
                total = sum(scaled.values())
                alpha[context] = total
                if total != 0.0:
                    for target, weight in scaled.items():
                        targets[target] = weight / total

            next_alpha = alpha
        logger.debug("Renormalized %d positions", self.sequence_length)

    @property
    def is_satisfiable(self) -> bool:
        """Whether any full-length sequence satisfies the constraints."""
        if not self.hidden_probs:
            return False
        start = self.hidden_probs[0].get(self.start_context, {})
        return sum(start.values()) > 0.0

    def sample_sequence(self, rng: np.random.Generator) -> str:
        """Generate one constraint-satisfying sequence.

        Parameters
        ----------
        rng : np.random.Generator
            Random source owned by the caller

        Returns
        -------
        str
            Space-separated ``surface:hidden`` tokens. If the current context
            has no transitions at some position the tokens generated so far
            are returned, which can only happen for unsatisfiable constraints.
        """
        tokens: List[str] = []
        current = self.start_context
        for i in range(len(self.hidden_probs)):
            if current not in self.hidden_probs[i]:
                break
            current = dist.draw_key(self.hidden_probs[i][current], rng)
            if current is None:
                break

            if current in self.observed_probs[i]:
                surface = dist.draw_key(self.observed_probs[i][current], rng)
                if surface is not None:
                    tokens.extend(tokens_from_keys(current, surface))
        return " ".join(tokens)

    def sequence_probability(self, sequence: str) -> float:
        """Probability of ``sequence`` under the constrained model.

        Raises
        ------
        ProbabilityLookupError
            If the sequence is longer than the model, cannot be split into
            windows, or uses a transition or emission that is undefined at
            its position.
        """
        order = self.base_model.order
        tokens = sequence.split()
        if len(tokens) % order != 0:
            raise ProbabilityLookupError(
                f"{len(tokens)} tokens cannot be split into windows of {order}"
            )
        if len(tokens) // order > len(self.hidden_probs):
            raise ProbabilityLookupError(
                f"Sequence has {len(tokens) // order} positions, "
                f"model has {len(self.hidden_probs)}"
            )

        product = 1.0
        context = self.start_context
        for i, window in enumerate(iter_windows(tokens, order)):
            hidden_key, surface_key = window_keys(window)
            product *= dist.lookup(self.hidden_probs[i], context, hidden_key)
            product *= dist.lookup(self.observed_probs[i], hidden_key, surface_key)
            context = hidden_key
        return product

    def validate(self) -> Dict[str, any]:
        """Check the normalization invariant at every position.

        Returns
        -------
        Dict[str, any]
            ``{'valid': bool, 'trained': bool, 'satisfiable': bool,
            'errors': List[str]}``
        """
        results = {
            'trained': len(self.hidden_probs) == self.sequence_length,
            'satisfiable': self.is_satisfiable,
            'errors': []
        }
        for i, (hidden, observed) in enumerate(zip(self.hidden_probs, self.observed_probs)):
            for name, table in (('hidden', hidden), ('observed', observed)):
                report = dist.validate_distribution(table)
                results['errors'].extend(f"Position {i} {name}: {error}"
                                         for error in report['errors'])
        results['valid'] = results['trained'] and not results['errors']
        return results

    def __repr__(self) -> str:
        return (f"ConstrainedHiddenMarkovModel(order={self.base_model.order}, "
                f"sequence_length={self.sequence_length}, "
                f"trained={bool(self.hidden_probs)})")


def _mask(distribution: Distribution, constraint: Constraint) -> None:
    for targets in distribution.values():
        for target in targets:
            if not constraint.is_satisfied_by(target):
                targets[target] = 0.0


def _continuation(next_alpha: Optional[Dict[str, float]], target: str) -> float:
    if next_alpha is None:
        return 1.0
    return next_alpha.get(target, 0.0)


def build_constrained_model(base_model: HiddenMarkovModel,
                            sequence_length: int,
                            hidden_constraints: Optional[Sequence[Constraint]] = None,
                            observed_constraints: Optional[Sequence[Constraint]] = None
                            ) -> ConstrainedHiddenMarkovModel:
    """Create an untrained :class:`ConstrainedHiddenMarkovModel`."""
    return ConstrainedHiddenMarkovModel(base_model, sequence_length,
                                        hidden_constraints, observed_constraints)
